'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-11-03 10:20:00
 # @ Modified time: 2025-11-03 11:40:00
 # @ Description: Flat tensor addressing shared by the training and inference paths of the detection layer.
 # @ Description (Legacy): Each image occupies ``inputs`` floats laid out as three blocks:
 #      1. class scores, grouped by cell then class;
 #      2. objectness scores, grouped by cell then predictor;
 #      3. box coordinates, grouped by cell then predictor then coordinate.
 #      Ground truth uses ``1 + classes + coords`` floats per cell (presence, one-hot, box).
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Tuple

import torch


class PredictionViews(NamedTuple):
    """Shaped views sharing storage with a flat prediction (or delta) buffer."""

    classes: torch.Tensor  # (B, side*side, classes)
    objectness: torch.Tensor  # (B, side*side, n)
    boxes: torch.Tensor  # (B, side*side, n, coords)


class TruthViews(NamedTuple):
    """Shaped views over a flat ground-truth buffer."""

    presence: torch.Tensor  # (B, side*side)
    classes: torch.Tensor  # (B, side*side, classes)
    boxes: torch.Tensor  # (B, side*side, coords)


@dataclass(frozen=True)
class GridLayout:
    """Offsets of every field in the flat prediction and ground-truth tensors."""

    side: int
    n: int
    classes: int
    coords: int = 4

    @property
    def locations(self) -> int:
        return self.side * self.side

    @property
    def inputs(self) -> int:
        return self.locations * ((1 + self.coords) * self.n + self.classes)

    @property
    def truth_stride(self) -> int:
        return 1 + self.coords + self.classes

    @property
    def truths(self) -> int:
        return self.locations * self.truth_stride

    def cell_position(self, cell: int) -> Tuple[int, int]:
        """Return ``(row, col)`` of a cell index."""
        return cell // self.side, cell % self.side

    def class_index(self, batch: int, cell: int, class_id: int = 0) -> int:
        return batch * self.inputs + cell * self.classes + class_id

    def objectness_index(self, batch: int, cell: int, predictor: int) -> int:
        return batch * self.inputs + self.locations * self.classes + cell * self.n + predictor

    def box_index(self, batch: int, cell: int, predictor: int, field: int = 0) -> int:
        return (
            batch * self.inputs
            + self.locations * (self.classes + self.n)
            + (cell * self.n + predictor) * self.coords
            + field
        )

    def truth_index(self, batch: int, cell: int) -> int:
        return (batch * self.locations + cell) * self.truth_stride

    def truth_class_index(self, batch: int, cell: int, class_id: int) -> int:
        return self.truth_index(batch, cell) + 1 + class_id

    def truth_box_index(self, batch: int, cell: int, field: int = 0) -> int:
        return self.truth_index(batch, cell) + 1 + self.classes + field

    def views(self, flat: torch.Tensor, batch: int) -> PredictionViews:
        """Split a contiguous ``batch * inputs`` buffer into its three blocks.

        The returned tensors are views, so in-place writes through them update ``flat``.
        """
        per_image = flat.view(batch, self.inputs)
        class_end = self.locations * self.classes
        objectness_end = class_end + self.locations * self.n
        return PredictionViews(
            classes=per_image[:, :class_end].view(batch, self.locations, self.classes),
            objectness=per_image[:, class_end:objectness_end].view(batch, self.locations, self.n),
            boxes=per_image[:, objectness_end:].view(batch, self.locations, self.n, self.coords),
        )

    def truth_views(self, truth: torch.Tensor, batch: int) -> TruthViews:
        per_cell = truth.reshape(batch, self.locations, self.truth_stride)
        return TruthViews(
            presence=per_cell[..., 0],
            classes=per_cell[..., 1 : 1 + self.classes],
            boxes=per_cell[..., 1 + self.classes :],
        )


__all__ = ["GridLayout", "PredictionViews", "TruthViews"]
