'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-01 11:55:00
 #  Modified time: 2025-11-05 11:30:00
 #  Description: Encoding of per-image box annotations into the flat grid ground-truth tensor.
 #  Description (Legacy): Each cell stores a presence flag, a one-hot class vector and the
 #       object's box with its centre expressed as an offset inside the cell.
'''

from __future__ import annotations

import logging
from typing import Any, Dict, Sequence

import torch

from .layout import GridLayout

LOGGER = logging.getLogger("gai_griddet.models")


class GroundTruthEncoder:
    """Builds ``batch * side * side * (1 + classes + coords)`` ground-truth tensors.

    Boxes are ``(cx, cy, w, h)`` normalised to the image. When two objects share a cell the
    first one is kept.
    """

    def __init__(self, layout: GridLayout) -> None:
        self.layout = layout

    @torch.no_grad()
    def __call__(self, batch_targets: Sequence[Dict[str, Any]]) -> torch.Tensor:
        layout = self.layout
        truth = torch.zeros(len(batch_targets) * layout.truths, dtype=torch.float32)

        for batch_index, target in enumerate(batch_targets):
            boxes = target.get("boxes")
            labels = target.get("labels")
            if boxes is None or labels is None:
                continue
            boxes_tensor = torch.as_tensor(boxes, dtype=torch.float32).reshape(-1, 4)
            labels_tensor = torch.as_tensor(labels, dtype=torch.long).reshape(-1)
            num_entries = min(boxes_tensor.shape[0], labels_tensor.shape[0])

            for obj_idx in range(num_entries):
                x, y, w, h = boxes_tensor[obj_idx].tolist()
                label = int(labels_tensor[obj_idx].item())

                col = self._clamp_index(int(x * layout.side), layout.side)
                row = self._clamp_index(int(y * layout.side), layout.side)
                cell = row * layout.side + col

                index = layout.truth_index(batch_index, cell)
                if truth[index] != 0:
                    LOGGER.debug("Cell %d of image %d already holds an object; skipping", cell, batch_index)
                    continue

                truth[index] = 1.0
                if 0 <= label < layout.classes:
                    truth[layout.truth_class_index(batch_index, cell, label)] = 1.0
                box_start = layout.truth_box_index(batch_index, cell)
                truth[box_start : box_start + 4] = torch.tensor(
                    [x * layout.side - col, y * layout.side - row, w, h],
                    dtype=torch.float32,
                )

        return truth

    @staticmethod
    def _clamp_index(index: int, max_size: int) -> int:
        return max(0, min(max_size - 1, index))


__all__ = ["GroundTruthEncoder"]
