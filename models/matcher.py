'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 11:50:00
 #  Modified time: 2025-11-04 09:15:00
 #  Description: Selection of the responsible predictor inside an object-bearing grid cell.
 #  Description (Legacy): Prefers the highest IoU once any candidate overlaps the ground truth,
 #       otherwise the lowest RMSE, with optional size-forced and warm-up random overrides.
'''

from __future__ import annotations

from typing import Optional, Sequence

import torch

from .geometry import Box, box_iou, box_rmse

NO_MATCH = -1
SMALL_OBJECT_AREA = 0.1
RANDOM_WARMUP_SEEN = 64000
INITIAL_BEST_RMSE = 20.0


class PredictorMatcher:
    """Picks which of the ``n`` predictors of a cell is trained against its object.

    Args:
        side: Number of cells along each grid side.
        sqrt: Predicted widths/heights are stored as square roots.
        forced: Select predictor 0 for large objects and 1 for small ones.
        random: Select uniformly at random while ``seen`` is below ``warmup_seen``.
        warmup_seen: Number of training images after which random selection stops.
        generator: Optional torch generator driving the random override.
    """

    def __init__(
        self,
        *,
        side: int,
        sqrt: bool = False,
        forced: bool = False,
        random: bool = False,
        warmup_seen: int = RANDOM_WARMUP_SEEN,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        self.side = int(side)
        self.sqrt = bool(sqrt)
        self.forced = bool(forced)
        self.random = bool(random)
        self.warmup_seen = int(warmup_seen)
        self.generator = generator

    def align_truth(self, values: Sequence[float] | torch.Tensor) -> Box:
        truth = Box.from_values(values)
        truth.x /= self.side
        truth.y /= self.side
        return truth

    def align_prediction(self, values: Sequence[float] | torch.Tensor) -> Box:
        out = Box.from_values(values)
        out.x /= self.side
        out.y /= self.side
        if self.sqrt:
            out.w = out.w * out.w
            out.h = out.h * out.h
        return out

    def match(
        self,
        present: bool,
        truth_values: Sequence[float] | torch.Tensor,
        candidates: Sequence[Sequence[float]] | torch.Tensor,
        seen: int = 0,
    ) -> int:
        """Return the index of the responsible predictor, or ``NO_MATCH``.

        ``truth_values`` and each row of ``candidates`` are raw (x, y, w, h) values as stored
        in the ground-truth and prediction tensors; both are moved into the shared frame here.
        """
        if not present:
            return NO_MATCH

        truth = self.align_truth(truth_values)
        if isinstance(candidates, torch.Tensor):
            candidates = candidates.detach().tolist()

        best_index = NO_MATCH
        best_iou = 0.0
        best_rmse = INITIAL_BEST_RMSE
        for index, raw in enumerate(candidates):
            out = self.align_prediction(raw)
            iou = box_iou(out, truth)
            rmse = box_rmse(out, truth)
            # Once any overlap has been seen, RMSE is never consulted again for this cell.
            if best_iou > 0 or iou > 0:
                if iou > best_iou:
                    best_iou = iou
                    best_index = index
            elif rmse < best_rmse:
                best_rmse = rmse
                best_index = index

        if self.forced:
            best_index = 1 if truth.w * truth.h < SMALL_OBJECT_AREA else 0

        if self.random and seen < self.warmup_seen:
            best_index = int(torch.randint(len(candidates), (1,), generator=self.generator).item())

        return best_index


__all__ = [
    "NO_MATCH",
    "SMALL_OBJECT_AREA",
    "RANDOM_WARMUP_SEEN",
    "PredictorMatcher",
]
