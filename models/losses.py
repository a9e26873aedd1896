'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-01 11:55:00
 #  Modified time: 2025-11-04 14:30:00
 #  Description: Loss and gradient composition for the single-scale grid detection layer.
 #  Description (Legacy): Writes no-object, classification, objectness and coordinate terms
 #       into a delta buffer with the same flat layout as the predictions and reduces it to a cost.
'''

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import torch

from .geometry import box_iou
from .layout import GridLayout
from .matcher import NO_MATCH, PredictorMatcher

LOGGER = logging.getLogger("gai_griddet.models")

DEFAULT_LOSS_CONFIG: Dict[str, Any] = {
    "object_scale": 1.0,
    "noobject_scale": 1.0,
    "class_scale": 1.0,
    "coord_scale": 1.0,
    "rescore": False,
    "sqrt": False,
}


@dataclass
class DetectionDiagnostics:
    """Running averages reported once per training forward."""

    avg_iou: float
    avg_cat: float
    avg_allcat: float
    avg_obj: float
    avg_anyobj: float
    count: int

    def as_dict(self) -> Dict[str, float]:
        return {
            "avg_iou": self.avg_iou,
            "avg_cat": self.avg_cat,
            "avg_allcat": self.avg_allcat,
            "avg_obj": self.avg_obj,
            "avg_anyobj": self.avg_anyobj,
            "count": float(self.count),
        }


@dataclass
class LossResult:
    cost: float
    diagnostics: DetectionDiagnostics


def _mean(total: float, count: int) -> float:
    # An empty batch has no positive cells; its per-object averages are undefined.
    if count == 0:
        return math.nan
    return total / count


class GridDetectionLoss:
    """Fills the delta buffer term by term for every cell of every image.

    ``delta`` holds the descent direction (``scale * (target - output)``), and the cost is its
    squared magnitude over the whole batch.
    """

    def __init__(
        self,
        *,
        layout: GridLayout,
        matcher: PredictorMatcher,
        object_scale: float,
        noobject_scale: float,
        class_scale: float,
        coord_scale: float,
        rescore: bool = False,
        sqrt: bool = False,
    ) -> None:
        self.layout = layout
        self.matcher = matcher
        self.object_scale = float(object_scale)
        self.noobject_scale = float(noobject_scale)
        self.class_scale = float(class_scale)
        self.coord_scale = float(coord_scale)
        self.rescore = bool(rescore)
        self.sqrt = bool(sqrt)

    @torch.no_grad()
    def __call__(
        self,
        output: torch.Tensor,
        truth: torch.Tensor,
        delta: torch.Tensor,
        *,
        batch: int,
        seen: int = 0,
    ) -> LossResult:
        layout = self.layout
        delta.zero_()

        out = layout.views(output, batch)
        grad = layout.views(delta, batch)
        gt = layout.truth_views(truth.to(dtype=output.dtype), batch)

        # Every predictor starts out pushed towards zero objectness; matched ones are overwritten.
        grad.objectness.copy_(self.noobject_scale * (0 - out.objectness))
        avg_anyobj = float(out.objectness.sum().item())

        present = gt.presence != 0
        avg_iou = 0.0
        avg_cat = 0.0
        avg_allcat = 0.0
        avg_obj = 0.0
        count = 0

        if bool(present.any()):
            cell_scores = out.classes[present]
            cell_truth = gt.classes[present]
            grad.classes[present] = self.class_scale * (cell_truth - cell_scores)
            avg_cat = float(cell_scores[cell_truth != 0].sum().item())
            avg_allcat = float(cell_scores.sum().item())

        for batch_index, cell in present.nonzero().tolist():
            truth_values = gt.boxes[batch_index, cell]
            best_index = self.matcher.match(True, truth_values, out.boxes[batch_index, cell], seen)
            if best_index == NO_MATCH:
                LOGGER.debug("No predictor matched cell %d of image %d", cell, batch_index)
                continue

            predicted = out.boxes[batch_index, cell, best_index]
            iou = box_iou(self.matcher.align_prediction(predicted), self.matcher.align_truth(truth_values))

            objectness = float(out.objectness[batch_index, cell, best_index].item())
            avg_obj += objectness
            target = iou if self.rescore else 1.0
            grad.objectness[batch_index, cell, best_index] = self.object_scale * (target - objectness)

            target_box = truth_values[:4].clone()
            if self.sqrt:
                target_box[2:4] = target_box[2:4].sqrt()
            grad.boxes[batch_index, cell, best_index, :4] = self.coord_scale * (target_box - predicted[:4])

            avg_iou += iou
            count += 1

        cost = float(delta.pow(2).sum().item())
        diagnostics = DetectionDiagnostics(
            avg_iou=_mean(avg_iou, count),
            avg_cat=_mean(avg_cat, count),
            avg_allcat=_mean(avg_allcat, count * layout.classes),
            avg_obj=_mean(avg_obj, count),
            avg_anyobj=avg_anyobj / (batch * layout.locations * layout.n),
            count=count,
        )
        return LossResult(cost=cost, diagnostics=diagnostics)


def build_loss(
    config: Optional[Dict[str, Any]],
    layout: GridLayout,
    matcher: PredictorMatcher,
) -> GridDetectionLoss:
    merged_config: Dict[str, Any] = {**DEFAULT_LOSS_CONFIG, **(config or {})}
    return GridDetectionLoss(
        layout=layout,
        matcher=matcher,
        object_scale=float(merged_config["object_scale"]),
        noobject_scale=float(merged_config["noobject_scale"]),
        class_scale=float(merged_config["class_scale"]),
        coord_scale=float(merged_config["coord_scale"]),
        rescore=bool(merged_config["rescore"]),
        sqrt=bool(merged_config["sqrt"]),
    )


__all__ = [
    "DEFAULT_LOSS_CONFIG",
    "DetectionDiagnostics",
    "GridDetectionLoss",
    "LossResult",
    "build_loss",
]
