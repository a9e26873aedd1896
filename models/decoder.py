'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-04 15:10:00
 #  Modified time: 2025-11-04 15:10:00
 #  Description: Decoding of grid detection outputs into image-space boxes and class probabilities.
'''

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import torch

from .geometry import Box
from .layout import GridLayout


@dataclass
class Detection:
    """One (cell, predictor) proposal in pixel units."""

    bbox: Box
    objectness: float
    prob: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "bbox": self.bbox.to_list(),
            "objectness": self.objectness,
            "prob": list(self.prob),
        }


class InferenceDecoder:
    """Turns one image's flat predictions into ``side * side * n`` detections."""

    def __init__(self, layout: GridLayout, *, sqrt: bool = False) -> None:
        self.layout = layout
        self.sqrt = bool(sqrt)

    @torch.no_grad()
    def decode_tensors(
        self,
        predictions: torch.Tensor,
        width: int,
        height: int,
        thresh: float,
        only_objectness: bool = False,
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """Return ``(boxes, objectness, probs)`` ordered by ``cell * n + predictor``.

        Shapes are ``(side*side*n, 4)``, ``(side*side*n,)`` and ``(side*side*n, classes)``.
        Class probabilities at or below ``thresh`` are zeroed.
        """
        layout = self.layout
        views = layout.views(predictions.detach().reshape(-1).contiguous(), 1)
        scale = views.objectness[0]
        raw = views.boxes[0, ..., :4]

        cells = torch.arange(layout.locations, device=predictions.device)
        rows = (cells // layout.side).to(raw.dtype).unsqueeze(-1)
        cols = (cells % layout.side).to(raw.dtype).unsqueeze(-1)
        power = 2 if self.sqrt else 1

        boxes = torch.stack(
            (
                (raw[..., 0] + cols) / layout.side * width,
                (raw[..., 1] + rows) / layout.side * height,
                raw[..., 2].pow(power) * width,
                raw[..., 3].pow(power) * height,
            ),
            dim=-1,
        )

        probs = scale.unsqueeze(-1) * views.classes[0].unsqueeze(1)
        probs = torch.where(probs > thresh, probs, torch.zeros_like(probs))
        if only_objectness:
            probs[..., 0] = scale

        count = layout.locations * layout.n
        return boxes.reshape(count, 4), scale.reshape(count).clone(), probs.reshape(count, layout.classes)

    def decode(
        self,
        predictions: torch.Tensor,
        width: int,
        height: int,
        thresh: float,
        only_objectness: bool = False,
    ) -> List[Detection]:
        boxes, objectness, probs = self.decode_tensors(predictions, width, height, thresh, only_objectness)
        return [
            Detection(bbox=Box.from_values(box), objectness=float(score), prob=prob)
            for box, score, prob in zip(boxes.tolist(), objectness.tolist(), probs.tolist(), strict=True)
        ]


__all__ = ["Detection", "InferenceDecoder"]
