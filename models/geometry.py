'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 10:05:00
 #  Modified time: 2025-11-03 10:05:00
 #  Description: Box representation and pairwise comparisons used by the grid detection layer.
'''

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import torch


@dataclass
class Box:
    """Axis-aligned box in centre format (x, y, w, h)."""

    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_values(cls, values: Sequence[float] | torch.Tensor) -> "Box":
        if isinstance(values, torch.Tensor):
            values = values.detach().reshape(-1)[:4].tolist()
        x, y, w, h = (float(value) for value in values[:4])
        return cls(x=x, y=y, w=w, h=h)

    @property
    def area(self) -> float:
        return self.w * self.h

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.w, self.h]


def _overlap(center_a: float, size_a: float, center_b: float, size_b: float) -> float:
    left = max(center_a - size_a / 2, center_b - size_b / 2)
    right = min(center_a + size_a / 2, center_b + size_b / 2)
    return right - left


def box_intersection(a: Box, b: Box) -> float:
    width = _overlap(a.x, a.w, b.x, b.w)
    height = _overlap(a.y, a.h, b.y, b.h)
    if width < 0 or height < 0:
        return 0.0
    return width * height


def box_union(a: Box, b: Box) -> float:
    return a.area + b.area - box_intersection(a, b)


def box_iou(a: Box, b: Box) -> float:
    """Intersection over union of two centre-format boxes, in ``[0, 1]``."""
    union = box_union(a, b)
    if union <= 0.0:
        return 0.0
    return box_intersection(a, b) / union


def box_rmse(a: Box, b: Box) -> float:
    """Euclidean distance between the two (x, y, w, h) quadruples."""
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.w - b.w) ** 2 + (a.h - b.h) ** 2)


__all__ = ["Box", "box_intersection", "box_union", "box_iou", "box_rmse"]
