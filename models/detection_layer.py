'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-04 16:00:00
 #  Modified time: 2025-11-05 10:20:00
 #  Description: Single-scale grid detection layer with preallocated output and delta buffers.
 #  Description (Legacy): Hosts the loss composition for training and the box decoding for
 #       inference; both paths read the buffers through the same GridLayout.
'''

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import torch

from .decoder import Detection, InferenceDecoder
from .layout import GridLayout
from .losses import DetectionDiagnostics, build_loss
from .matcher import RANDOM_WARMUP_SEEN, PredictorMatcher

LOGGER = logging.getLogger("gai_griddet.models")


class DetectionLayer:
    """Output stage of a single-shot grid detector.

    ``output`` and ``delta`` are allocated once with ``batch * inputs`` elements. Every training
    forward clears ``delta`` and rewrites it completely; nothing carries over between calls.
    """

    def __init__(
        self,
        batch: int,
        inputs: int,
        n: int,
        side: int,
        classes: int,
        coords: int = 4,
        rescore: bool = False,
        *,
        softmax: bool = False,
        sqrt: bool = False,
        forced: bool = False,
        random: bool = False,
        object_scale: float = 1.0,
        noobject_scale: float = 1.0,
        class_scale: float = 1.0,
        coord_scale: float = 1.0,
        seed: Optional[int] = None,
    ) -> None:
        self.layout = GridLayout(side=side, n=n, classes=classes, coords=coords)
        if self.layout.inputs != inputs:
            raise ValueError(
                f"inputs={inputs} does not match side*side*((1+coords)*n+classes)={self.layout.inputs}"
            )
        if forced and n < 2:
            raise ValueError(f"forced predictor selection needs at least 2 predictors per cell, got n={n}")

        self.batch = int(batch)
        self.inputs = int(inputs)
        self.outputs = self.inputs
        self.truths = self.layout.truths
        self.rescore = bool(rescore)
        self.softmax = bool(softmax)
        self.sqrt = bool(sqrt)

        generator = torch.Generator()
        if seed is not None:
            generator.manual_seed(int(seed))
        else:
            generator.seed()

        self.matcher = PredictorMatcher(
            side=side,
            sqrt=sqrt,
            forced=forced,
            random=random,
            warmup_seen=RANDOM_WARMUP_SEEN,
            generator=generator,
        )
        self.loss = build_loss(
            {
                "object_scale": object_scale,
                "noobject_scale": noobject_scale,
                "class_scale": class_scale,
                "coord_scale": coord_scale,
                "rescore": rescore,
                "sqrt": sqrt,
            },
            self.layout,
            self.matcher,
        )
        self.decoder = InferenceDecoder(self.layout, sqrt=sqrt)

        self.output = torch.zeros(self.batch * self.outputs, dtype=torch.float32)
        self.delta = torch.zeros(self.batch * self.outputs, dtype=torch.float32)
        self.cost = 0.0
        self.diagnostics: Optional[DetectionDiagnostics] = None

        LOGGER.info(
            "Detection Layer | side=%d | n=%d | classes=%d | coords=%d | inputs=%d",
            side,
            n,
            classes,
            coords,
            inputs,
        )

    def forward(
        self,
        predictions: torch.Tensor,
        truth: Optional[torch.Tensor] = None,
        train: bool = False,
        seen: int = 0,
    ) -> Tuple[torch.Tensor, float]:
        """Copy ``predictions`` into ``output`` and, when training, fill ``delta`` and ``cost``."""
        flat = predictions.detach().reshape(-1)
        if flat.numel() != self.output.numel():
            raise ValueError(f"Expected {self.output.numel()} prediction values, got {flat.numel()}")
        self.output.copy_(flat)

        if self.softmax:
            views = self.layout.views(self.output, self.batch)
            views.classes.copy_(torch.softmax(views.classes, dim=-1))

        if not train:
            return self.delta, self.cost

        if truth is None:
            raise ValueError("Ground truth is required for a training forward pass")
        truth_flat = truth.detach().reshape(-1)
        if truth_flat.numel() != self.batch * self.truths:
            raise ValueError(f"Expected {self.batch * self.truths} ground-truth values, got {truth_flat.numel()}")

        result = self.loss(self.output, truth_flat.to(self.output.device), self.delta, batch=self.batch, seen=seen)
        self.cost = result.cost
        self.diagnostics = result.diagnostics
        stats = result.diagnostics
        LOGGER.info(
            "Detection Avg IOU: %f, Pos Cat: %f, All Cat: %f, Pos Obj: %f, Any Obj: %f, count: %d",
            stats.avg_iou,
            stats.avg_cat,
            stats.avg_allcat,
            stats.avg_obj,
            stats.avg_anyobj,
            stats.count,
        )
        return self.delta, self.cost

    def backward(self, upstream_delta: torch.Tensor) -> None:
        """Accumulate this layer's delta into ``upstream_delta`` in place."""
        upstream_delta.view(-1).add_(self.delta.to(upstream_delta.device), alpha=1.0)

    def get_detections(
        self,
        width: int,
        height: int,
        thresh: float,
        *,
        only_objectness: bool = False,
        batch_index: int = 0,
    ) -> List[Detection]:
        start = batch_index * self.outputs
        return self.decoder.decode(
            self.output[start : start + self.outputs],
            width,
            height,
            thresh,
            only_objectness=only_objectness,
        )


__all__ = ["DetectionLayer"]
