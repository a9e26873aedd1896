'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-05 12:00:00
 #  Modified time: 2025-11-05 12:00:00
 #  Description: Autograd adapter exposing the detection layer as a PyTorch loss module.
'''

from __future__ import annotations

from typing import Union

import torch
from torch import nn

from .detection_layer import DetectionLayer
from .device_bridge import HostDeviceBridge

LayerRunner = Union[DetectionLayer, HostDeviceBridge]


class _DetectionCostFunction(torch.autograd.Function):
    @staticmethod
    def forward(ctx, predictions: torch.Tensor, truth: torch.Tensor, runner: LayerRunner, seen: int) -> torch.Tensor:  # noqa: D401
        delta, cost = runner.forward(predictions, truth, train=True, seen=seen)
        ctx.save_for_backward(delta.detach().clone().view_as(predictions).to(predictions.device))
        return predictions.new_tensor(cost)

    @staticmethod
    def backward(ctx, grad_output: torch.Tensor):  # noqa: D401
        (delta,) = ctx.saved_tensors
        # delta points downhill, so the gradient is its negation
        return -delta * grad_output, None, None, None


class DetectionCriterion(nn.Module):
    """Scalar detection cost whose gradient is the layer's delta, negated."""

    def __init__(self, runner: LayerRunner) -> None:
        super().__init__()
        self.runner = runner

    def forward(self, predictions: torch.Tensor, truth: torch.Tensor, seen: int = 0) -> torch.Tensor:  # noqa: D401
        if predictions.shape[0] != self.runner.batch:
            raise ValueError(
                f"Detection layer was built for batch={self.runner.batch}, got {predictions.shape[0]}"
            )
        return _DetectionCostFunction.apply(predictions, truth, self.runner, int(seen))


__all__ = ["DetectionCriterion"]
