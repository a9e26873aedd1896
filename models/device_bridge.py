'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-05 10:40:00
 #  Modified time: 2025-11-05 10:40:00
 #  Description: Host round-trip used when the detection layer runs next to an accelerator.
'''

from __future__ import annotations

from typing import List, Optional, Tuple

import torch

from .decoder import Detection
from .detection_layer import DetectionLayer


def _synchronize(device: torch.device) -> None:
    if device.type == "cuda":
        torch.cuda.synchronize(device)


class HostDeviceBridge:
    """Runs a :class:`DetectionLayer` on host copies of device tensors.

    Copy-in, host compute and copy-out happen strictly one after another; the device buffers
    are only valid once :meth:`forward` returns.
    """

    def __init__(self, layer: DetectionLayer, device: torch.device | str) -> None:
        self.layer = layer
        self.device = torch.device(device)
        self.output = layer.output.to(self.device, copy=True)
        self.delta = layer.delta.to(self.device, copy=True)

    @property
    def batch(self) -> int:
        return self.layer.batch

    @property
    def cost(self) -> float:
        return self.layer.cost

    def forward(
        self,
        predictions: torch.Tensor,
        truth: Optional[torch.Tensor] = None,
        train: bool = False,
        seen: int = 0,
    ) -> Tuple[torch.Tensor, float]:
        if not train or truth is None:
            self.output.copy_(predictions.detach().reshape(-1))
            return self.delta, self.layer.cost

        _synchronize(self.device)
        host_input = predictions.detach().to("cpu").reshape(-1)
        host_truth = truth.detach().to("cpu").reshape(-1)
        self.layer.forward(host_input, host_truth, train=True, seen=seen)
        self.output.copy_(self.layer.output)
        self.delta.copy_(self.layer.delta)
        _synchronize(self.device)
        return self.delta, self.layer.cost

    def backward(self, upstream_delta: torch.Tensor) -> None:
        upstream_delta.view(-1).add_(self.delta, alpha=1.0)

    def get_detections(
        self,
        width: int,
        height: int,
        thresh: float,
        *,
        only_objectness: bool = False,
        batch_index: int = 0,
    ) -> List[Detection]:
        """Pull the device output back to the host layer, then decode it there."""
        _synchronize(self.device)
        self.layer.output.copy_(self.output)
        return self.layer.get_detections(
            width,
            height,
            thresh,
            only_objectness=only_objectness,
            batch_index=batch_index,
        )


__all__ = ["HostDeviceBridge"]
