'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-31 11:20:00
 # @ Modified time: 2025-11-05 13:10:00
 # @ Description: Factory utilities to construct the grid detection layer and its training criterion.
 # @ Description (Legacy): This module defines the configuration data structure for the layer and
 #      assembles the layer, the optional host/device bridge and the autograd criterion.
'''

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import torch

from .criterion import DetectionCriterion
from .detection_layer import DetectionLayer
from .device_bridge import HostDeviceBridge
from .layout import GridLayout
from .losses import DEFAULT_LOSS_CONFIG

LOGGER = logging.getLogger("gai_griddet.models")


@dataclass(frozen=True)
class DetectionLayerConfig:
    """Normalized configuration for constructing a :class:`DetectionLayer`."""

    batch: int = 1
    side: int = 7
    n: int = 2
    classes: int = 20
    coords: int = 4
    inputs: Optional[int] = None
    rescore: bool = False
    softmax: bool = False
    sqrt: bool = False
    forced: bool = False
    random: bool = False
    object_scale: float = DEFAULT_LOSS_CONFIG["object_scale"]
    noobject_scale: float = DEFAULT_LOSS_CONFIG["noobject_scale"]
    class_scale: float = DEFAULT_LOSS_CONFIG["class_scale"]
    coord_scale: float = DEFAULT_LOSS_CONFIG["coord_scale"]
    device: str = "cpu"
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("batch", "side", "n", "coords"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be a positive integer")
        if self.classes < 0:
            raise ValueError("classes must be a non-negative integer")
        if self.coords < 4:
            raise ValueError("coords must cover at least the four box fields")
        if self.forced and self.n < 2:
            raise ValueError("forced predictor selection requires at least two predictors per cell")
        if self.inputs is None:
            object.__setattr__(self, "inputs", self.layout.inputs)

    @property
    def layout(self) -> GridLayout:
        return GridLayout(side=self.side, n=self.n, classes=self.classes, coords=self.coords)

    @classmethod
    def from_config(cls, raw_config: Dict[str, Any]) -> "DetectionLayerConfig":
        section = raw_config.get("layer", {}) if "layer" in raw_config else raw_config
        inputs = section.get("inputs")
        seed = section.get("seed")
        return cls(
            batch=int(section.get("batch", 1)),
            side=int(section.get("side", 7)),
            n=int(section.get("n", section.get("num", 2))),
            classes=int(section.get("classes", 20)),
            coords=int(section.get("coords", 4)),
            inputs=int(inputs) if inputs is not None else None,
            rescore=bool(section.get("rescore", False)),
            softmax=bool(section.get("softmax", False)),
            sqrt=bool(section.get("sqrt", False)),
            forced=bool(section.get("forced", False)),
            random=bool(section.get("random", False)),
            object_scale=float(section.get("object_scale", DEFAULT_LOSS_CONFIG["object_scale"])),
            noobject_scale=float(section.get("noobject_scale", DEFAULT_LOSS_CONFIG["noobject_scale"])),
            class_scale=float(section.get("class_scale", DEFAULT_LOSS_CONFIG["class_scale"])),
            coord_scale=float(section.get("coord_scale", DEFAULT_LOSS_CONFIG["coord_scale"])),
            device=str(section.get("device", "cpu")),
            seed=int(seed) if seed is not None else None,
        )

    def resolve_device(self) -> torch.device:
        if self.device != "auto":
            return torch.device(self.device)
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")


@dataclass
class DetectionBundle:
    """Container for the assembled layer components."""

    layer: DetectionLayer
    criterion: DetectionCriterion
    bridge: Optional[HostDeviceBridge]
    metadata: Dict[str, Any]


def create_detection_layer(config: Dict[str, Any] | DetectionLayerConfig) -> DetectionBundle:
    """Build the detection layer, its device bridge and training criterion from configuration.

    Args:
        config: Either a mapping with a ``layer`` section (or the section itself) or an existing
            :class:`DetectionLayerConfig` instance.

    Returns:
        A :class:`DetectionBundle`. ``bridge`` is only set for non-CPU devices.
    """

    layer_config = config if isinstance(config, DetectionLayerConfig) else DetectionLayerConfig.from_config(config)

    layer = DetectionLayer(
        batch=layer_config.batch,
        inputs=int(layer_config.inputs),
        n=layer_config.n,
        side=layer_config.side,
        classes=layer_config.classes,
        coords=layer_config.coords,
        rescore=layer_config.rescore,
        softmax=layer_config.softmax,
        sqrt=layer_config.sqrt,
        forced=layer_config.forced,
        random=layer_config.random,
        object_scale=layer_config.object_scale,
        noobject_scale=layer_config.noobject_scale,
        class_scale=layer_config.class_scale,
        coord_scale=layer_config.coord_scale,
        seed=layer_config.seed,
    )

    device = layer_config.resolve_device()
    bridge = HostDeviceBridge(layer, device) if device.type != "cpu" else None
    criterion = DetectionCriterion(bridge if bridge is not None else layer)

    metadata = {
        "side": layer_config.side,
        "n": layer_config.n,
        "classes": layer_config.classes,
        "coords": layer_config.coords,
        "inputs": layer.inputs,
        "truths": layer.truths,
        "device": str(device),
    }
    LOGGER.debug("Created detection layer with %s", metadata)
    return DetectionBundle(layer=layer, criterion=criterion, bridge=bridge, metadata=metadata)
