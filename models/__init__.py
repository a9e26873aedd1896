'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-31 11:20:00
 # @ Modified time: 2025-11-05 13:20:00
 # @ Description: Public interface for the grid detection layer and its helpers.
 # @ Description (Legacy): This module exposes the layer, its configuration factory, the ground-truth
 #      encoder and the decoded detection record.
'''

from .criterion import DetectionCriterion
from .decoder import Detection, InferenceDecoder
from .detection_layer import DetectionLayer
from .device_bridge import HostDeviceBridge
from .factory import DetectionBundle, DetectionLayerConfig, create_detection_layer
from .geometry import Box, box_iou, box_rmse
from .layout import GridLayout
from .losses import DEFAULT_LOSS_CONFIG, DetectionDiagnostics, GridDetectionLoss, build_loss
from .matcher import NO_MATCH, PredictorMatcher
from .targets import GroundTruthEncoder

__all__ = [
    "Box",
    "box_iou",
    "box_rmse",
    "GridLayout",
    "PredictorMatcher",
    "NO_MATCH",
    "GridDetectionLoss",
    "DEFAULT_LOSS_CONFIG",
    "build_loss",
    "DetectionDiagnostics",
    "InferenceDecoder",
    "Detection",
    "DetectionLayer",
    "HostDeviceBridge",
    "DetectionCriterion",
    "GroundTruthEncoder",
    "DetectionLayerConfig",
    "DetectionBundle",
    "create_detection_layer",
]
