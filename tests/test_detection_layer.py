'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-05 10:30:00
 #  Modified time: 2025-11-07 10:05:00
 #  Description: Lifecycle tests for the detection layer and its host/device bridge.
'''

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import torch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models import DetectionLayer, GridLayout, HostDeviceBridge


def _object_truth(layout: GridLayout, batch: int = 1) -> torch.Tensor:
    truth = torch.zeros(batch * layout.truths)
    truth[layout.truth_index(0, 0)] = 1.0
    truth[layout.truth_class_index(0, 0, 0)] = 1.0
    start = layout.truth_box_index(0, 0)
    truth[start : start + 4] = torch.tensor([0.5, 0.5, 0.3, 0.3])
    return truth


@pytest.mark.parametrize(
    ("batch", "n", "side", "classes", "coords"),
    [(1, 2, 7, 20, 4), (4, 1, 2, 1, 4), (2, 3, 5, 0, 4), (1, 2, 3, 3, 5)],
)
def test_construction_requires_dimensional_identity(batch: int, n: int, side: int, classes: int, coords: int) -> None:
    inputs = side * side * ((1 + coords) * n + classes)
    layer = DetectionLayer(batch, inputs, n, side, classes, coords)
    assert layer.output.numel() == batch * inputs
    assert layer.delta.numel() == batch * inputs
    assert layer.truths == side * side * (1 + coords + classes)

    with pytest.raises(ValueError):
        DetectionLayer(batch, inputs + 1, n, side, classes, coords)
    with pytest.raises(ValueError):
        DetectionLayer(batch, inputs - 1, n, side, classes, coords)


def test_output_is_a_copy_of_predictions() -> None:
    layout = GridLayout(side=2, n=1, classes=2)
    layer = DetectionLayer(1, layout.inputs, 1, 2, 2)
    predictions = torch.rand(layout.inputs)

    layer.forward(predictions, train=False)
    predictions.zero_()

    assert float(layer.output.abs().sum()) > 0.0


def test_inference_forward_does_not_touch_delta_or_cost() -> None:
    layout = GridLayout(side=2, n=1, classes=2)
    layer = DetectionLayer(1, layout.inputs, 1, 2, 2)
    delta, cost = layer.forward(torch.rand(layout.inputs), train=False)
    assert cost == 0.0
    assert float(delta.abs().sum()) == 0.0
    assert layer.diagnostics is None


def test_prediction_size_is_checked() -> None:
    layout = GridLayout(side=2, n=1, classes=2)
    layer = DetectionLayer(2, layout.inputs, 1, 2, 2)
    with pytest.raises(ValueError):
        layer.forward(torch.zeros(layout.inputs), train=False)
    with pytest.raises(ValueError):
        layer.forward(torch.zeros(2 * layout.inputs), torch.zeros(layout.truths), train=True)


def test_softmax_normalises_class_scores_per_cell() -> None:
    layout = GridLayout(side=2, n=1, classes=3)
    layer = DetectionLayer(1, layout.inputs, 1, 2, 3, softmax=True)
    predictions = torch.rand(layout.inputs) * 4

    layer.forward(predictions, train=False)

    views = layout.views(layer.output, 1)
    assert torch.allclose(views.classes.sum(dim=-1), torch.ones(1, layout.locations))
    assert torch.equal(views.objectness, layout.views(predictions, 1).objectness)


def test_backward_accumulates_delta_into_upstream_buffer() -> None:
    layout = GridLayout(side=2, n=2, classes=1)
    layer = DetectionLayer(1, layout.inputs, 2, 2, 1, seed=0)
    delta, _ = layer.forward(torch.rand(layout.inputs), _object_truth(layout), train=True)

    upstream = torch.ones(layout.inputs)
    layer.backward(upstream)
    assert torch.allclose(upstream, 1.0 + delta)

    layer.backward(upstream)
    assert torch.allclose(upstream, 1.0 + 2 * delta)


def test_bridge_short_circuits_inference() -> None:
    layout = GridLayout(side=2, n=1, classes=2)
    layer = DetectionLayer(1, layout.inputs, 1, 2, 2)
    bridge = HostDeviceBridge(layer, "cpu")
    predictions = torch.rand(layout.inputs)

    bridge.forward(predictions, None, train=True)

    assert torch.equal(bridge.output, predictions)
    assert float(layer.output.abs().sum()) == 0.0


def test_bridge_round_trip_matches_host_layer() -> None:
    layout = GridLayout(side=2, n=2, classes=1)
    predictions = torch.rand(layout.inputs)
    truth = _object_truth(layout)

    host = DetectionLayer(1, layout.inputs, 2, 2, 1, seed=0)
    host_delta, host_cost = host.forward(predictions, truth, train=True)

    bridged = DetectionLayer(1, layout.inputs, 2, 2, 1, seed=0)
    bridge = HostDeviceBridge(bridged, "cpu")
    delta, cost = bridge.forward(predictions, truth, train=True)

    assert cost == pytest.approx(host_cost)
    assert torch.allclose(delta, host_delta)
    assert torch.allclose(bridge.output, predictions)

    upstream = torch.zeros(layout.inputs)
    bridge.backward(upstream)
    assert torch.allclose(upstream, host_delta)


def test_forced_selection_needs_two_predictors() -> None:
    layout = GridLayout(side=2, n=1, classes=1)
    with pytest.raises(ValueError):
        DetectionLayer(1, layout.inputs, 1, 2, 1, forced=True)

    wider = GridLayout(side=2, n=2, classes=1)
    layer = DetectionLayer(1, wider.inputs, 2, 2, 1, forced=True)
    assert layer.matcher.forced is True


def test_bridge_decodes_inference_output() -> None:
    layout = GridLayout(side=2, n=1, classes=2)
    layer = DetectionLayer(1, layout.inputs, 1, 2, 2)
    bridge = HostDeviceBridge(layer, "cpu")
    predictions = torch.zeros(layout.inputs)
    predictions[layout.objectness_index(0, 3, 0)] = 0.8
    predictions[layout.class_index(0, 3, 0)] = 0.5
    start = layout.box_index(0, 3, 0)
    predictions[start : start + 4] = torch.tensor([0.5, 0.25, 0.5, 0.4])

    bridge.forward(predictions, None, train=False)
    detections = bridge.get_detections(100, 200, 0.0)

    assert len(detections) == layout.locations
    assert detections[3].objectness == pytest.approx(0.8)
    assert detections[3].bbox.to_list() == pytest.approx([75.0, 125.0, 50.0, 80.0], rel=1e-5)
    assert detections[3].prob == pytest.approx([0.4, 0.0], rel=1e-5)
    assert torch.equal(layer.output, bridge.output)
