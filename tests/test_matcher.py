'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-04 09:30:00
 #  Modified time: 2025-11-04 09:30:00
 #  Description: Tests for responsible-predictor selection.
'''

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import torch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models.matcher import NO_MATCH, RANDOM_WARMUP_SEEN, PredictorMatcher

TRUTH = [0.5, 0.5, 0.1, 0.1]


def test_absent_object_never_matches() -> None:
    matcher = PredictorMatcher(side=1)
    candidates = [TRUTH, TRUTH]
    assert matcher.match(False, TRUTH, candidates) == NO_MATCH


def test_absent_object_ignores_overrides() -> None:
    matcher = PredictorMatcher(side=1, forced=True, random=True)
    assert matcher.match(False, TRUTH, [TRUTH, TRUTH], seen=0) == NO_MATCH


def test_single_overlapping_candidate_is_selected() -> None:
    matcher = PredictorMatcher(side=1)
    candidates = [
        [0.9, 0.9, 0.1, 0.1],
        [0.52, 0.5, 0.1, 0.1],
        [0.1, 0.1, 0.1, 0.1],
    ]
    assert matcher.match(True, TRUTH, candidates) == 1


def test_highest_iou_wins() -> None:
    matcher = PredictorMatcher(side=1)
    candidates = [
        [0.54, 0.5, 0.1, 0.1],
        [0.51, 0.5, 0.1, 0.1],
        [0.53, 0.5, 0.1, 0.1],
    ]
    assert matcher.match(True, TRUTH, candidates) == 1


def test_minimum_rmse_wins_without_overlap() -> None:
    matcher = PredictorMatcher(side=1)
    candidates = [
        [2.0, 2.0, 0.1, 0.1],
        [0.9, 0.9, 0.1, 0.1],
        [1.5, 1.5, 0.1, 0.1],
    ]
    assert matcher.match(True, TRUTH, candidates) == 1


def test_overlap_locks_out_later_rmse_comparisons() -> None:
    matcher = PredictorMatcher(side=1)
    closer_without_overlap = [0.65, 0.5, 0.1, 0.1]
    candidates = [
        [0.9, 0.9, 0.1, 0.1],
        [0.59, 0.5, 0.1, 0.1],
        closer_without_overlap,
    ]
    assert matcher.match(True, TRUTH, candidates) == 1
    assert matcher.match(True, TRUTH, [candidates[0], closer_without_overlap]) == 1


def test_candidates_accept_tensors() -> None:
    matcher = PredictorMatcher(side=1)
    candidates = torch.tensor([[0.9, 0.9, 0.1, 0.1], [0.5, 0.5, 0.1, 0.1]])
    assert matcher.match(True, torch.tensor(TRUTH), candidates) == 1


def test_frames_are_divided_by_side() -> None:
    matcher = PredictorMatcher(side=2)
    truth = matcher.align_truth([1.0, 0.5, 0.3, 0.3])
    assert (truth.x, truth.y, truth.w, truth.h) == pytest.approx((0.5, 0.25, 0.3, 0.3))


def test_square_root_encoding_is_undone_before_comparison() -> None:
    matcher = PredictorMatcher(side=1, sqrt=True)
    out = matcher.align_prediction([0.5, 0.5, 0.5, 0.4])
    assert (out.w, out.h) == pytest.approx((0.25, 0.16))

    truth = [0.5, 0.5, 0.25, 0.25]
    candidates = [[0.5, 0.5, 0.25, 0.25], [0.5, 0.5, 0.5, 0.5]]
    assert matcher.match(True, truth, candidates) == 1


@pytest.mark.parametrize(
    ("truth", "expected"),
    [
        ([0.5, 0.5, 0.5, 0.5], 0),
        ([0.5, 0.5, 0.5, 0.2], 0),
        ([0.5, 0.5, 0.2, 0.2], 1),
    ],
)
def test_forced_selection_depends_only_on_object_area(truth: list[float], expected: int) -> None:
    matcher = PredictorMatcher(side=1, forced=True)
    candidates = [[5.0, 5.0, 0.1, 0.1], truth, [5.0, 5.0, 0.1, 0.1]]
    if expected == 1:
        candidates = [truth, [5.0, 5.0, 0.1, 0.1]]
    assert matcher.match(True, truth, candidates) == expected


def test_random_selection_during_warmup() -> None:
    generator = torch.Generator().manual_seed(7)
    matcher = PredictorMatcher(side=1, random=True, generator=generator)
    candidates = [[0.9, 0.9, 0.1, 0.1], TRUTH, [0.1, 0.1, 0.1, 0.1]]

    picks = {matcher.match(True, TRUTH, candidates, seen=0) for _ in range(64)}
    assert picks <= {0, 1, 2}
    assert len(picks) > 1


def test_random_selection_stops_after_warmup() -> None:
    matcher = PredictorMatcher(side=1, random=True, generator=torch.Generator().manual_seed(0))
    candidates = [[0.9, 0.9, 0.1, 0.1], TRUTH, [0.1, 0.1, 0.1, 0.1]]
    for _ in range(16):
        assert matcher.match(True, TRUTH, candidates, seen=RANDOM_WARMUP_SEEN) == 1
