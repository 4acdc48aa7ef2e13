from __future__ import annotations

import math
from typing import List, Optional

import numpy as np
import pytest

from matching.distance import evaluate, is_match, slot_distance
from pose.normalize import NormalizedFrame, normalize_sequence
from pose.resample import resample
from synthetic import punch_sequence


def _nf(points: List[List[float]], confident: Optional[List[bool]] = None, valid: bool = True) -> NormalizedFrame:
    pts = np.array(points, dtype=np.float64)
    mask = np.ones(len(pts), dtype=bool) if confident is None else np.array(confident, dtype=bool)
    return NormalizedFrame(points=pts, confident=mask, valid=valid)


def test_identical_sequences_score_zero():
    fixed = normalize_sequence(resample(punch_sequence(), 10))
    assert evaluate(fixed, fixed) == pytest.approx(0.0, abs=1e-12)


def test_slot_distance_is_mean_over_landmarks():
    a = _nf([[0, 0, 0], [1, 0, 0]])
    b = _nf([[0, 0, 0], [1, 2, 0]])
    # distances 0 and 2 -> mean 1
    assert slot_distance(a, b) == pytest.approx(1.0)


def test_low_confidence_in_either_frame_is_excluded_not_penalized():
    a = _nf([[0, 0, 0], [1, 0, 0]], confident=[True, False])
    b = _nf([[0, 0, 0], [5, 5, 0]])
    assert slot_distance(a, b) == pytest.approx(0.0)
    assert slot_distance(b, a) == pytest.approx(0.0)


def test_incomparable_slot_takes_max_observed_distance():
    live = [
        _nf([[0.2, 0, 0]]),
        _nf([[0, 0, 0]], confident=[False]),
        _nf([[0.4, 0, 0]]),
    ]
    ref = [_nf([[0, 0, 0]]) for _ in range(3)]
    assert evaluate(live, ref) == pytest.approx((0.2 + 0.4 + 0.4) / 3)


def test_invalid_frame_counts_as_incomparable():
    live = [_nf([[0.3, 0, 0]]), _nf([[0, 0, 0]], valid=False)]
    ref = [_nf([[0, 0, 0]]), _nf([[0, 0, 0]])]
    assert math.isnan(slot_distance(live[1], ref[1]))
    assert evaluate(live, ref) == pytest.approx(0.3)


def test_nothing_comparable_is_a_total_mismatch():
    live = [_nf([[0, 0, 0]], confident=[False]) for _ in range(4)]
    ref = [_nf([[0, 0, 0]]) for _ in range(4)]
    score = evaluate(live, ref)
    assert math.isinf(score)
    assert not is_match(score, 1e9)


def test_mismatched_slot_counts_raise():
    with pytest.raises(ValueError):
        evaluate([_nf([[0, 0, 0]])], [_nf([[0, 0, 0]]), _nf([[0, 0, 0]])])


def test_threshold_monotonicity():
    ref = normalize_sequence(resample(punch_sequence(), 10))
    live_frames = punch_sequence(17)
    live = normalize_sequence(resample(live_frames, 10))
    score = evaluate(live, ref)
    assert math.isfinite(score)
    t1 = score
    assert is_match(score, t1)
    for t2 in (t1, t1 + 1e-6, t1 + 0.1, 10.0):
        assert is_match(score, t2)
