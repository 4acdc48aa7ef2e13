from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from pose.normalize import NormalizedFrame


logger = logging.getLogger(__name__)


def slot_distance(live: NormalizedFrame, reference: NormalizedFrame) -> float:
    """
    Mean Euclidean distance over landmarks confident in both frames.

    Returns NaN when nothing is comparable (either frame invalid, or no landmark
    confident in both). Low-confidence landmarks are excluded, not penalized.
    """
    if not (live.valid and reference.valid):
        return float("nan")
    mask = live.confident & reference.confident
    if not np.any(mask):
        return float("nan")
    diffs = live.points[mask] - reference.points[mask]
    return float(np.mean(np.linalg.norm(diffs, axis=1)))


def slot_distances(
    live_fixed: Sequence[NormalizedFrame], reference_fixed: Sequence[NormalizedFrame]
) -> List[float]:
    if len(live_fixed) != len(reference_fixed):
        raise ValueError("live and reference key-frame counts differ")
    return [slot_distance(a, b) for a, b in zip(live_fixed, reference_fixed)]


def evaluate(
    live_fixed: Sequence[NormalizedFrame], reference_fixed: Sequence[NormalizedFrame]
) -> float:
    """
    Aggregate dissimilarity between two resampled sequences (lower is better).

    A slot with no comparable landmarks takes the largest distance observed in
    the sequence, so lost tracking counts as a mismatch. If no slot is
    comparable at all the score is +inf.
    """
    dists = np.array(slot_distances(live_fixed, reference_fixed), dtype=np.float64)
    if dists.size == 0:
        raise ValueError("cannot evaluate empty key-frame sequences")

    finite = np.isfinite(dists)
    if not np.any(finite):
        logger.warning("No comparable landmarks in any of %d key-frames", dists.size)
        return float("inf")
    if not np.all(finite):
        dists[~finite] = float(np.max(dists[finite]))
    return float(np.mean(dists))


def is_match(score: float, threshold: float) -> bool:
    return bool(np.isfinite(score) and score <= threshold)
