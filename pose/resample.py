from __future__ import annotations

from typing import List, Sequence, TypeVar

import numpy as np


KEYFRAME_COUNT = 10

T = TypeVar("T")


def keyframe_indices(length: int, n: int) -> List[int]:
    """
    Source index picked for each of the n target slots.

    Slot k sits at k/(n-1) on [0, 1] and takes the source frame whose position
    i/(length-1) is nearest; ties go to the earlier frame.
    """
    if n < 1:
        raise ValueError("n must be >= 1")
    if length < 1:
        raise ValueError("cannot resample an empty sequence")
    if length == 1:
        return [0] * n
    if n == 1:
        return [0]

    src = np.arange(length, dtype=np.float64) / float(length - 1)
    targets = np.arange(n, dtype=np.float64) / float(n - 1)
    # argmin returns the first minimum, so ties resolve to the lower index
    dist = np.abs(targets[:, None] - src[None, :])
    return [int(i) for i in np.argmin(dist, axis=1)]


def resample(sequence: Sequence[T], n: int = KEYFRAME_COUNT) -> List[T]:
    """Nearest-neighbour resampling of a sequence onto n key-frames (no blending)."""
    return [sequence[i] for i in keyframe_indices(len(sequence), n)]
