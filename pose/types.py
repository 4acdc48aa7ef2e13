from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np


# MediaPipe BlazePose topology
NUM_LANDMARKS = 33

L_SHOULDER, R_SHOULDER = 11, 12
L_HIP, R_HIP = 23, 24


class TopologyError(ValueError):
    """Raised when a frame does not carry exactly NUM_LANDMARKS landmarks."""


@dataclass(frozen=True)
class Landmark:
    x: float
    y: float
    z: Optional[float] = None
    confidence: float = 0.0

    def __post_init__(self) -> None:
        if not (0.0 <= self.confidence <= 1.0):
            raise ValueError("confidence must be in [0, 1]")


@dataclass(frozen=True)
class PoseFrame:
    """
    One detector sample: a fixed-length tuple of landmarks in topology order.

    Missing joints are carried with confidence 0, never omitted. A frame with
    the wrong landmark count is a collaborator contract breach and raises
    TopologyError on construction.
    """

    landmarks: Tuple[Landmark, ...]
    timestamp: int = 0

    def __post_init__(self) -> None:
        if len(self.landmarks) != NUM_LANDMARKS:
            raise TopologyError(
                f"expected {NUM_LANDMARKS} landmarks, got {len(self.landmarks)}"
            )
        if not isinstance(self.landmarks, tuple):
            object.__setattr__(self, "landmarks", tuple(self.landmarks))

    def __len__(self) -> int:
        return len(self.landmarks)

    def __getitem__(self, idx: int) -> Landmark:
        return self.landmarks[idx]

    def coords(self) -> np.ndarray:
        """(NUM_LANDMARKS, 3) float array; a missing z is reported as NaN."""
        return np.array(
            [
                (lm.x, lm.y, np.nan if lm.z is None else lm.z)
                for lm in self.landmarks
            ],
            dtype=np.float64,
        )

    def confidences(self) -> np.ndarray:
        return np.array([lm.confidence for lm in self.landmarks], dtype=np.float64)


# Arrival order is temporal order
PoseSequence = List[PoseFrame]


def _field(lm: Any, *names: str) -> Optional[float]:
    for name in names:
        if isinstance(lm, dict):
            value = lm.get(name)
        else:
            value = getattr(lm, name, None)
        if value is not None:
            return float(value)
    return None


def pose_frame_from_landmarks(
    landmarks: Optional[Sequence[Any]], timestamp: int = 0
) -> Optional[PoseFrame]:
    """Build a PoseFrame from raw detector landmarks.

    Accepts MediaPipe-style objects or dicts exposing x, y, optional z and a
    confidence given as ``confidence`` or ``visibility``. Returns None when the
    detector found no pose (empty or missing landmark list).
    """
    if landmarks is None or len(landmarks) == 0:
        return None
    if len(landmarks) != NUM_LANDMARKS:
        raise TopologyError(
            f"expected {NUM_LANDMARKS} landmarks, got {len(landmarks)}"
        )

    out: List[Landmark] = []
    for lm in landmarks:
        x = _field(lm, "x")
        y = _field(lm, "y")
        z = _field(lm, "z")
        conf = _field(lm, "confidence", "visibility")
        x = np.nan if x is None else x
        y = np.nan if y is None else y
        if z is not None and np.isnan(z):
            z = None
        # Clamp to [0,1]; unreadable confidence means the joint was not seen
        conf = 0.0 if conf is None or np.isnan(conf) else max(0.0, min(1.0, conf))
        if not (np.isfinite(x) and np.isfinite(y)):
            conf = 0.0
        out.append(Landmark(x=x, y=y, z=z, confidence=conf))

    return PoseFrame(landmarks=tuple(out), timestamp=int(timestamp))
