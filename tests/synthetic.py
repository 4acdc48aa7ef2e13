from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np

from pose.types import (
    L_HIP,
    L_SHOULDER,
    NUM_LANDMARKS,
    R_HIP,
    R_SHOULDER,
    Landmark,
    PoseFrame,
)


L_WRIST, R_WRIST = 15, 16
ANCHORS = (L_SHOULDER, R_SHOULDER, L_HIP, R_HIP)


def base_coords(seed: int = 7) -> np.ndarray:
    """Standing skeleton in image coordinates; torso length is 0.3."""
    rng = np.random.default_rng(seed)
    coords = rng.uniform(0.2, 0.8, size=(NUM_LANDMARKS, 2))
    coords[L_SHOULDER] = (0.4, 0.3)
    coords[R_SHOULDER] = (0.6, 0.3)
    coords[L_HIP] = (0.42, 0.6)
    coords[R_HIP] = (0.58, 0.6)
    return coords


def make_frame(
    coords: np.ndarray,
    *,
    confidence: float = 0.9,
    timestamp: int = 0,
    z: Optional[np.ndarray] = None,
    overrides: Optional[Dict[int, float]] = None,
) -> PoseFrame:
    overrides = overrides or {}
    landmarks = [
        Landmark(
            x=float(coords[i, 0]),
            y=float(coords[i, 1]),
            z=None if z is None or np.isnan(z[i]) else float(z[i]),
            confidence=float(overrides.get(i, confidence)),
        )
        for i in range(NUM_LANDMARKS)
    ]
    return PoseFrame(landmarks=tuple(landmarks), timestamp=timestamp)


def punch_coords(num_frames: int = 12, reach: float = 0.25) -> List[np.ndarray]:
    """A right-hand punch: the right wrist travels linearly along x."""
    out = []
    for k in range(num_frames):
        c = base_coords()
        c[R_WRIST, 0] = 0.6 + reach * k / max(1, num_frames - 1)
        c[R_WRIST, 1] = 0.35
        out.append(c)
    return out


def punch_sequence(num_frames: int = 12, *, confidence: float = 0.9) -> List[PoseFrame]:
    return [
        make_frame(c, confidence=confidence, timestamp=100 * k)
        for k, c in enumerate(punch_coords(num_frames))
    ]


def frame_payload(frame: PoseFrame) -> Dict[str, object]:
    return {
        "timestamp": frame.timestamp,
        "landmarks": [
            {"x": lm.x, "y": lm.y, "confidence": lm.confidence} for lm in frame.landmarks
        ],
    }
