from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .types import L_HIP, L_SHOULDER, R_HIP, R_SHOULDER, PoseFrame


# Shoulder-centre to hip-centre lengths below this are a degenerate pose
NORMALIZE_EPSILON = 1e-6
MIN_LANDMARK_CONFIDENCE = 0.3


@dataclass(frozen=True, eq=False)
class NormalizedFrame:
    """
    A PoseFrame in canonical, translation- and scale-free coordinates.

    - points: (N, 3) array relative to the hip-centre, in torso-length units
    - confident: (N,) bool mask, False for low-confidence or non-finite landmarks
    - valid: False when the torso reference length is degenerate; points are NaN
    """

    points: np.ndarray
    confident: np.ndarray
    valid: bool


def _midpoint(coords: np.ndarray, a: int, b: int) -> np.ndarray:
    return (coords[a] + coords[b]) / 2.0


def normalize(
    frame: PoseFrame,
    *,
    min_confidence: float = MIN_LANDMARK_CONFIDENCE,
    epsilon: float = NORMALIZE_EPSILON,
) -> NormalizedFrame:
    """
    Translate by the hip-centre and scale by the shoulder-centre/hip-centre distance.

    Depth takes part only when both shoulders and both hips report z; otherwise
    the frame is compared in the image plane and z is zeroed. Landmarks without
    z in a 3D frame sit at the anchor depth.
    """
    coords = frame.coords()
    conf = frame.confidences()

    anchors = (L_SHOULDER, R_SHOULDER, L_HIP, R_HIP)
    use_depth = all(np.isfinite(coords[i, 2]) for i in anchors)

    hip_center = _midpoint(coords, L_HIP, R_HIP)
    shoulder_center = _midpoint(coords, L_SHOULDER, R_SHOULDER)
    if use_depth:
        coords[:, 2] = np.where(np.isfinite(coords[:, 2]), coords[:, 2], hip_center[2])
    else:
        coords[:, 2] = 0.0
        hip_center[2] = 0.0
        shoulder_center[2] = 0.0

    confident = (conf >= float(min_confidence)) & np.all(np.isfinite(coords), axis=1)

    if not (np.all(np.isfinite(hip_center)) and np.all(np.isfinite(shoulder_center))):
        return _invalid(len(coords), confident)

    scale = float(np.linalg.norm(shoulder_center - hip_center))
    if scale < epsilon:
        return _invalid(len(coords), confident)

    points = (coords - hip_center) / scale
    return NormalizedFrame(points=points, confident=confident, valid=True)


def _invalid(num_landmarks: int, confident: np.ndarray) -> NormalizedFrame:
    return NormalizedFrame(
        points=np.full((num_landmarks, 3), np.nan, dtype=np.float64),
        confident=confident,
        valid=False,
    )


def normalize_sequence(
    frames: Sequence[PoseFrame],
    *,
    min_confidence: float = MIN_LANDMARK_CONFIDENCE,
) -> List[NormalizedFrame]:
    return [normalize(f, min_confidence=min_confidence) for f in frames]
