from __future__ import annotations

import os
from dataclasses import dataclass

from pose.normalize import MIN_LANDMARK_CONFIDENCE
from pose.resample import KEYFRAME_COUNT


# Default thresholds for comparing a live rep against a reference rep.
# Tunable per module; not confirmed production constants.
DEFAULT_MATCH_THRESHOLD = 0.15

MIN_FRAMES_FOR_REP = 5
MAX_BUFFER_FRAMES = 120
POSE_THROTTLE_MS = 100


def _get_env_int(name: str, default: int) -> int:
    try:
        return int(str(os.getenv(name, str(default))).strip())
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    try:
        return float(str(os.getenv(name, str(default))).strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class MatcherConfig:
    """Tunables for one RepMatcher; defaults mirror the module constants."""

    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    keyframe_count: int = KEYFRAME_COUNT
    min_frames_for_rep: int = MIN_FRAMES_FOR_REP
    max_buffer_frames: int = MAX_BUFFER_FRAMES
    throttle_ms: int = POSE_THROTTLE_MS
    min_landmark_confidence: float = MIN_LANDMARK_CONFIDENCE

    def __post_init__(self) -> None:
        if not (self.match_threshold >= 0.0):
            raise ValueError("match_threshold must be >= 0")
        if self.keyframe_count < 1:
            raise ValueError("keyframe_count must be >= 1")
        if self.min_frames_for_rep < 1:
            raise ValueError("min_frames_for_rep must be >= 1")
        if self.max_buffer_frames < self.min_frames_for_rep:
            raise ValueError("max_buffer_frames must be >= min_frames_for_rep")
        if self.throttle_ms < 0:
            raise ValueError("throttle_ms must be >= 0")
        if not (0.0 <= self.min_landmark_confidence <= 1.0):
            raise ValueError("min_landmark_confidence must be in [0, 1]")

    @classmethod
    def from_env(cls) -> "MatcherConfig":
        """Read REPMATCH_* overrides; unparseable values keep the default."""
        return cls(
            match_threshold=_get_env_float("REPMATCH_MATCH_THRESHOLD", DEFAULT_MATCH_THRESHOLD),
            keyframe_count=_get_env_int("REPMATCH_KEYFRAME_COUNT", KEYFRAME_COUNT),
            min_frames_for_rep=_get_env_int("REPMATCH_MIN_FRAMES", MIN_FRAMES_FOR_REP),
            max_buffer_frames=_get_env_int("REPMATCH_MAX_BUFFER", MAX_BUFFER_FRAMES),
            throttle_ms=_get_env_int("REPMATCH_THROTTLE_MS", POSE_THROTTLE_MS),
            min_landmark_confidence=_get_env_float(
                "REPMATCH_MIN_CONFIDENCE", MIN_LANDMARK_CONFIDENCE
            ),
        )
