from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from pose.normalize import NormalizedFrame, normalize_sequence
from pose.resample import resample
from pose.types import PoseFrame, PoseSequence
from .buffer import FrameIngest, LiveBuffer
from .distance import evaluate, is_match
from .utils import MatcherConfig


logger = logging.getLogger(__name__)


class RepState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    EVALUATING = "evaluating"
    RESOLVED = "resolved"


class MatchReason(str, Enum):
    NOT_ENOUGH_FRAMES = "not_enough_frames"
    NO_REFERENCE = "no_reference"
    BELOW_THRESHOLD = "below_threshold"
    ABOVE_THRESHOLD = "above_threshold"


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    reason: MatchReason
    # Only set when the live rep was actually scored against the reference
    score: Optional[float] = None
    frames: int = 0


@dataclass
class RepCounters:
    correct_reps: int = 0
    attempted_reps: int = 0
    last_rep_correct: Optional[bool] = None


class RepMatcher:
    """
    Decides, per user-signalled repetition, whether the captured motion matches
    the module's reference repetition.

    - ingest(frame, arrival_ms): throttled buffering; IDLE -> CAPTURING on the first accepted frame
    - complete_rep(): drain, score and resolve a MatchResult; back to IDLE
    - reset(): discard the attempt without a result

    A reference shorter than min_frames_for_rep counts as no reference
    (practice mode), where every attempted rep is credited.
    """

    def __init__(
        self,
        reference: Optional[PoseSequence] = None,
        *,
        config: Optional[MatcherConfig] = None,
        required_reps: Optional[int] = None,
        on_result: Optional[Callable[[MatchResult], None]] = None,
    ) -> None:
        if required_reps is not None and required_reps < 1:
            raise ValueError("required_reps must be >= 1")
        self.config = config or MatcherConfig()
        self.required_reps = required_reps
        self.on_result = on_result
        self.counters = RepCounters()
        self.state = RepState.IDLE

        self._lock = threading.Lock()
        self._buffer = LiveBuffer(self.config.max_buffer_frames)
        self._ingest = FrameIngest(self._buffer, throttle_ms=self.config.throttle_ms)
        self._reference: Optional[Tuple[PoseFrame, ...]] = None
        self._reference_fixed: Optional[List[NormalizedFrame]] = None
        self.set_reference(reference)

    @property
    def has_reference(self) -> bool:
        return self._reference is not None

    @property
    def buffered_frames(self) -> int:
        return len(self._buffer)

    @property
    def correct_reps(self) -> int:
        return self.counters.correct_reps

    @property
    def last_rep_correct(self) -> Optional[bool]:
        return self.counters.last_rep_correct

    @property
    def is_complete(self) -> bool:
        return self.required_reps is not None and self.counters.correct_reps >= self.required_reps

    def set_reference(self, reference: Optional[PoseSequence]) -> None:
        """Install the module's reference rep (None for practice mode) and restart the attempt."""
        with self._lock:
            if reference is None or len(reference) < self.config.min_frames_for_rep:
                if reference:
                    logger.warning(
                        "Reference has %d frames (< %d); using practice mode",
                        len(reference),
                        self.config.min_frames_for_rep,
                    )
                self._reference = None
                self._reference_fixed = None
            else:
                self._reference = tuple(reference)
                self._reference_fixed = self._prepare(self._reference)
            self._clear()

    def ingest(self, frame: Optional[PoseFrame], arrival_ms: int) -> bool:
        with self._lock:
            accepted = self._ingest.ingest(frame, arrival_ms)
            if accepted and self.state == RepState.IDLE:
                self.state = RepState.CAPTURING
            return accepted

    def reset(self) -> None:
        with self._lock:
            self._clear()

    def complete_rep(self) -> MatchResult:
        with self._lock:
            self.state = RepState.EVALUATING
            frames = self._buffer.drain()
            result = self._decide(frames)

            self.state = RepState.RESOLVED
            self.counters.attempted_reps += 1
            if result.matched:
                self.counters.correct_reps += 1
            self.counters.last_rep_correct = result.matched
            logger.info(
                "Rep %d resolved: matched=%s reason=%s score=%s frames=%d",
                self.counters.attempted_reps,
                result.matched,
                result.reason.value,
                result.score,
                result.frames,
            )
            # Buffer is already empty; the throttle clock carries over into the next rep
            self.state = RepState.IDLE

        if self.on_result is not None:
            self.on_result(result)
        return result

    def _decide(self, frames: PoseSequence) -> MatchResult:
        n_frames = len(frames)
        if self._reference_fixed is None:
            return MatchResult(matched=True, reason=MatchReason.NO_REFERENCE, frames=n_frames)
        if n_frames < self.config.min_frames_for_rep:
            return MatchResult(matched=False, reason=MatchReason.NOT_ENOUGH_FRAMES, frames=n_frames)

        score = evaluate(self._prepare(frames), self._reference_fixed)
        logger.debug("Rep score %.4f (threshold %.4f)", score, self.config.match_threshold)
        if is_match(score, self.config.match_threshold):
            return MatchResult(matched=True, reason=MatchReason.BELOW_THRESHOLD, score=score, frames=n_frames)
        return MatchResult(matched=False, reason=MatchReason.ABOVE_THRESHOLD, score=score, frames=n_frames)

    def _prepare(self, frames: Sequence[PoseFrame]) -> List[NormalizedFrame]:
        keyframes = resample(frames, self.config.keyframe_count)
        return normalize_sequence(keyframes, min_confidence=self.config.min_landmark_confidence)

    def _clear(self) -> None:
        self._buffer.reset()
        self._ingest.reset()
        self.state = RepState.IDLE
