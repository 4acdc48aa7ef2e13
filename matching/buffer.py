from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Optional

from pose.types import PoseFrame, PoseSequence
from .utils import MAX_BUFFER_FRAMES, POSE_THROTTLE_MS


logger = logging.getLogger(__name__)


class LiveBuffer:
    """
    Bounded, order-preserving store of the frames for the rep being attempted.

    - push() evicts the oldest frame once capacity is reached, so the most
      recent motion is always kept
    - drain() is the only way frames leave apart from eviction
    """

    def __init__(self, capacity: int = MAX_BUFFER_FRAMES) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = int(capacity)
        self._frames: Deque[PoseFrame] = deque(maxlen=self.capacity)

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, frame: PoseFrame) -> None:
        # deque(maxlen) evicts from the left
        self._frames.append(frame)

    def drain(self) -> PoseSequence:
        frames = list(self._frames)
        self._frames.clear()
        return frames

    def reset(self) -> None:
        self._frames.clear()


class FrameIngest:
    """Accepts detector frames, dropping those that arrive within throttle_ms of the last accepted one."""

    def __init__(self, buffer: LiveBuffer, *, throttle_ms: int = POSE_THROTTLE_MS) -> None:
        if throttle_ms < 0:
            raise ValueError("throttle_ms must be >= 0")
        self.buffer = buffer
        self.throttle_ms = int(throttle_ms)
        self._last_accepted_ms: Optional[int] = None

    def reset(self) -> None:
        self._last_accepted_ms = None

    def ingest(self, frame: Optional[PoseFrame], arrival_ms: int) -> bool:
        """Push the frame if it is due; returns False when it was dropped."""
        if frame is None:
            # No pose detected; does not advance the throttle clock
            return False
        if (
            self._last_accepted_ms is not None
            and arrival_ms - self._last_accepted_ms < self.throttle_ms
        ):
            logger.debug(
                "Dropped frame at %dms (%dms since last)",
                arrival_ms,
                arrival_ms - self._last_accepted_ms,
            )
            return False
        self._last_accepted_ms = int(arrival_ms)
        self.buffer.push(frame)
        return True
