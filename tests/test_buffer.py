from __future__ import annotations

import pytest

from matching.buffer import FrameIngest, LiveBuffer
from matching.utils import MAX_BUFFER_FRAMES
from synthetic import base_coords, make_frame


_COORDS = base_coords()


def _frame(ts: int):
    return make_frame(_COORDS, timestamp=ts)


def test_buffer_never_exceeds_cap_and_keeps_newest():
    buf = LiveBuffer()
    for ts in range(250):
        buf.push(_frame(ts))
        assert len(buf) <= MAX_BUFFER_FRAMES
    frames = buf.drain()
    assert len(frames) == MAX_BUFFER_FRAMES
    assert frames[-1].timestamp == 249
    # Drop-oldest: the first 130 frames were evicted
    assert frames[0].timestamp == 130
    assert [f.timestamp for f in frames] == list(range(130, 250))


def test_drain_empties_and_reset_discards():
    buf = LiveBuffer(capacity=4)
    for ts in range(3):
        buf.push(_frame(ts))
    assert len(buf.drain()) == 3
    assert len(buf) == 0
    buf.push(_frame(9))
    buf.reset()
    assert buf.drain() == []


def test_invalid_capacity():
    with pytest.raises(ValueError):
        LiveBuffer(capacity=0)


def test_throttle_drops_frames_within_interval():
    buf = LiveBuffer()
    ingest = FrameIngest(buf, throttle_ms=100)
    arrivals = [0, 50, 99, 100, 150, 250, 349, 350]
    accepted = [ingest.ingest(_frame(t), t) for t in arrivals]
    assert accepted == [True, False, False, True, False, True, False, True]
    assert [f.timestamp for f in buf.drain()] == [0, 100, 250, 350]


def test_missing_pose_is_dropped_without_advancing_clock():
    buf = LiveBuffer()
    ingest = FrameIngest(buf, throttle_ms=100)
    assert ingest.ingest(_frame(0), 0)
    assert not ingest.ingest(None, 120)
    assert ingest.ingest(_frame(110), 110)
    assert len(buf) == 2


def test_reset_allows_immediate_accept():
    buf = LiveBuffer()
    ingest = FrameIngest(buf, throttle_ms=100)
    assert ingest.ingest(_frame(0), 1000)
    ingest.reset()
    assert ingest.ingest(_frame(0), 1001)
