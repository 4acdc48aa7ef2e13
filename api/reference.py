from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from pydantic import TypeAdapter

from api.schemas import FrameIn
from pose.types import PoseSequence


logger = logging.getLogger(__name__)

_FRAMES = TypeAdapter(List[FrameIn])


def frames_from_models(frames: Sequence[FrameIn]) -> PoseSequence:
    """Convert wire frames, skipping samples where the detector found no pose."""
    out: PoseSequence = []
    for f in frames:
        pf = f.to_pose_frame()
        if pf is not None:
            out.append(pf)
    return out


def parse_reference(document: Any) -> PoseSequence:
    """
    Validate a decoded reference document.

    Accepts a bare list of frames or an object with a "frames" list.
    Raises ValueError (incl. pydantic.ValidationError and TopologyError) on bad input.
    """
    if isinstance(document, dict):
        if "frames" not in document:
            raise ValueError("reference document has no 'frames' key")
        document = document["frames"]
    return frames_from_models(_FRAMES.validate_python(document))


def load_reference_sequence(source: Union[str, bytes, Path]) -> Optional[PoseSequence]:
    """
    Load one reference rep from JSON text, bytes or a file path.

    Any read, parse or validation failure is logged and yields None, which the
    matcher treats the same as a module without a reference (practice mode).
    """
    try:
        if isinstance(source, Path):
            source = source.read_bytes()
        frames = parse_reference(json.loads(source))
    except (OSError, ValueError) as exc:
        logger.warning("Rejected reference sequence: %s", exc)
        return None

    if not frames:
        logger.warning("Reference sequence contains no usable frames")
        return None
    logger.info("Loaded reference sequence with %d frames", len(frames))
    return frames
