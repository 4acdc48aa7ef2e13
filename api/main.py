from __future__ import annotations

import logging
import math
import os
import threading
import uuid
from dataclasses import replace
from typing import Dict

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from api.reference import frames_from_models
from api.schemas import (
    CreateSessionRequest,
    IngestRequest,
    IngestResponse,
    MatchResultOut,
    RepResponse,
    SessionStatus,
)
from matching.orchestrator import MatchResult, RepMatcher
from matching.utils import MatcherConfig
from pose.types import TopologyError


logging.basicConfig(
    level=os.getenv("REPMATCH_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Read once so an invalid REPMATCH_* value fails at startup, not per request
BASE_CONFIG = MatcherConfig.from_env()


app = FastAPI(title="Rep-Match API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


SESSIONS: Dict[str, RepMatcher] = {}
_SESSIONS_LOCK = threading.Lock()


def _get_session(session_id: str) -> RepMatcher:
    with _SESSIONS_LOCK:
        matcher = SESSIONS.get(session_id)
    if matcher is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return matcher


def _status(session_id: str, matcher: RepMatcher) -> SessionStatus:
    return SessionStatus(
        session_id=session_id,
        state=matcher.state.value,
        practice_mode=not matcher.has_reference,
        correct_reps=matcher.counters.correct_reps,
        attempted_reps=matcher.counters.attempted_reps,
        last_rep_correct=matcher.counters.last_rep_correct,
        required_reps=matcher.required_reps,
        is_complete=matcher.is_complete,
        buffered_frames=matcher.buffered_frames,
    )


def _result_out(result: MatchResult) -> MatchResultOut:
    # JSON has no representation for inf
    score = result.score if result.score is not None and math.isfinite(result.score) else None
    return MatchResultOut(
        matched=result.matched,
        reason=result.reason.value,
        score=score,
        frames=result.frames,
    )


@app.get("/healthz")
def healthz() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/sessions", response_model=SessionStatus, status_code=201)
def create_session(req: CreateSessionRequest) -> SessionStatus:
    config = BASE_CONFIG
    if req.match_threshold is not None:
        config = replace(config, match_threshold=req.match_threshold)
    try:
        reference = frames_from_models(req.reference) if req.reference else None
    except TopologyError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    matcher = RepMatcher(reference, config=config, required_reps=req.required_reps)
    session_id = str(uuid.uuid4())
    with _SESSIONS_LOCK:
        SESSIONS[session_id] = matcher
    logger.info(
        "Session %s created (practice_mode=%s, required_reps=%s)",
        session_id,
        not matcher.has_reference,
        req.required_reps,
    )
    return _status(session_id, matcher)


@app.get("/sessions/{session_id}", response_model=SessionStatus)
def get_session(session_id: str) -> SessionStatus:
    return _status(session_id, _get_session(session_id))


@app.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str) -> Response:
    with _SESSIONS_LOCK:
        matcher = SESSIONS.pop(session_id, None)
    if matcher is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    logger.info("Session %s closed after %d reps", session_id, matcher.counters.attempted_reps)
    return Response(status_code=204)


@app.post("/sessions/{session_id}/frames", response_model=IngestResponse)
def ingest_frames(session_id: str, req: IngestRequest) -> IngestResponse:
    matcher = _get_session(session_id)
    # Convert the whole batch first so a rejected batch leaves the session untouched
    try:
        frames = [(f.to_pose_frame(), f.timestamp) for f in req.frames]
    except TopologyError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    accepted = 0
    dropped = 0
    for frame, arrival_ms in frames:
        if matcher.ingest(frame, arrival_ms):
            accepted += 1
        else:
            dropped += 1
    return IngestResponse(accepted=accepted, dropped=dropped, buffered_frames=matcher.buffered_frames)


@app.post("/sessions/{session_id}/rep", response_model=RepResponse)
def complete_rep(session_id: str) -> RepResponse:
    matcher = _get_session(session_id)
    result = matcher.complete_rep()
    return RepResponse(result=_result_out(result), status=_status(session_id, matcher))


@app.post("/sessions/{session_id}/reset", response_model=SessionStatus)
def reset_session(session_id: str) -> SessionStatus:
    matcher = _get_session(session_id)
    matcher.reset()
    return _status(session_id, matcher)
