from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from pose.types import PoseFrame, pose_frame_from_landmarks


class LandmarkIn(BaseModel):
    x: float
    y: float
    z: Optional[float] = None
    # MediaPipe reports this as "visibility"
    confidence: float = Field(0.0, validation_alias=AliasChoices("confidence", "visibility"))


class FrameIn(BaseModel):
    landmarks: List[LandmarkIn]
    timestamp: int = Field(0, ge=0, description="Detector time in ms; used as arrival time")

    def to_pose_frame(self) -> Optional[PoseFrame]:
        return pose_frame_from_landmarks(self.landmarks, timestamp=self.timestamp)


class CreateSessionRequest(BaseModel):
    reference: Optional[List[FrameIn]] = None
    required_reps: Optional[int] = Field(default=None, ge=1)
    match_threshold: Optional[float] = Field(default=None, ge=0.0)


class IngestRequest(BaseModel):
    frames: List[FrameIn]


class IngestResponse(BaseModel):
    accepted: int = Field(0, ge=0)
    dropped: int = Field(0, ge=0)
    buffered_frames: int = Field(0, ge=0)


class SessionStatus(BaseModel):
    session_id: str
    state: str = Field(description="idle | capturing | evaluating | resolved")
    practice_mode: bool
    correct_reps: int = Field(0, ge=0)
    attempted_reps: int = Field(0, ge=0)
    last_rep_correct: Optional[bool] = None
    required_reps: Optional[int] = None
    is_complete: bool = False
    buffered_frames: int = Field(0, ge=0)


class MatchResultOut(BaseModel):
    matched: bool
    reason: str = Field(description="not_enough_frames | no_reference | below_threshold | above_threshold")
    score: Optional[float] = Field(default=None, description="null when not scored or nothing was comparable")
    frames: int = Field(0, ge=0)


class RepResponse(BaseModel):
    result: MatchResultOut
    status: SessionStatus
