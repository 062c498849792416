from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ideaboard.models.session import RevealMode, SessionPhase, SessionStatus


class SessionCreate(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)
    participant_visibility: Optional[bool] = None
    folder_id: Optional[str] = None


class SessionUpdate(BaseModel):
    """Only the fields that are sent are changed."""

    question: Optional[str] = Field(None, min_length=1, max_length=2000)
    participant_visibility: Optional[bool] = None
    reveal_mode: Optional[RevealMode] = None
    status: Optional[SessionStatus] = None


class PhaseRevertRequest(BaseModel):
    target_phase: SessionPhase


class PhaseResponse(BaseModel):
    session_id: str
    phase: SessionPhase


class TimerStartRequest(BaseModel):
    seconds: int = Field(..., gt=0, le=24 * 60 * 60)


class MoveToFolderRequest(BaseModel):
    folder_id: Optional[str] = None


class WorkshopSessionResponse(BaseModel):
    session_id: str
    owner_id: str
    folder_id: Optional[str] = None
    question: str
    short_code: str
    phase: SessionPhase
    status: SessionStatus
    participant_visibility: bool
    reveal_mode: RevealMode
    timer_enabled: bool
    timer_seconds: Optional[int] = None
    timer_started_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SessionListResponse(BaseModel):
    sessions: List[WorkshopSessionResponse] = Field(default_factory=list)


class ParticipantCountResponse(BaseModel):
    session_id: str
    count: int


class FolderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class FolderResponse(BaseModel):
    folder_id: str
    owner_id: str
    name: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
