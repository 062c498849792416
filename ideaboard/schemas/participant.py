from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ParticipantJoin(BaseModel):
    display_token: str = Field(..., min_length=1, max_length=128)

    model_config = ConfigDict(str_strip_whitespace=True)


class ParticipantResponse(BaseModel):
    participant_id: str
    session_id: str
    display_token: str
    joined_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CoAdminInviteResponse(BaseModel):
    session_id: str
    invite_token: str


class CoAdminJoinRequest(BaseModel):
    invite_token: str = Field(..., min_length=1)
    display_name: str = Field(..., max_length=200)


class CoAdminJoinResponse(BaseModel):
    session_id: str


class CoAdminResponse(BaseModel):
    co_admin_id: str
    session_id: str
    display_name: str
    is_active: bool
    joined_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CoAdminDetail(CoAdminResponse):
    """Includes the invite token; only returned to the session owner."""

    invite_token: str
