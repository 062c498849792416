from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class IdeaCreate(BaseModel):
    # Length limits come from config and are enforced by the manager.
    text: str


class IdeaTextUpdate(BaseModel):
    text: str


class IdeaMove(BaseModel):
    position_x: float
    position_y: float


class IdeaClusterAssignment(BaseModel):
    cluster_id: Optional[str] = None


class IdeaResponse(BaseModel):
    idea_id: str
    session_id: str
    participant_id: Optional[str] = None
    text: str
    cluster_id: Optional[str] = None
    position_x: float
    position_y: float
    color: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ClusterCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=200)
    position_x: float = 0
    position_y: float = 0
    color: Optional[str] = Field(None, max_length=16)


class ClusterUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=200)
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    width: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    color: Optional[str] = Field(None, max_length=16)


class ClusterResponse(BaseModel):
    cluster_id: str
    session_id: str
    label: str
    position_x: float
    position_y: float
    width: Optional[float] = None
    height: Optional[float] = None
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
