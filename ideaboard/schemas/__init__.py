from .user import User, UserCreate, TokenRequest, LoginResponse
from .session import (
    FolderCreate,
    FolderResponse,
    SessionCreate,
    SessionUpdate,
    WorkshopSessionResponse,
)
from .idea import ClusterResponse, IdeaResponse
from .participant import CoAdminResponse, ParticipantResponse
from .voting import RoundResponse, RoundResults, VotingProgress

__all__ = [
    "User",
    "UserCreate",
    "TokenRequest",
    "LoginResponse",
    "FolderCreate",
    "FolderResponse",
    "SessionCreate",
    "SessionUpdate",
    "WorkshopSessionResponse",
    "ClusterResponse",
    "IdeaResponse",
    "CoAdminResponse",
    "ParticipantResponse",
    "RoundResponse",
    "RoundResults",
    "VotingProgress",
]
