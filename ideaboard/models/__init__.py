# Import models to make them accessible via ideaboard.models
# and ensure they are registered with SQLAlchemy's Base metadata
from .user import User
from .folder import Folder
from .session import (
    PHASE_ORDER,
    RevealMode,
    SessionPhase,
    SessionStatus,
    WorkshopSession,
)
from .participant import CoAdmin, Participant
from .idea import Cluster, Idea
from .voting import Vote, VotingMode, VotingRound

__all__ = [
    "User",
    "Folder",
    "WorkshopSession",
    "SessionPhase",
    "SessionStatus",
    "RevealMode",
    "PHASE_ORDER",
    "Participant",
    "CoAdmin",
    "Idea",
    "Cluster",
    "VotingRound",
    "Vote",
    "VotingMode",
]
