from datetime import datetime, UTC
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ideaboard.database import Base
from ideaboard.utils.identifiers import generate_id


class SessionPhase(str, Enum):
    COLLECT = "collect"
    ORGANIZE = "organize"
    VOTE = "vote"
    RESULTS = "results"


# Forward order of the workshop; revert may only move left along it.
PHASE_ORDER = [
    SessionPhase.COLLECT.value,
    SessionPhase.ORGANIZE.value,
    SessionPhase.VOTE.value,
    SessionPhase.RESULTS.value,
]


class SessionStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class RevealMode(str, Enum):
    LIVE = "live"
    REVEAL = "reveal"


class WorkshopSession(Base):
    """One facilitated workshop built around a single question."""

    __tablename__ = "sessions"

    session_id = Column(String(36), primary_key=True, index=True, default=generate_id)
    owner_id = Column(
        String(36),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    folder_id = Column(
        String(36),
        ForeignKey("folders.folder_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    question = Column(Text, nullable=False)
    short_code = Column(String(6), unique=True, index=True, nullable=True)
    phase = Column(String(16), nullable=False, default=SessionPhase.COLLECT.value)
    status = Column(
        String(16), nullable=False, default=SessionStatus.ACTIVE.value, index=True
    )
    participant_visibility = Column(Boolean, nullable=False, default=True)
    reveal_mode = Column(String(16), nullable=False, default=RevealMode.LIVE.value)
    timer_enabled = Column(Boolean, nullable=False, default=False)
    timer_seconds = Column(Integer, nullable=True)
    timer_started_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    owner = relationship("User", back_populates="sessions")
    folder = relationship("Folder")

    def __repr__(self) -> str:
        return (
            f"WorkshopSession(session_id={self.session_id!r}, "
            f"short_code={self.short_code!r}, phase={self.phase!r})"
        )
