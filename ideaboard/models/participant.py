from datetime import datetime, UTC

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint

from ideaboard.database import Base
from ideaboard.utils.identifiers import generate_id


class Participant(Base):
    """Anonymous contributor, known only by a display token scoped to one session."""

    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint(
            "session_id", "display_token", name="uq_participant_session_token"
        ),
    )

    participant_id = Column(
        String(36), primary_key=True, index=True, default=generate_id
    )
    session_id = Column(
        String(36),
        ForeignKey("sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    display_token = Column(String(128), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))


class CoAdmin(Base):
    """Secondary facilitator; at most one per session, addressed by invite token."""

    __tablename__ = "co_admins"

    co_admin_id = Column(String(36), primary_key=True, index=True, default=generate_id)
    session_id = Column(
        String(36),
        ForeignKey("sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    display_name = Column(String(200), nullable=False, default="")
    invite_token = Column(String(128), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
