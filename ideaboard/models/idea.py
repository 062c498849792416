from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text

from ideaboard.database import Base
from ideaboard.utils.identifiers import generate_id


class Idea(Base):
    """A post-it on the session canvas."""

    __tablename__ = "ideas"

    idea_id = Column(String(36), primary_key=True, index=True, default=generate_id)
    session_id = Column(
        String(36),
        ForeignKey("sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Absent when an owner or co-admin wrote the idea.
    participant_id = Column(
        String(36),
        ForeignKey("participants.participant_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    text = Column(Text, nullable=False)
    cluster_id = Column(
        String(36),
        ForeignKey("clusters.cluster_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    position_x = Column(Float, nullable=False, default=0)
    position_y = Column(Float, nullable=False, default=0)
    color = Column(String(16), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))


class Cluster(Base):
    __tablename__ = "clusters"

    cluster_id = Column(String(36), primary_key=True, index=True, default=generate_id)
    session_id = Column(
        String(36),
        ForeignKey("sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label = Column(String(200), nullable=False)
    position_x = Column(Float, nullable=False, default=0)
    position_y = Column(Float, nullable=False, default=0)
    width = Column(Float, nullable=True)
    height = Column(Float, nullable=True)
    color = Column(String(16), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
