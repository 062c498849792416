from datetime import datetime, UTC
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)

from ideaboard.database import Base
from ideaboard.utils.identifiers import generate_id


class VotingMode(str, Enum):
    DOT_VOTING = "dot_voting"
    STOCK_RANK = "stock_rank"
    MATRIX_2X2 = "matrix_2x2"


class VotingRound(Base):
    __tablename__ = "voting_rounds"

    round_id = Column(String(36), primary_key=True, index=True, default=generate_id)
    session_id = Column(
        String(36),
        ForeignKey("sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    round_number = Column(Integer, nullable=False)
    mode = Column(String(16), nullable=False)
    config = Column(JSON, default=dict, nullable=False)
    is_revealed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))


class Vote(Base):
    """
    One value a participant placed on one idea in one round.
    The integer key preserves insertion order for aggregation.
    """

    __tablename__ = "votes"
    __table_args__ = (
        Index("ix_votes_participant_round", "participant_id", "round_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    round_id = Column(
        String(36),
        ForeignKey("voting_rounds.round_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id = Column(
        String(36),
        ForeignKey("sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    participant_id = Column(
        String(36),
        ForeignKey("participants.participant_id", ondelete="CASCADE"),
        nullable=False,
    )
    idea_id = Column(
        String(36),
        ForeignKey("ideas.idea_id", ondelete="CASCADE"),
        nullable=False,
    )
    # dot_voting: a number; stock_rank: {"rank": n}; matrix_2x2: {"x": n, "y": n}
    value = Column(JSON, nullable=False)
