import logging
from typing import List, Optional

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.credentials import find_participant
from ..database import get_db
from ..errors import InvalidDisplayToken, SessionNotActive
from ..models.participant import Participant
from ..models.session import SessionStatus, WorkshopSession
from ..services.change_feed import ChangeFeed, change_feed
from ..utils.locks import KeyedLocks

logger = logging.getLogger("ideaboard.participants")

join_locks = KeyedLocks()


class ParticipantManager:
    """Anonymous participants. A display token is only meaningful inside its session."""

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or change_feed

    def join(self, session_id: str, display_token: str) -> Participant:
        """Return the participant for (token, session), creating it on first join."""
        token = (display_token or "").strip()
        if not token:
            raise InvalidDisplayToken()

        session = (
            self.db.query(WorkshopSession)
            .filter(WorkshopSession.session_id == session_id)
            .first()
        )
        if session is None or session.status != SessionStatus.ACTIVE.value:
            raise SessionNotActive()

        with join_locks.hold((session_id, token)):
            existing = find_participant(self.db, token, session_id)
            if existing is not None:
                return existing

            participant = Participant(session_id=session_id, display_token=token)
            try:
                with self.db.begin_nested():
                    self.db.add(participant)
            except IntegrityError:
                # Another writer joined with this token first.
                existing = find_participant(self.db, token, session_id)
                if existing is None:
                    raise
                logger.info(
                    "Participant token already joined session %s; reusing %s",
                    session_id,
                    existing.participant_id,
                )
                return existing
            self.db.commit()
            self.db.refresh(participant)

        logger.info(
            "Participant %s joined session %s", participant.participant_id, session_id
        )
        self.feed.publish(
            "participants",
            session_id,
            {"type": "joined", "participant_id": participant.participant_id},
        )
        return participant

    def reconnect(self, display_token: str, session_id: str) -> Optional[Participant]:
        return find_participant(self.db, display_token, session_id)

    def by_session(self, session_id: str) -> List[Participant]:
        return (
            self.db.query(Participant)
            .filter(Participant.session_id == session_id)
            .order_by(Participant.joined_at)
            .all()
        )


def get_participant_manager(db: Session = Depends(get_db)) -> ParticipantManager:
    """Dependency provider for ParticipantManager."""
    return ParticipantManager(db=db)
