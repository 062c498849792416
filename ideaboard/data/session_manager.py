import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ..auth.credentials import (
    Caller,
    authorize_session,
    require_identity,
    require_owner,
)
from ..database import get_db
from ..errors import (
    AlreadyAtFinalPhase,
    FolderNotFound,
    InvalidRevert,
    NotAuthorized,
)
from ..models.folder import Folder
from ..models.idea import Cluster, Idea
from ..models.participant import CoAdmin, Participant
from ..models.session import (
    PHASE_ORDER,
    RevealMode,
    SessionPhase,
    SessionStatus,
    WorkshopSession,
)
from ..models.voting import Vote, VotingRound
from ..services.change_feed import ChangeFeed, change_feed
from ..utils.identifiers import generate_unique_short_code

logger = logging.getLogger("ideaboard.sessions")

# Patchable through update(); everything else has a dedicated operation.
UPDATABLE_FIELDS = ("question", "participant_visibility", "reveal_mode", "status")

# Reverting to one of these leaves the vote phase behind, so rounds go too.
PRE_VOTE_PHASES = {SessionPhase.COLLECT.value, SessionPhase.ORGANIZE.value}


class SessionManager:
    """Session lifecycle: creation, phase state machine, timers and housekeeping."""

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or change_feed

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _owned_folder(self, user_id: str, folder_id: str) -> Folder:
        folder = (
            self.db.query(Folder)
            .filter(Folder.folder_id == folder_id, Folder.owner_id == user_id)
            .first()
        )
        if folder is None:
            raise FolderNotFound()
        return folder

    def _publish(self, session: WorkshopSession, event_type: str, **extra: Any) -> None:
        event = {"type": event_type, "session_id": session.session_id}
        event.update(extra)
        self.feed.publish("session", session.session_id, event)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get(self, session_id: str) -> Optional[WorkshopSession]:
        return (
            self.db.query(WorkshopSession)
            .filter(WorkshopSession.session_id == session_id)
            .first()
        )

    def get_by_short_code(self, short_code: str) -> Optional[WorkshopSession]:
        code = (short_code or "").strip().upper()
        if not code:
            return None
        return (
            self.db.query(WorkshopSession)
            .filter(WorkshopSession.short_code == code)
            .first()
        )

    def list_sessions(
        self,
        caller: Caller,
        folder_id: Optional[str] = None,
        status: Optional[str] = None,
        include_archived: bool = False,
    ) -> List[WorkshopSession]:
        """
        Caller's sessions, newest first.
        An exact ``status`` wins over ``include_archived``; anonymous callers get nothing.
        """
        if not caller.user_id:
            return []
        query = self.db.query(WorkshopSession).filter(
            WorkshopSession.owner_id == caller.user_id
        )
        if folder_id:
            query = query.filter(WorkshopSession.folder_id == folder_id)
        if status:
            query = query.filter(WorkshopSession.status == status)
        elif not include_archived:
            query = query.filter(
                WorkshopSession.status != SessionStatus.ARCHIVED.value
            )
        return query.order_by(WorkshopSession.created_at.desc()).all()

    def participant_count(self, session_id: str) -> int:
        return (
            self.db.query(Participant)
            .filter(Participant.session_id == session_id)
            .count()
        )

    # ------------------------------------------------------------------ #
    # Creation and ownership
    # ------------------------------------------------------------------ #

    def create(
        self,
        caller: Caller,
        question: str,
        participant_visibility: Optional[bool] = None,
        folder_id: Optional[str] = None,
    ) -> WorkshopSession:
        user_id = require_identity(caller)
        if folder_id:
            self._owned_folder(user_id, folder_id)

        session = WorkshopSession(
            owner_id=user_id,
            folder_id=folder_id,
            question=question,
            short_code=generate_unique_short_code(self.db),
            phase=SessionPhase.COLLECT.value,
            status=SessionStatus.ACTIVE.value,
            participant_visibility=(
                True if participant_visibility is None else participant_visibility
            ),
            reveal_mode=RevealMode.LIVE.value,
            timer_enabled=False,
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        logger.info(
            "Created session %s (code %s) for user %s",
            session.session_id,
            session.short_code,
            user_id,
        )
        self._publish(session, "created")
        return session

    def update(
        self, caller: Caller, session_id: str, changes: Dict[str, Any]
    ) -> WorkshopSession:
        """Patch only the supplied fields; ``None`` means "leave as is"."""
        session = require_owner(self.db, caller, session_id)
        applied = {
            field: value
            for field, value in changes.items()
            if field in UPDATABLE_FIELDS and value is not None
        }
        if not applied:
            return session
        for field, value in applied.items():
            setattr(session, field, getattr(value, "value", value))
        self.db.commit()
        self.db.refresh(session)
        logger.info("Updated session %s fields %s", session_id, sorted(applied))
        self._publish(session, "updated", fields=sorted(applied))
        return session

    def duplicate(self, caller: Caller, session_id: str) -> WorkshopSession:
        """Copy the session settings under a fresh code; ideas and rounds stay behind."""
        source = require_owner(self.db, caller, session_id)
        copy = WorkshopSession(
            owner_id=source.owner_id,
            folder_id=source.folder_id,
            question=source.question,
            short_code=generate_unique_short_code(self.db),
            phase=SessionPhase.COLLECT.value,
            status=SessionStatus.ACTIVE.value,
            participant_visibility=source.participant_visibility,
            reveal_mode=source.reveal_mode,
            timer_enabled=False,
        )
        self.db.add(copy)
        self.db.commit()
        self.db.refresh(copy)
        logger.info("Duplicated session %s into %s", session_id, copy.session_id)
        self._publish(copy, "created", duplicated_from=session_id)
        return copy

    def move_to_folder(
        self, caller: Caller, session_id: str, folder_id: Optional[str]
    ) -> WorkshopSession:
        session = require_owner(self.db, caller, session_id)
        if folder_id:
            self._owned_folder(session.owner_id, folder_id)
        session.folder_id = folder_id
        self.db.commit()
        self.db.refresh(session)
        self._publish(session, "moved", folder_id=folder_id)
        return session

    def remove(self, caller: Caller, session_id: str) -> bool:
        """
        Delete a session and everything hanging off it.
        Returns False when the session was already gone.
        """
        user_id = require_identity(caller)
        session = self.get(session_id)
        if session is None:
            return False
        if session.owner_id != user_id:
            raise NotAuthorized()

        self._clear_rounds(session_id)
        self.db.query(Vote).filter(Vote.session_id == session_id).delete(
            synchronize_session=False
        )
        self.db.query(Idea).filter(Idea.session_id == session_id).delete(
            synchronize_session=False
        )
        self.db.query(Cluster).filter(Cluster.session_id == session_id).delete(
            synchronize_session=False
        )
        self.db.query(CoAdmin).filter(CoAdmin.session_id == session_id).delete(
            synchronize_session=False
        )
        self.db.query(Participant).filter(Participant.session_id == session_id).delete(
            synchronize_session=False
        )
        self.db.delete(session)
        self.db.commit()
        logger.info("Removed session %s", session_id)
        self.feed.publish(
            "session", session_id, {"type": "removed", "session_id": session_id}
        )
        return True

    # ------------------------------------------------------------------ #
    # Phase state machine
    # ------------------------------------------------------------------ #

    def advance_phase(self, caller: Caller, session_id: str) -> str:
        session = authorize_session(self.db, caller, session_id)
        current_index = PHASE_ORDER.index(session.phase)
        if current_index >= len(PHASE_ORDER) - 1:
            raise AlreadyAtFinalPhase()

        next_phase = PHASE_ORDER[current_index + 1]
        session.phase = next_phase
        self.db.commit()
        logger.info(
            "Session %s advanced from %s to %s",
            session_id,
            PHASE_ORDER[current_index],
            next_phase,
        )
        self._publish(session, "phase_changed", phase=next_phase)
        return next_phase

    def revert_phase(self, caller: Caller, session_id: str, target_phase: str) -> str:
        """
        Move back to an earlier phase. Leaving the vote phase behind deletes every
        round of the session together with its votes; ideas and clusters are kept.
        """
        session = authorize_session(self.db, caller, session_id)
        target = getattr(target_phase, "value", target_phase)
        if target not in PHASE_ORDER:
            raise InvalidRevert(f"Unknown phase '{target}'")
        if PHASE_ORDER.index(target) >= PHASE_ORDER.index(session.phase):
            raise InvalidRevert()

        removed_rounds = 0
        removed_votes = 0
        if target in PRE_VOTE_PHASES:
            removed_rounds, removed_votes = self._clear_rounds(session_id)

        previous = session.phase
        session.phase = target
        self.db.commit()
        logger.info(
            "Session %s reverted from %s to %s (removed %s rounds, %s votes)",
            session_id,
            previous,
            target,
            removed_rounds,
            removed_votes,
        )
        self._publish(session, "phase_changed", phase=target)
        if removed_rounds:
            self.feed.publish(
                "voting_rounds", session_id, {"type": "cleared", "session_id": session_id}
            )
        return target

    def _clear_rounds(self, session_id: str):
        """Delete all rounds of a session and their votes. Safe to re-run."""
        round_ids = [
            round_id
            for (round_id,) in self.db.query(VotingRound.round_id)
            .filter(VotingRound.session_id == session_id)
            .all()
        ]
        if not round_ids:
            return 0, 0
        removed_votes = (
            self.db.query(Vote)
            .filter(Vote.round_id.in_(round_ids))
            .delete(synchronize_session=False)
        )
        removed_rounds = (
            self.db.query(VotingRound)
            .filter(VotingRound.round_id.in_(round_ids))
            .delete(synchronize_session=False)
        )
        return removed_rounds, removed_votes

    # ------------------------------------------------------------------ #
    # Timer
    # ------------------------------------------------------------------ #

    def start_timer(self, caller: Caller, session_id: str, seconds: int) -> WorkshopSession:
        session = authorize_session(self.db, caller, session_id)
        session.timer_enabled = True
        session.timer_seconds = seconds
        session.timer_started_at = datetime.now(UTC)
        self.db.commit()
        self.db.refresh(session)
        self._publish(session, "timer_started", seconds=seconds)
        return session

    def stop_timer(self, caller: Caller, session_id: str) -> WorkshopSession:
        session = authorize_session(self.db, caller, session_id)
        session.timer_enabled = False
        session.timer_started_at = None
        self.db.commit()
        self.db.refresh(session)
        self._publish(session, "timer_stopped")
        return session

    def reset_timer(self, caller: Caller, session_id: str) -> WorkshopSession:
        session = authorize_session(self.db, caller, session_id)
        session.timer_enabled = False
        session.timer_seconds = None
        session.timer_started_at = None
        self.db.commit()
        self.db.refresh(session)
        self._publish(session, "timer_reset")
        return session


def get_session_manager(db: Session = Depends(get_db)) -> SessionManager:
    """Dependency provider for SessionManager."""
    return SessionManager(db=db)


__all__ = ["SessionManager", "get_session_manager"]
