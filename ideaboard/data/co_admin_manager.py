import logging
from datetime import datetime, UTC
from typing import Optional

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.credentials import Caller, require_owner
from ..database import get_db
from ..errors import InvalidInvite
from ..models.participant import CoAdmin
from ..services.change_feed import ChangeFeed, change_feed
from ..utils.identifiers import generate_co_admin_token
from ..utils.locks import KeyedLocks

logger = logging.getLogger("ideaboard.co_admin")

invite_locks = KeyedLocks()


class CoAdminManager:
    """Delegation of session authority to a single co-admin through an invite token."""

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or change_feed

    def get_by_session(self, session_id: str) -> Optional[CoAdmin]:
        return self.db.query(CoAdmin).filter(CoAdmin.session_id == session_id).first()

    def get_by_token(self, invite_token: str) -> Optional[CoAdmin]:
        if not invite_token:
            return None
        return (
            self.db.query(CoAdmin).filter(CoAdmin.invite_token == invite_token).first()
        )

    def create_invite(self, caller: Caller, session_id: str) -> str:
        """Return the session's invite token, issuing one if none exists yet."""
        require_owner(self.db, caller, session_id)
        with invite_locks.hold(session_id):
            existing = self.get_by_session(session_id)
            if existing is not None:
                return existing.invite_token

            co_admin = CoAdmin(
                session_id=session_id,
                display_name="",
                invite_token=generate_co_admin_token(),
                is_active=False,
            )
            try:
                with self.db.begin_nested():
                    self.db.add(co_admin)
            except IntegrityError:
                # A concurrent invite for this session won the insert.
                existing = self.get_by_session(session_id)
                if existing is None:
                    raise
                return existing.invite_token
            self.db.commit()
        logger.info("Issued co-admin invite for session %s", session_id)
        self.feed.publish("co_admin", session_id, {"type": "invited"})
        return co_admin.invite_token

    def join(self, invite_token: str, display_name: str) -> str:
        """Activate the invite and return the session it belongs to. Re-joining is allowed."""
        co_admin = self.get_by_token(invite_token)
        if co_admin is None:
            raise InvalidInvite()
        co_admin.display_name = display_name
        co_admin.is_active = True
        co_admin.joined_at = datetime.now(UTC)
        session_id = co_admin.session_id
        self.db.commit()
        logger.info("Co-admin '%s' joined session %s", display_name, session_id)
        self.feed.publish(
            "co_admin", session_id, {"type": "joined", "display_name": display_name}
        )
        return session_id

    def revoke(self, caller: Caller, session_id: str) -> bool:
        """Delete the co-admin record; a later invite gets a brand-new token."""
        require_owner(self.db, caller, session_id)
        co_admin = self.get_by_session(session_id)
        if co_admin is None:
            return False
        self.db.delete(co_admin)
        self.db.commit()
        logger.info("Revoked co-admin for session %s", session_id)
        self.feed.publish("co_admin", session_id, {"type": "revoked"})
        return True


def get_co_admin_manager(db: Session = Depends(get_db)) -> CoAdminManager:
    """Dependency provider for CoAdminManager."""
    return CoAdminManager(db=db)
