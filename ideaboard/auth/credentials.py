"""
Caller credentials and the authorization policies that match them.

A request carries at most one account identity (the ``access_token`` cookie),
one co-admin invite token and one participant display token. They are
resolved once into a :class:`Caller`, which exposes them as tagged credential
variants in precedence order. Each operation then applies one of the policies
below:

* ``require_owner``: the signed-in account must own the session.
* ``authorize_session``: owner, or the active co-admin of that session.
* ``resolve_participant``: the participant token must exist in that session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ideaboard.errors import (
    NotAuthenticated,
    NotAuthorized,
    ParticipantNotFound,
    SessionNotFound,
)
from ideaboard.models.participant import CoAdmin, Participant
from ideaboard.models.session import WorkshopSession

logger = logging.getLogger("auth_module")


@dataclass(frozen=True)
class OwnerCredential:
    user_id: str


@dataclass(frozen=True)
class CoAdminCredential:
    token: str


@dataclass(frozen=True)
class ParticipantCredential:
    token: str


@dataclass(frozen=True)
class AnonymousCredential:
    pass


Credential = Union[
    OwnerCredential, CoAdminCredential, ParticipantCredential, AnonymousCredential
]


@dataclass(frozen=True)
class Caller:
    user_id: Optional[str] = None
    co_admin_token: Optional[str] = None
    participant_token: Optional[str] = None

    @property
    def credentials(self) -> List[Credential]:
        found: List[Credential] = []
        if self.user_id:
            found.append(OwnerCredential(self.user_id))
        if self.co_admin_token:
            found.append(CoAdminCredential(self.co_admin_token))
        if self.participant_token:
            found.append(ParticipantCredential(self.participant_token))
        return found or [AnonymousCredential()]

    @property
    def is_anonymous(self) -> bool:
        return isinstance(self.credentials[0], AnonymousCredential)


ANONYMOUS = Caller()


def load_session(db: Session, session_id: str) -> WorkshopSession:
    session = (
        db.query(WorkshopSession)
        .filter(WorkshopSession.session_id == session_id)
        .first()
    )
    if session is None:
        raise SessionNotFound()
    return session


def require_identity(caller: Caller) -> str:
    if not caller.user_id:
        raise NotAuthenticated()
    return caller.user_id


def require_owner(db: Session, caller: Caller, session_id: str) -> WorkshopSession:
    user_id = require_identity(caller)
    session = load_session(db, session_id)
    if session.owner_id != user_id:
        logger.warning(
            "User %s attempted an owner-only action on session %s",
            user_id,
            session_id,
        )
        raise NotAuthorized()
    return session


def _co_admin_grants(db: Session, token: str, session_id: str) -> bool:
    co_admin = db.query(CoAdmin).filter(CoAdmin.invite_token == token).first()
    return (
        co_admin is not None
        and co_admin.is_active
        and co_admin.session_id == session_id
    )


def is_session_admin(db: Session, caller: Caller, session: WorkshopSession) -> bool:
    for credential in caller.credentials:
        if isinstance(credential, OwnerCredential):
            if credential.user_id == session.owner_id:
                return True
        elif isinstance(credential, CoAdminCredential):
            if _co_admin_grants(db, credential.token, session.session_id):
                return True
        elif isinstance(credential, (ParticipantCredential, AnonymousCredential)):
            continue
    return False


def authorize_session(
    db: Session, caller: Caller, session_id: str
) -> WorkshopSession:
    """Return the session when the caller is its owner or active co-admin."""
    session = load_session(db, session_id)
    if not is_session_admin(db, caller, session):
        raise NotAuthorized()
    return session


def find_participant(
    db: Session, token: Optional[str], session_id: str
) -> Optional[Participant]:
    if not token:
        return None
    return (
        db.query(Participant)
        .filter(
            Participant.display_token == token,
            Participant.session_id == session_id,
        )
        .first()
    )


def resolve_participant(db: Session, caller: Caller, session_id: str) -> Participant:
    participant = find_participant(db, caller.participant_token, session_id)
    if participant is None:
        raise ParticipantNotFound()
    return participant
