import pytest

import ideaboard.data.participant_manager as participant_manager_module
from ideaboard.auth.credentials import ANONYMOUS, Caller, find_participant
from ideaboard.data.co_admin_manager import CoAdminManager
from ideaboard.data.participant_manager import ParticipantManager
from ideaboard.data.session_manager import SessionManager
from ideaboard.errors import (
    InvalidDisplayToken,
    InvalidInvite,
    NotAuthenticated,
    NotAuthorized,
    SessionNotActive,
)
from ideaboard.models.participant import CoAdmin, Participant


@pytest.mark.usefixtures("db_session")
def test_join_is_idempotent_per_token_and_session(db_session, owner_caller):
    sessions = SessionManager(db_session)
    first = sessions.create(owner_caller, "One")
    second = sessions.create(owner_caller, "Two")
    manager = ParticipantManager(db_session)

    joined = manager.join(first.session_id, "same-token")
    again = manager.join(first.session_id, "same-token")
    elsewhere = manager.join(second.session_id, "same-token")

    assert again.participant_id == joined.participant_id
    assert elsewhere.participant_id != joined.participant_id
    assert len(manager.by_session(first.session_id)) == 1


@pytest.mark.usefixtures("db_session")
def test_join_requires_an_active_session(db_session, owner_caller):
    sessions = SessionManager(db_session)
    session = sessions.create(owner_caller, "Closed")
    sessions.update(owner_caller, session.session_id, {"status": "completed"})
    manager = ParticipantManager(db_session)

    with pytest.raises(SessionNotActive):
        manager.join(session.session_id, "late")
    with pytest.raises(SessionNotActive):
        manager.join("missing", "lost")


@pytest.mark.usefixtures("db_session")
def test_reconnect(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Back again")
    manager = ParticipantManager(db_session)
    joined = manager.join(session.session_id, "tok")

    assert manager.reconnect("tok", session.session_id).participant_id == (
        joined.participant_id
    )
    assert manager.reconnect("unknown", session.session_id) is None


@pytest.mark.usefixtures("db_session")
def test_invite_is_stable_until_revoked(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Delegate")
    manager = CoAdminManager(db_session)

    token = manager.create_invite(owner_caller, session.session_id)
    assert manager.create_invite(owner_caller, session.session_id) == token

    assert manager.revoke(owner_caller, session.session_id) is True
    assert manager.get_by_session(session.session_id) is None

    fresh = manager.create_invite(owner_caller, session.session_id)
    assert fresh != token
    assert manager.revoke(owner_caller, session.session_id) is True
    assert manager.revoke(owner_caller, session.session_id) is False


@pytest.mark.usefixtures("db_session")
def test_join_activates_co_admin(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Delegate")
    manager = CoAdminManager(db_session)
    token = manager.create_invite(owner_caller, session.session_id)

    assert manager.get_by_token(token).is_active is False
    assert manager.join(token, "Alex") == session.session_id

    co_admin = manager.get_by_token(token)
    assert co_admin.is_active is True
    assert co_admin.display_name == "Alex"
    assert co_admin.joined_at is not None
    with pytest.raises(InvalidInvite):
        manager.join("ca_bogus", "Mallory")


@pytest.mark.usefixtures("db_session")
def test_revoked_token_loses_access(db_session, owner_caller):
    sessions = SessionManager(db_session)
    session = sessions.create(owner_caller, "Delegate")
    manager = CoAdminManager(db_session)
    token = manager.create_invite(owner_caller, session.session_id)
    manager.join(token, "Alex")
    co_admin = Caller(co_admin_token=token)
    sessions.advance_phase(co_admin, session.session_id)

    manager.revoke(owner_caller, session.session_id)

    with pytest.raises(NotAuthorized):
        sessions.advance_phase(co_admin, session.session_id)


@pytest.mark.usefixtures("db_session")
def test_invite_and_revoke_are_owner_only(db_session, owner_caller, other_user):
    session = SessionManager(db_session).create(owner_caller, "Delegate")
    manager = CoAdminManager(db_session)
    token = manager.create_invite(owner_caller, session.session_id)
    manager.join(token, "Alex")

    with pytest.raises(NotAuthorized):
        manager.create_invite(Caller(user_id=other_user.user_id), session.session_id)
    with pytest.raises(NotAuthenticated):
        manager.revoke(Caller(co_admin_token=token), session.session_id)
    with pytest.raises(NotAuthenticated):
        manager.create_invite(ANONYMOUS, session.session_id)


@pytest.mark.usefixtures("db_session")
def test_join_rejects_blank_tokens(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Blank")
    manager = ParticipantManager(db_session)

    with pytest.raises(InvalidDisplayToken):
        manager.join(session.session_id, "   ")
    with pytest.raises(InvalidDisplayToken):
        manager.join(session.session_id, "")
    assert manager.by_session(session.session_id) == []


@pytest.mark.usefixtures("db_session")
def test_join_strips_token_before_lookup(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Padded")
    manager = ParticipantManager(db_session)

    joined = manager.join(session.session_id, "  tok  ")

    assert joined.display_token == "tok"
    assert manager.join(session.session_id, "tok").participant_id == (
        joined.participant_id
    )


@pytest.mark.usefixtures("db_session")
def test_join_reuses_participant_inserted_by_a_concurrent_writer(
    db_session, owner_caller, monkeypatch
):
    session = SessionManager(db_session).create(owner_caller, "Racing")
    db_session.add(Participant(session_id=session.session_id, display_token="racer"))
    db_session.commit()
    winner = find_participant(db_session, "racer", session.session_id)

    calls = []

    def stale_first_lookup(db, token, session_id):
        calls.append(token)
        if len(calls) == 1:
            return None
        return find_participant(db, token, session_id)

    monkeypatch.setattr(
        participant_manager_module, "find_participant", stale_first_lookup
    )
    manager = ParticipantManager(db_session)

    joined = manager.join(session.session_id, "racer")

    assert joined.participant_id == winner.participant_id
    assert len(calls) == 2
    assert len(manager.by_session(session.session_id)) == 1


@pytest.mark.usefixtures("db_session")
def test_invite_reuses_token_issued_by_a_concurrent_writer(
    db_session, owner_caller, monkeypatch
):
    session = SessionManager(db_session).create(owner_caller, "Racing invite")
    db_session.add(
        CoAdmin(session_id=session.session_id, invite_token="ca_winner_token")
    )
    db_session.commit()
    manager = CoAdminManager(db_session)

    calls = []

    def stale_first_lookup(session_id):
        calls.append(session_id)
        if len(calls) == 1:
            return None
        return CoAdminManager.get_by_session(manager, session_id)

    monkeypatch.setattr(manager, "get_by_session", stale_first_lookup)

    assert manager.create_invite(owner_caller, session.session_id) == (
        "ca_winner_token"
    )
    assert len(calls) == 2
    assert (
        db_session.query(CoAdmin)
        .filter(CoAdmin.session_id == session.session_id)
        .count()
        == 1
    )
