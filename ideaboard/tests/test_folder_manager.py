import pytest

from ideaboard.auth.credentials import ANONYMOUS, Caller
from ideaboard.data.folder_manager import FolderManager
from ideaboard.data.session_manager import SessionManager
from ideaboard.errors import FolderNotFound, NotAuthenticated


@pytest.mark.usefixtures("db_session")
def test_folders_are_per_owner(db_session, owner_caller, other_user):
    manager = FolderManager(db_session)
    mine = manager.create(owner_caller, "Workshops")
    theirs = manager.create(Caller(user_id=other_user.user_id), "Theirs")

    assert [f.folder_id for f in manager.list_folders(owner_caller)] == [mine.folder_id]
    assert manager.list_folders(ANONYMOUS) == []
    with pytest.raises(FolderNotFound):
        manager.rename(owner_caller, theirs.folder_id, "Stolen")
    with pytest.raises(NotAuthenticated):
        manager.create(ANONYMOUS, "Nobody's")


@pytest.mark.usefixtures("db_session")
def test_rename(db_session, owner_caller):
    manager = FolderManager(db_session)
    folder = manager.create(owner_caller, "Draft")

    assert manager.rename(owner_caller, folder.folder_id, "Final").name == "Final"


@pytest.mark.usefixtures("db_session")
def test_remove_unassigns_sessions(db_session, owner_caller):
    folders = FolderManager(db_session)
    sessions = SessionManager(db_session)
    folder = folders.create(owner_caller, "Q3")
    session = sessions.create(owner_caller, "Planning", folder_id=folder.folder_id)

    assert folders.remove(owner_caller, folder.folder_id) == 1

    db_session.expire_all()
    assert sessions.get(session.session_id).folder_id is None
    assert folders.list_folders(owner_caller) == []


@pytest.mark.usefixtures("db_session")
def test_move_session_between_folders(db_session, owner_caller, other_user):
    folders = FolderManager(db_session)
    sessions = SessionManager(db_session)
    folder = folders.create(owner_caller, "Retros")
    foreign = folders.create(Caller(user_id=other_user.user_id), "Theirs")
    session = sessions.create(owner_caller, "Sprint 12")

    assert (
        sessions.move_to_folder(owner_caller, session.session_id, folder.folder_id).folder_id
        == folder.folder_id
    )
    with pytest.raises(FolderNotFound):
        sessions.move_to_folder(owner_caller, session.session_id, foreign.folder_id)
    assert sessions.move_to_folder(owner_caller, session.session_id, None).folder_id is None
