import pytest

from ideaboard.auth.credentials import Caller
from ideaboard.data.cluster_manager import DEFAULT_CLUSTER_COLOR, ClusterManager
from ideaboard.data.ideas_manager import IdeasManager
from ideaboard.data.session_manager import SessionManager
from ideaboard.errors import ClusterNotFound, NotAuthorized, SessionNotFound
from ideaboard.models.idea import Idea


@pytest.mark.usefixtures("db_session")
def test_create_uses_default_color(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Cluster me")

    cluster = ClusterManager(db_session).create(
        owner_caller, session.session_id, "Quick wins", 100, 50
    )

    assert cluster.color == DEFAULT_CLUSTER_COLOR
    assert (cluster.position_x, cluster.position_y) == (100, 50)


@pytest.mark.usefixtures("db_session")
def test_create_requires_session_and_admin(db_session, owner_caller, other_user):
    manager = ClusterManager(db_session)
    session = SessionManager(db_session).create(owner_caller, "Cluster me")

    with pytest.raises(SessionNotFound):
        manager.create(owner_caller, "missing", "Label", 0, 0)
    with pytest.raises(NotAuthorized):
        manager.create(Caller(user_id=other_user.user_id), session.session_id, "L", 0, 0)


@pytest.mark.usefixtures("db_session")
def test_update_patches_supplied_fields(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Cluster me")
    manager = ClusterManager(db_session)
    cluster = manager.create(owner_caller, session.session_id, "Before", 0, 0, "#abcdef")

    updated = manager.update(
        owner_caller, cluster.cluster_id, {"label": "After", "width": 400, "color": None}
    )

    assert updated.label == "After"
    assert updated.width == 400
    assert updated.color == "#abcdef"
    with pytest.raises(ClusterNotFound):
        manager.update(owner_caller, "missing", {"label": "x"})


@pytest.mark.usefixtures("db_session")
def test_remove_unassigns_ideas(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Cluster me")
    clusters = ClusterManager(db_session)
    ideas = IdeasManager(db_session)
    cluster = clusters.create(owner_caller, session.session_id, "Bucket", 0, 0)
    first = ideas.create_idea(owner_caller, session.session_id, "One")
    second = ideas.create_idea(owner_caller, session.session_id, "Two")
    ideas.set_cluster(owner_caller, first.idea_id, cluster.cluster_id)
    ideas.set_cluster(owner_caller, second.idea_id, cluster.cluster_id)

    assert clusters.remove(owner_caller, cluster.cluster_id) == 2

    db_session.expire_all()
    assert db_session.get(Idea, first.idea_id).cluster_id is None
    assert db_session.get(Idea, second.idea_id).cluster_id is None
    assert clusters.get_cluster(cluster.cluster_id) is None
    assert clusters.remove(owner_caller, cluster.cluster_id) == 0
