import pytest

from ideaboard.auth.credentials import ANONYMOUS, Caller
from ideaboard.data.co_admin_manager import CoAdminManager
from ideaboard.data.ideas_manager import IdeasManager
from ideaboard.data.participant_manager import ParticipantManager
from ideaboard.data.session_manager import SessionManager
from ideaboard.errors import (
    IdeaNotFound,
    InvalidVote,
    NotAuthorized,
    ParticipantNotFound,
    PhaseNotVote,
    RoundNotFound,
)
from ideaboard.models.voting import Vote
from ideaboard.services.change_feed import ChangeFeed
from ideaboard.services.voting_manager import VotingManager


def _voting_session(db_session, caller, idea_count=3, tokens=("p1", "p2")):
    """Session in the vote phase with ideas and joined participants."""
    sessions = SessionManager(db_session)
    session = sessions.create(caller, "Which bets do we take?")
    participants = [
        ParticipantManager(db_session).join(session.session_id, token)
        for token in tokens
    ]
    ideas_manager = IdeasManager(db_session)
    ideas = [
        ideas_manager.create_idea(caller, session.session_id, f"Bet {n}")
        for n in range(idea_count)
    ]
    sessions.advance_phase(caller, session.session_id)
    sessions.advance_phase(caller, session.session_id)
    return session, participants, ideas


@pytest.mark.usefixtures("db_session")
def test_create_round_numbers_rounds(db_session, owner_caller):
    session, _, _ = _voting_session(db_session, owner_caller)
    manager = VotingManager(db_session)

    first = manager.create_round(
        owner_caller, session.session_id, "dot_voting", {"totalPoints": 5}
    )
    second = manager.create_round(owner_caller, session.session_id, "matrix_2x2")

    assert (first.round_number, second.round_number) == (1, 2)
    assert first.config == {"totalPoints": 5}
    assert first.is_revealed is False
    assert manager.get_active_round(session.session_id).round_id == second.round_id
    assert [r.round_id for r in manager.by_session(session.session_id)] == [
        first.round_id,
        second.round_id,
    ]


@pytest.mark.usefixtures("db_session")
def test_create_round_checks_phase_mode_and_rights(db_session, owner_caller):
    sessions = SessionManager(db_session)
    collecting = sessions.create(owner_caller, "Too early")
    session, _, _ = _voting_session(db_session, owner_caller)
    manager = VotingManager(db_session)

    with pytest.raises(PhaseNotVote):
        manager.create_round(owner_caller, collecting.session_id, "dot_voting")
    with pytest.raises(InvalidVote):
        manager.create_round(owner_caller, session.session_id, "approval")
    with pytest.raises(NotAuthorized):
        manager.create_round(
            Caller(participant_token="p1"), session.session_id, "dot_voting"
        )

    co_admins = CoAdminManager(db_session)
    token = co_admins.create_invite(owner_caller, session.session_id)
    co_admins.join(token, "Helper")
    assert manager.create_round(
        Caller(co_admin_token=token), session.session_id, "stock_rank"
    ).mode == "stock_rank"


@pytest.mark.usefixtures("db_session")
def test_dot_votes_drop_zero_points(db_session, owner_caller):
    session, (p1, _), (idea1, idea2, _) = _voting_session(db_session, owner_caller)
    manager = VotingManager(db_session)
    voting_round = manager.create_round(owner_caller, session.session_id, "dot_voting")

    stored = manager.submit_dot_votes(
        session.session_id,
        voting_round.round_id,
        p1.participant_id,
        [(idea1.idea_id, 3), (idea2.idea_id, 0)],
    )

    assert stored == 1
    assert manager.aggregate_dot_votes(voting_round.round_id) == [
        {"idea_id": idea1.idea_id, "total": 3}
    ]


@pytest.mark.usefixtures("db_session")
def test_resubmission_replaces_previous_votes(db_session, owner_caller):
    session, (p1, _), (idea1, idea2, _) = _voting_session(db_session, owner_caller)
    manager = VotingManager(db_session)
    voting_round = manager.create_round(owner_caller, session.session_id, "dot_voting")
    args = (session.session_id, voting_round.round_id, p1.participant_id)

    manager.submit_dot_votes(*args, [(idea1.idea_id, 2), (idea2.idea_id, 1)])
    manager.submit_dot_votes(*args, [(idea2.idea_id, 4)])

    votes = manager.participant_votes(voting_round.round_id, p1.participant_id)
    assert [(v.idea_id, v.value) for v in votes] == [(idea2.idea_id, 4)]

    manager.submit_dot_votes(*args, [])
    status = manager.participant_vote_status(voting_round.round_id, p1.participant_id)
    assert status == {"has_voted": False, "votes": []}


@pytest.mark.usefixtures("db_session")
def test_stock_rank_keeps_ties_and_averages(db_session, owner_caller):
    session, (p1, p2), (idea1, idea2, _) = _voting_session(db_session, owner_caller)
    manager = VotingManager(db_session)
    voting_round = manager.create_round(
        owner_caller, session.session_id, "stock_rank", {"topN": 2}
    )

    manager.submit_stock_rank_votes(
        session.session_id,
        voting_round.round_id,
        p1.participant_id,
        [(idea1.idea_id, 1), (idea2.idea_id, 1)],
    )
    manager.submit_stock_rank_votes(
        session.session_id,
        voting_round.round_id,
        p2.participant_id,
        [(idea1.idea_id, 2), (idea2.idea_id, 1)],
    )

    assert manager.aggregate_stock_rank_votes(voting_round.round_id) == [
        {"idea_id": idea2.idea_id, "avg_rank": 1.0, "times_ranked": 2},
        {"idea_id": idea1.idea_id, "avg_rank": 1.5, "times_ranked": 2},
    ]


@pytest.mark.usefixtures("db_session")
def test_matrix_ratings(db_session, owner_caller):
    session, (p1, p2), (idea1, _, _) = _voting_session(db_session, owner_caller)
    manager = VotingManager(db_session)
    voting_round = manager.create_round(
        owner_caller, session.session_id, "matrix_2x2", {"xLabel": "Effort"}
    )

    for participant, (x, y) in ((p1, (2, 8)), (p2, (4, 6))):
        manager.submit_matrix_votes(
            session.session_id,
            voting_round.round_id,
            participant.participant_id,
            [(idea1.idea_id, x, y)],
        )

    assert manager.aggregate_matrix_votes(voting_round.round_id) == [
        {"idea_id": idea1.idea_id, "avg_x": 3.0, "avg_y": 7.0, "count": 2}
    ]


@pytest.mark.usefixtures("db_session")
def test_submission_referential_checks(db_session, owner_caller):
    session, (p1, _), (idea1, _, _) = _voting_session(db_session, owner_caller)
    other, (stranger,), (foreign_idea,) = _voting_session(
        db_session, owner_caller, idea_count=1, tokens=("p9",)
    )
    manager = VotingManager(db_session)
    voting_round = manager.create_round(owner_caller, session.session_id, "dot_voting")

    with pytest.raises(RoundNotFound):
        manager.submit_dot_votes(session.session_id, "missing", p1.participant_id, [])
    with pytest.raises(RoundNotFound):
        manager.submit_dot_votes(
            other.session_id, voting_round.round_id, stranger.participant_id, []
        )
    with pytest.raises(ParticipantNotFound):
        manager.submit_dot_votes(
            session.session_id, voting_round.round_id, stranger.participant_id, []
        )
    with pytest.raises(IdeaNotFound):
        manager.submit_dot_votes(
            session.session_id,
            voting_round.round_id,
            p1.participant_id,
            [(foreign_idea.idea_id, 1)],
        )
    with pytest.raises(InvalidVote):
        manager.submit_matrix_votes(
            session.session_id,
            voting_round.round_id,
            p1.participant_id,
            [(idea1.idea_id, 1, 1)],
        )
    assert db_session.query(Vote).count() == 0


@pytest.mark.usefixtures("db_session")
def test_voting_progress_counts_distinct_voters(db_session, owner_caller):
    session, (p1, _, _), (idea1, idea2, idea3) = _voting_session(
        db_session, owner_caller, tokens=("p1", "p2", "p3")
    )
    manager = VotingManager(db_session)
    voting_round = manager.create_round(owner_caller, session.session_id, "dot_voting")

    manager.submit_dot_votes(
        session.session_id,
        voting_round.round_id,
        p1.participant_id,
        [(idea1.idea_id, 1), (idea2.idea_id, 1), (idea3.idea_id, 1)],
    )

    assert manager.voting_progress(voting_round.round_id, session.session_id) == {
        "total": 3,
        "voted": 1,
    }


@pytest.mark.usefixtures("db_session")
def test_results_are_hidden_until_revealed_in_reveal_mode(db_session, owner_caller):
    session, (p1, _), (idea1, _, _) = _voting_session(db_session, owner_caller)
    SessionManager(db_session).update(
        owner_caller, session.session_id, {"reveal_mode": "reveal"}
    )
    manager = VotingManager(db_session)
    voting_round = manager.create_round(owner_caller, session.session_id, "dot_voting")
    manager.submit_dot_votes(
        session.session_id,
        voting_round.round_id,
        p1.participant_id,
        [(idea1.idea_id, 2)],
    )
    participant = Caller(participant_token="p1")

    assert manager.results_for(participant, voting_round.round_id) == []
    assert manager.results_for(owner_caller, voting_round.round_id) == [
        {"idea_id": idea1.idea_id, "total": 2}
    ]

    with pytest.raises(NotAuthorized):
        manager.reveal(participant, voting_round.round_id)
    assert manager.reveal(owner_caller, voting_round.round_id).is_revealed is True
    assert manager.reveal(owner_caller, voting_round.round_id).is_revealed is True
    assert manager.results_for(ANONYMOUS, voting_round.round_id) == [
        {"idea_id": idea1.idea_id, "total": 2}
    ]


@pytest.mark.usefixtures("db_session")
def test_point_budget_is_enforced_only_when_enabled(db_session, owner_caller):
    session, (p1, _), (idea1, idea2, _) = _voting_session(db_session, owner_caller)
    lenient = VotingManager(db_session)
    strict = VotingManager(db_session, rules={"enforce_point_budget": True})
    voting_round = lenient.create_round(
        owner_caller, session.session_id, "dot_voting", {"totalPoints": 3}
    )
    over_budget = [(idea1.idea_id, 2), (idea2.idea_id, 2)]
    args = (session.session_id, voting_round.round_id, p1.participant_id)

    assert lenient.submit_dot_votes(*args, over_budget) == 2
    with pytest.raises(InvalidVote):
        strict.submit_dot_votes(*args, over_budget)
    # The rejected submission leaves the earlier one in place.
    assert len(lenient.participant_votes(voting_round.round_id, p1.participant_id)) == 2


@pytest.mark.usefixtures("db_session")
def test_unique_ranks_are_enforced_only_when_enabled(db_session, owner_caller):
    session, (p1, _), (idea1, idea2, idea3) = _voting_session(db_session, owner_caller)
    strict = VotingManager(db_session, rules={"enforce_unique_ranks": True})
    voting_round = strict.create_round(
        owner_caller, session.session_id, "stock_rank", {"topN": 2}
    )
    args = (session.session_id, voting_round.round_id, p1.participant_id)

    with pytest.raises(InvalidVote):
        strict.submit_stock_rank_votes(*args, [(idea1.idea_id, 1), (idea2.idea_id, 1)])
    with pytest.raises(InvalidVote):
        strict.submit_stock_rank_votes(*args, [(idea1.idea_id, 3)])
    assert strict.submit_stock_rank_votes(
        *args, [(idea1.idea_id, 2), (idea3.idea_id, 1)]
    ) == 2


@pytest.mark.usefixtures("db_session")
def test_submissions_are_published(db_session, owner_caller):
    session, (p1, _), (idea1, _, _) = _voting_session(db_session, owner_caller)
    feed = ChangeFeed()
    manager = VotingManager(db_session, feed=feed)
    voting_round = manager.create_round(owner_caller, session.session_id, "dot_voting")
    events = []
    feed.subscribe("votes", voting_round.round_id, lambda t, k, e: events.append(e))

    manager.submit_dot_votes(
        session.session_id,
        voting_round.round_id,
        p1.participant_id,
        [(idea1.idea_id, 1)],
    )

    assert events == [
        {"type": "submitted", "participant_id": p1.participant_id, "count": 1}
    ]
