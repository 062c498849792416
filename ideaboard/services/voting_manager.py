from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ideaboard.auth.credentials import (
    Caller,
    authorize_session,
    is_session_admin,
    load_session,
)
from ideaboard.config.loader import get_voting_rules
from ideaboard.errors import (
    IdeaNotFound,
    InvalidVote,
    ParticipantNotFound,
    PhaseNotVote,
    RoundNotFound,
)
from ideaboard.models.idea import Idea
from ideaboard.models.participant import Participant
from ideaboard.models.session import RevealMode, SessionPhase
from ideaboard.models.voting import Vote, VotingMode, VotingRound
from ideaboard.services.change_feed import ChangeFeed, change_feed
from ideaboard.services.vote_aggregation import (
    aggregate_dot_votes,
    aggregate_matrix_votes,
    aggregate_stock_rank_votes,
)
from ideaboard.utils.locks import KeyedLocks

logger = logging.getLogger("ideaboard.voting")

# Delete-then-insert for one (participant, round) must not interleave.
submission_locks = KeyedLocks()

AGGREGATORS = {
    VotingMode.DOT_VOTING.value: aggregate_dot_votes,
    VotingMode.STOCK_RANK.value: aggregate_stock_rank_votes,
    VotingMode.MATRIX_2X2.value: aggregate_matrix_votes,
}


class VotingManager:
    """Voting rounds, per-participant submissions and their aggregation."""

    def __init__(
        self,
        db: Session,
        feed: Optional[ChangeFeed] = None,
        rules: Optional[Dict[str, bool]] = None,
    ) -> None:
        self.db = db
        self.feed = feed or change_feed
        self.rules = rules if rules is not None else get_voting_rules()

    # ------------------------------------------------------------------ #
    # Rounds
    # ------------------------------------------------------------------ #

    def get_round(self, round_id: str) -> Optional[VotingRound]:
        return (
            self.db.query(VotingRound).filter(VotingRound.round_id == round_id).first()
        )

    def by_session(self, session_id: str) -> List[VotingRound]:
        return (
            self.db.query(VotingRound)
            .filter(VotingRound.session_id == session_id)
            .order_by(VotingRound.round_number)
            .all()
        )

    def get_active_round(self, session_id: str) -> Optional[VotingRound]:
        return (
            self.db.query(VotingRound)
            .filter(VotingRound.session_id == session_id)
            .order_by(VotingRound.round_number.desc())
            .first()
        )

    def create_round(
        self,
        caller: Caller,
        session_id: str,
        mode: str,
        config: Optional[Dict[str, Any]] = None,
    ) -> VotingRound:
        session = authorize_session(self.db, caller, session_id)
        mode_value = getattr(mode, "value", mode)
        if mode_value not in AGGREGATORS:
            raise InvalidVote(f"Unknown voting mode '{mode_value}'")
        if session.phase != SessionPhase.VOTE.value:
            raise PhaseNotVote()

        existing = (
            self.db.query(VotingRound)
            .filter(VotingRound.session_id == session_id)
            .count()
        )
        voting_round = VotingRound(
            session_id=session_id,
            round_number=existing + 1,
            mode=mode_value,
            config=dict(config or {}),
            is_revealed=False,
        )
        self.db.add(voting_round)
        self.db.commit()
        self.db.refresh(voting_round)
        logger.info(
            "Created round %s (#%s, %s) in session %s",
            voting_round.round_id,
            voting_round.round_number,
            mode_value,
            session_id,
        )
        self.feed.publish(
            "voting_rounds",
            session_id,
            {"type": "created", "round_id": voting_round.round_id},
        )
        return voting_round

    def reveal(self, caller: Caller, round_id: str) -> VotingRound:
        """Expose the round's results. There is no way back."""
        voting_round = self.get_round(round_id)
        if voting_round is None:
            raise RoundNotFound()
        authorize_session(self.db, caller, voting_round.session_id)
        if not voting_round.is_revealed:
            voting_round.is_revealed = True
            self.db.commit()
            self.db.refresh(voting_round)
            logger.info("Revealed round %s", round_id)
            self.feed.publish(
                "voting_rounds",
                voting_round.session_id,
                {"type": "revealed", "round_id": round_id},
            )
        return voting_round

    # ------------------------------------------------------------------ #
    # Submissions
    # ------------------------------------------------------------------ #

    def _submission_round(
        self, session_id: str, round_id: str, participant_id: str, mode: str
    ) -> VotingRound:
        voting_round = self.get_round(round_id)
        if voting_round is None or voting_round.session_id != session_id:
            raise RoundNotFound()
        if voting_round.mode != mode:
            raise InvalidVote(
                f"Round {voting_round.round_number} uses {voting_round.mode}, not {mode}"
            )
        participant = (
            self.db.query(Participant)
            .filter(
                Participant.participant_id == participant_id,
                Participant.session_id == session_id,
            )
            .first()
        )
        if participant is None:
            raise ParticipantNotFound()
        return voting_round

    def _check_ideas(self, session_id: str, idea_ids: Iterable[str]) -> None:
        wanted = set(idea_ids)
        if not wanted:
            return
        found = {
            idea_id
            for (idea_id,) in self.db.query(Idea.idea_id)
            .filter(Idea.session_id == session_id, Idea.idea_id.in_(wanted))
            .all()
        }
        missing = wanted - found
        if missing:
            raise IdeaNotFound(f"Idea {sorted(missing)[0]} not found in this session")

    def _replace_votes(
        self,
        voting_round: VotingRound,
        participant_id: str,
        rows: Sequence[Tuple[str, Any]],
    ) -> int:
        """Replace everything the participant voted in the round with ``rows``."""
        round_id = voting_round.round_id
        session_id = voting_round.session_id
        with submission_locks.hold((participant_id, round_id)):
            removed = (
                self.db.query(Vote)
                .filter(Vote.participant_id == participant_id, Vote.round_id == round_id)
                .delete(synchronize_session=False)
            )
            for idea_id, value in rows:
                self.db.add(
                    Vote(
                        round_id=round_id,
                        session_id=session_id,
                        participant_id=participant_id,
                        idea_id=idea_id,
                        value=value,
                    )
                )
            self.db.commit()
        logger.info(
            "Participant %s replaced %s votes with %s in round %s",
            participant_id,
            removed,
            len(rows),
            round_id,
        )
        self.feed.publish(
            "votes",
            round_id,
            {"type": "submitted", "participant_id": participant_id, "count": len(rows)},
        )
        return len(rows)

    def submit_dot_votes(
        self,
        session_id: str,
        round_id: str,
        participant_id: str,
        votes: Sequence[Tuple[str, float]],
    ) -> int:
        """Store (idea_id, points) pairs; entries without positive points are dropped."""
        voting_round = self._submission_round(
            session_id, round_id, participant_id, VotingMode.DOT_VOTING.value
        )
        rows = [(idea_id, points) for idea_id, points in votes if points > 0]
        self._check_ideas(session_id, (idea_id for idea_id, _ in rows))
        if self.rules.get("enforce_point_budget"):
            budget = (voting_round.config or {}).get("totalPoints")
            spent = sum(points for _, points in rows)
            if budget is not None and spent > budget:
                raise InvalidVote(f"{spent} points exceed the budget of {budget}")
        return self._replace_votes(voting_round, participant_id, rows)

    def submit_stock_rank_votes(
        self,
        session_id: str,
        round_id: str,
        participant_id: str,
        rankings: Sequence[Tuple[str, float]],
    ) -> int:
        voting_round = self._submission_round(
            session_id, round_id, participant_id, VotingMode.STOCK_RANK.value
        )
        self._check_ideas(session_id, (idea_id for idea_id, _ in rankings))
        if self.rules.get("enforce_unique_ranks"):
            self._validate_ranks(voting_round, [rank for _, rank in rankings])
        rows = [(idea_id, {"rank": rank}) for idea_id, rank in rankings]
        return self._replace_votes(voting_round, participant_id, rows)

    @staticmethod
    def _validate_ranks(voting_round: VotingRound, ranks: List[float]) -> None:
        repeated = [rank for rank, seen in Counter(ranks).items() if seen > 1]
        if repeated:
            raise InvalidVote(f"Rank {repeated[0]} was given more than once")
        top_n = (voting_round.config or {}).get("topN")
        upper = top_n if top_n is not None else len(ranks)
        for rank in ranks:
            if rank < 1 or rank > upper:
                raise InvalidVote(f"Rank {rank} is outside 1..{upper}")

    def submit_matrix_votes(
        self,
        session_id: str,
        round_id: str,
        participant_id: str,
        ratings: Sequence[Tuple[str, float, float]],
    ) -> int:
        voting_round = self._submission_round(
            session_id, round_id, participant_id, VotingMode.MATRIX_2X2.value
        )
        self._check_ideas(session_id, (idea_id for idea_id, _, _ in ratings))
        rows = [(idea_id, {"x": x, "y": y}) for idea_id, x, y in ratings]
        return self._replace_votes(voting_round, participant_id, rows)

    # ------------------------------------------------------------------ #
    # Reads and aggregates
    # ------------------------------------------------------------------ #

    def _round_rows(self, round_id: str) -> List[Tuple[str, Any]]:
        return [
            (vote.idea_id, vote.value)
            for vote in self.db.query(Vote)
            .filter(Vote.round_id == round_id)
            .order_by(Vote.id)
            .all()
        ]

    def aggregate_dot_votes(self, round_id: str) -> List[Dict[str, Any]]:
        return aggregate_dot_votes(self._round_rows(round_id))

    def aggregate_stock_rank_votes(self, round_id: str) -> List[Dict[str, Any]]:
        return aggregate_stock_rank_votes(self._round_rows(round_id))

    def aggregate_matrix_votes(self, round_id: str) -> List[Dict[str, Any]]:
        return aggregate_matrix_votes(self._round_rows(round_id))

    def results_for(self, caller: Caller, round_id: str) -> List[Dict[str, Any]]:
        """
        Aggregates in the round's own mode. Outside owners and co-admins, a
        round of a session in reveal mode shows nothing until it is revealed.
        """
        voting_round = self.get_round(round_id)
        if voting_round is None:
            raise RoundNotFound()
        session = load_session(self.db, voting_round.session_id)
        hidden = (
            session.reveal_mode == RevealMode.REVEAL.value
            and not voting_round.is_revealed
        )
        if hidden and not is_session_admin(self.db, caller, session):
            return []
        return AGGREGATORS[voting_round.mode](self._round_rows(round_id))

    def voting_progress(self, round_id: str, session_id: str) -> Dict[str, int]:
        total = (
            self.db.query(Participant)
            .filter(Participant.session_id == session_id)
            .count()
        )
        voted = (
            self.db.query(Vote.participant_id)
            .filter(Vote.round_id == round_id)
            .distinct()
            .count()
        )
        return {"total": total, "voted": voted}

    def participant_votes(self, round_id: str, participant_id: str) -> List[Vote]:
        return (
            self.db.query(Vote)
            .filter(Vote.round_id == round_id, Vote.participant_id == participant_id)
            .order_by(Vote.id)
            .all()
        )

    def participant_vote_status(
        self, round_id: str, participant_id: str
    ) -> Dict[str, Any]:
        votes = self.participant_votes(round_id, participant_id)
        return {"has_voted": len(votes) > 0, "votes": votes}
