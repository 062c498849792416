from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ideaboard.auth.auth import get_caller
from ideaboard.auth.credentials import Caller, load_session, resolve_participant
from ideaboard.database import get_db
from ideaboard.errors import RoundNotFound
from ideaboard.models.voting import VotingRound
from ideaboard.schemas.voting import (
    DotVoteSubmission,
    MatrixSubmission,
    ParticipantVoteStatus,
    RoundCreate,
    RoundResponse,
    RoundResults,
    StockRankSubmission,
    SubmissionResponse,
    VoteResponse,
    VotingProgress,
)
from ideaboard.services.voting_manager import VotingManager

router = APIRouter(prefix="/api/sessions/{session_id}/rounds", tags=["voting"])


def get_voting_manager(db: Session = Depends(get_db)) -> VotingManager:
    return VotingManager(db)


def _round_in_session(
    voting_manager: VotingManager, session_id: str, round_id: str
) -> VotingRound:
    voting_round = voting_manager.get_round(round_id)
    if voting_round is None or voting_round.session_id != session_id:
        raise RoundNotFound()
    return voting_round


@router.post("/", response_model=RoundResponse, status_code=status.HTTP_201_CREATED)
async def create_round(
    session_id: str,
    payload: RoundCreate,
    caller: Caller = Depends(get_caller),
    voting_manager: VotingManager = Depends(get_voting_manager),
):
    return voting_manager.create_round(
        caller, session_id, payload.mode.value, payload.config
    )


@router.get("/", response_model=List[RoundResponse])
async def list_rounds(
    session_id: str, voting_manager: VotingManager = Depends(get_voting_manager)
):
    load_session(voting_manager.db, session_id)
    return voting_manager.by_session(session_id)


@router.get("/active", response_model=Optional[RoundResponse])
async def get_active_round(
    session_id: str, voting_manager: VotingManager = Depends(get_voting_manager)
):
    load_session(voting_manager.db, session_id)
    return voting_manager.get_active_round(session_id)


@router.post("/{round_id}/reveal", response_model=RoundResponse)
async def reveal_round(
    session_id: str,
    round_id: str,
    caller: Caller = Depends(get_caller),
    voting_manager: VotingManager = Depends(get_voting_manager),
):
    _round_in_session(voting_manager, session_id, round_id)
    return voting_manager.reveal(caller, round_id)


@router.post("/{round_id}/dot-votes", response_model=SubmissionResponse)
async def submit_dot_votes(
    session_id: str,
    round_id: str,
    payload: DotVoteSubmission,
    caller: Caller = Depends(get_caller),
    voting_manager: VotingManager = Depends(get_voting_manager),
):
    participant = resolve_participant(voting_manager.db, caller, session_id)
    stored = voting_manager.submit_dot_votes(
        session_id,
        round_id,
        participant.participant_id,
        [(entry.idea_id, entry.points) for entry in payload.votes],
    )
    return SubmissionResponse(
        round_id=round_id, participant_id=participant.participant_id, stored=stored
    )


@router.post("/{round_id}/stock-rank", response_model=SubmissionResponse)
async def submit_stock_rank_votes(
    session_id: str,
    round_id: str,
    payload: StockRankSubmission,
    caller: Caller = Depends(get_caller),
    voting_manager: VotingManager = Depends(get_voting_manager),
):
    participant = resolve_participant(voting_manager.db, caller, session_id)
    stored = voting_manager.submit_stock_rank_votes(
        session_id,
        round_id,
        participant.participant_id,
        [(entry.idea_id, entry.rank) for entry in payload.rankings],
    )
    return SubmissionResponse(
        round_id=round_id, participant_id=participant.participant_id, stored=stored
    )


@router.post("/{round_id}/matrix", response_model=SubmissionResponse)
async def submit_matrix_votes(
    session_id: str,
    round_id: str,
    payload: MatrixSubmission,
    caller: Caller = Depends(get_caller),
    voting_manager: VotingManager = Depends(get_voting_manager),
):
    participant = resolve_participant(voting_manager.db, caller, session_id)
    stored = voting_manager.submit_matrix_votes(
        session_id,
        round_id,
        participant.participant_id,
        [(entry.idea_id, entry.x, entry.y) for entry in payload.ratings],
    )
    return SubmissionResponse(
        round_id=round_id, participant_id=participant.participant_id, stored=stored
    )


@router.get("/{round_id}/results", response_model=RoundResults)
async def get_round_results(
    session_id: str,
    round_id: str,
    caller: Caller = Depends(get_caller),
    voting_manager: VotingManager = Depends(get_voting_manager),
):
    """Aggregates in the round's own mode, hidden from participants until revealed."""
    voting_round = _round_in_session(voting_manager, session_id, round_id)
    return RoundResults(
        round_id=round_id,
        mode=voting_round.mode,
        is_revealed=voting_round.is_revealed,
        results=voting_manager.results_for(caller, round_id),
    )


@router.get("/{round_id}/progress", response_model=VotingProgress)
async def get_voting_progress(
    session_id: str,
    round_id: str,
    voting_manager: VotingManager = Depends(get_voting_manager),
):
    _round_in_session(voting_manager, session_id, round_id)
    return voting_manager.voting_progress(round_id, session_id)


@router.get("/{round_id}/my-status", response_model=ParticipantVoteStatus)
async def get_my_vote_status(
    session_id: str,
    round_id: str,
    caller: Caller = Depends(get_caller),
    voting_manager: VotingManager = Depends(get_voting_manager),
):
    _round_in_session(voting_manager, session_id, round_id)
    participant = resolve_participant(voting_manager.db, caller, session_id)
    vote_status = voting_manager.participant_vote_status(
        round_id, participant.participant_id
    )
    return ParticipantVoteStatus(
        has_voted=vote_status["has_voted"],
        votes=[VoteResponse.model_validate(vote) for vote in vote_status["votes"]],
    )
