from typing import List

from fastapi import APIRouter, Depends, Query, status

from ideaboard.auth.auth import get_caller
from ideaboard.auth.credentials import Caller, authorize_session
from ideaboard.data.participant_manager import (
    ParticipantManager,
    get_participant_manager,
)
from ideaboard.errors import ParticipantNotFound
from ideaboard.schemas.participant import ParticipantJoin, ParticipantResponse

router = APIRouter(
    prefix="/api/sessions/{session_id}/participants", tags=["participants"]
)


@router.post(
    "/join", response_model=ParticipantResponse, status_code=status.HTTP_201_CREATED
)
async def join_session(
    session_id: str,
    payload: ParticipantJoin,
    participant_manager: ParticipantManager = Depends(get_participant_manager),
):
    """Join as an anonymous participant. Joining twice with one token is harmless."""
    return participant_manager.join(session_id, payload.display_token)


@router.get("/reconnect", response_model=ParticipantResponse)
async def reconnect(
    session_id: str,
    display_token: str = Query(..., min_length=1),
    participant_manager: ParticipantManager = Depends(get_participant_manager),
):
    participant = participant_manager.reconnect(display_token.strip(), session_id)
    if participant is None:
        raise ParticipantNotFound()
    return participant


@router.get("/", response_model=List[ParticipantResponse])
async def list_participants(
    session_id: str,
    caller: Caller = Depends(get_caller),
    participant_manager: ParticipantManager = Depends(get_participant_manager),
):
    # Display tokens act as credentials, so only admins may list them.
    authorize_session(participant_manager.db, caller, session_id)
    return participant_manager.by_session(session_id)
