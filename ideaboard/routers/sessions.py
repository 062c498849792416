from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from ideaboard.auth.auth import get_caller
from ideaboard.auth.credentials import Caller, load_session
from ideaboard.data.session_manager import SessionManager, get_session_manager
from ideaboard.database import get_db
from ideaboard.errors import SessionNotFound
from ideaboard.models.session import SessionStatus
from ideaboard.schemas.session import (
    MoveToFolderRequest,
    ParticipantCountResponse,
    PhaseResponse,
    PhaseRevertRequest,
    SessionCreate,
    SessionListResponse,
    SessionUpdate,
    TimerStartRequest,
    WorkshopSessionResponse,
)
from sqlalchemy.orm import Session

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("/", response_model=SessionListResponse)
async def list_sessions(
    folder_id: Optional[str] = Query(None),
    session_status: Optional[SessionStatus] = Query(None, alias="status"),
    include_archived: bool = Query(False),
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    sessions = session_manager.list_sessions(
        caller,
        folder_id=folder_id,
        status=session_status.value if session_status else None,
        include_archived=include_archived,
    )
    return SessionListResponse(
        sessions=[WorkshopSessionResponse.model_validate(s) for s in sessions]
    )


@router.post(
    "/", response_model=WorkshopSessionResponse, status_code=status.HTTP_201_CREATED
)
async def create_session(
    payload: SessionCreate,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    return session_manager.create(
        caller,
        question=payload.question.strip(),
        participant_visibility=payload.participant_visibility,
        folder_id=payload.folder_id,
    )


@router.get("/by-code/{short_code}", response_model=WorkshopSessionResponse)
async def get_session_by_code(
    short_code: str,
    session_manager: SessionManager = Depends(get_session_manager),
):
    """Participants look sessions up by the code shown on screen."""
    session = session_manager.get_by_short_code(short_code)
    if session is None:
        raise SessionNotFound(f"No session uses code '{short_code.strip().upper()}'")
    return session


@router.get("/{session_id}", response_model=WorkshopSessionResponse)
async def get_session(session_id: str, db: Session = Depends(get_db)):
    return load_session(db, session_id)


@router.patch("/{session_id}", response_model=WorkshopSessionResponse)
async def update_session(
    session_id: str,
    payload: SessionUpdate,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    return session_manager.update(
        caller, session_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
) -> Dict[str, bool]:
    removed = session_manager.remove(caller, session_id)
    return {"removed": removed}


@router.post(
    "/{session_id}/duplicate",
    response_model=WorkshopSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_session(
    session_id: str,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    return session_manager.duplicate(caller, session_id)


@router.put("/{session_id}/folder", response_model=WorkshopSessionResponse)
async def move_session_to_folder(
    session_id: str,
    payload: MoveToFolderRequest,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    return session_manager.move_to_folder(caller, session_id, payload.folder_id)


@router.get("/{session_id}/participant-count", response_model=ParticipantCountResponse)
async def get_participant_count(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
):
    return ParticipantCountResponse(
        session_id=session_id, count=session_manager.participant_count(session_id)
    )


@router.post("/{session_id}/phase/advance", response_model=PhaseResponse)
async def advance_phase(
    session_id: str,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    phase = session_manager.advance_phase(caller, session_id)
    return PhaseResponse(session_id=session_id, phase=phase)


@router.post("/{session_id}/phase/revert", response_model=PhaseResponse)
async def revert_phase(
    session_id: str,
    payload: PhaseRevertRequest,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    phase = session_manager.revert_phase(
        caller, session_id, payload.target_phase.value
    )
    return PhaseResponse(session_id=session_id, phase=phase)


@router.post("/{session_id}/timer/start", response_model=WorkshopSessionResponse)
async def start_timer(
    session_id: str,
    payload: TimerStartRequest,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    return session_manager.start_timer(caller, session_id, payload.seconds)


@router.post("/{session_id}/timer/stop", response_model=WorkshopSessionResponse)
async def stop_timer(
    session_id: str,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    return session_manager.stop_timer(caller, session_id)


@router.post("/{session_id}/timer/reset", response_model=WorkshopSessionResponse)
async def reset_timer(
    session_id: str,
    caller: Caller = Depends(get_caller),
    session_manager: SessionManager = Depends(get_session_manager),
):
    return session_manager.reset_timer(caller, session_id)
