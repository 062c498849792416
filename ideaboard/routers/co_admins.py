from typing import Dict, Optional

from fastapi import APIRouter, Depends

from ideaboard.auth.auth import get_caller
from ideaboard.auth.credentials import Caller, require_owner
from ideaboard.data.co_admin_manager import CoAdminManager, get_co_admin_manager
from ideaboard.errors import CoAdminNotFound
from ideaboard.schemas.participant import (
    CoAdminDetail,
    CoAdminInviteResponse,
    CoAdminJoinRequest,
    CoAdminJoinResponse,
    CoAdminResponse,
)

session_co_admin_router = APIRouter(
    prefix="/api/sessions/{session_id}/co-admin", tags=["co-admin"]
)
router = APIRouter(prefix="/api/co-admin", tags=["co-admin"])


@session_co_admin_router.get("/", response_model=Optional[CoAdminDetail])
async def get_session_co_admin(
    session_id: str,
    caller: Caller = Depends(get_caller),
    co_admin_manager: CoAdminManager = Depends(get_co_admin_manager),
):
    require_owner(co_admin_manager.db, caller, session_id)
    return co_admin_manager.get_by_session(session_id)


@session_co_admin_router.post("/invite", response_model=CoAdminInviteResponse)
async def create_invite(
    session_id: str,
    caller: Caller = Depends(get_caller),
    co_admin_manager: CoAdminManager = Depends(get_co_admin_manager),
):
    invite_token = co_admin_manager.create_invite(caller, session_id)
    return CoAdminInviteResponse(session_id=session_id, invite_token=invite_token)


@session_co_admin_router.delete("/")
async def revoke_co_admin(
    session_id: str,
    caller: Caller = Depends(get_caller),
    co_admin_manager: CoAdminManager = Depends(get_co_admin_manager),
) -> Dict[str, bool]:
    return {"revoked": co_admin_manager.revoke(caller, session_id)}


@router.post("/join", response_model=CoAdminJoinResponse)
async def join_as_co_admin(
    payload: CoAdminJoinRequest,
    co_admin_manager: CoAdminManager = Depends(get_co_admin_manager),
):
    session_id = co_admin_manager.join(
        payload.invite_token.strip(), payload.display_name.strip()
    )
    return CoAdminJoinResponse(session_id=session_id)


@router.get("/{invite_token}", response_model=CoAdminResponse)
async def get_co_admin_by_token(
    invite_token: str,
    co_admin_manager: CoAdminManager = Depends(get_co_admin_manager),
):
    co_admin = co_admin_manager.get_by_token(invite_token)
    if co_admin is None:
        raise CoAdminNotFound()
    return co_admin
