from typing import Dict, List

from fastapi import APIRouter, Depends, status

from ideaboard.auth.auth import get_caller
from ideaboard.auth.credentials import Caller, load_session
from ideaboard.data.ideas_manager import IdeasManager, get_ideas_manager
from ideaboard.errors import IdeaNotFound
from ideaboard.models.idea import Idea
from ideaboard.schemas.idea import (
    IdeaClusterAssignment,
    IdeaCreate,
    IdeaMove,
    IdeaResponse,
    IdeaTextUpdate,
)

ideas_router = APIRouter(prefix="/api/sessions/{session_id}/ideas", tags=["ideas"])


def _idea_in_session(ideas_manager: IdeasManager, session_id: str, idea_id: str) -> Idea:
    idea = ideas_manager.get_idea(idea_id)
    if idea is None or idea.session_id != session_id:
        raise IdeaNotFound()
    return idea


@ideas_router.get("/", response_model=List[IdeaResponse])
async def list_ideas(
    session_id: str, ideas_manager: IdeasManager = Depends(get_ideas_manager)
):
    load_session(ideas_manager.db, session_id)
    return ideas_manager.by_session(session_id)


@ideas_router.post("/", response_model=IdeaResponse, status_code=status.HTTP_201_CREATED)
async def create_idea(
    session_id: str,
    payload: IdeaCreate,
    caller: Caller = Depends(get_caller),
    ideas_manager: IdeasManager = Depends(get_ideas_manager),
):
    return ideas_manager.create_idea(caller, session_id, payload.text)


@ideas_router.put("/{idea_id}/text", response_model=IdeaResponse)
async def update_idea_text(
    session_id: str,
    idea_id: str,
    payload: IdeaTextUpdate,
    caller: Caller = Depends(get_caller),
    ideas_manager: IdeasManager = Depends(get_ideas_manager),
):
    _idea_in_session(ideas_manager, session_id, idea_id)
    return ideas_manager.update_text(caller, idea_id, payload.text)


@ideas_router.put("/{idea_id}/position", response_model=IdeaResponse)
async def move_idea(
    session_id: str,
    idea_id: str,
    payload: IdeaMove,
    caller: Caller = Depends(get_caller),
    ideas_manager: IdeasManager = Depends(get_ideas_manager),
):
    _idea_in_session(ideas_manager, session_id, idea_id)
    return ideas_manager.move(caller, idea_id, payload.position_x, payload.position_y)


@ideas_router.put("/{idea_id}/cluster", response_model=IdeaResponse)
async def set_idea_cluster(
    session_id: str,
    idea_id: str,
    payload: IdeaClusterAssignment,
    caller: Caller = Depends(get_caller),
    ideas_manager: IdeasManager = Depends(get_ideas_manager),
):
    _idea_in_session(ideas_manager, session_id, idea_id)
    return ideas_manager.set_cluster(caller, idea_id, payload.cluster_id)


@ideas_router.delete("/{idea_id}")
async def delete_idea(
    session_id: str,
    idea_id: str,
    caller: Caller = Depends(get_caller),
    ideas_manager: IdeasManager = Depends(get_ideas_manager),
) -> Dict[str, bool]:
    idea = ideas_manager.get_idea(idea_id)
    if idea is not None and idea.session_id != session_id:
        raise IdeaNotFound()
    return {"removed": ideas_manager.remove(caller, idea_id)}
