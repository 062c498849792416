from typing import Dict, List

from fastapi import APIRouter, Depends, status

from ideaboard.auth.auth import get_caller
from ideaboard.auth.credentials import Caller
from ideaboard.data.folder_manager import FolderManager, get_folder_manager
from ideaboard.schemas.session import FolderCreate, FolderResponse

router = APIRouter(prefix="/api/folders", tags=["folders"])


@router.get("/", response_model=List[FolderResponse])
async def list_folders(
    caller: Caller = Depends(get_caller),
    folder_manager: FolderManager = Depends(get_folder_manager),
):
    return folder_manager.list_folders(caller)


@router.post("/", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    payload: FolderCreate,
    caller: Caller = Depends(get_caller),
    folder_manager: FolderManager = Depends(get_folder_manager),
):
    return folder_manager.create(caller, payload.name.strip())


@router.put("/{folder_id}", response_model=FolderResponse)
async def rename_folder(
    folder_id: str,
    payload: FolderCreate,
    caller: Caller = Depends(get_caller),
    folder_manager: FolderManager = Depends(get_folder_manager),
):
    return folder_manager.rename(caller, folder_id, payload.name.strip())


@router.delete("/{folder_id}")
async def delete_folder(
    folder_id: str,
    caller: Caller = Depends(get_caller),
    folder_manager: FolderManager = Depends(get_folder_manager),
) -> Dict[str, int]:
    unassigned = folder_manager.remove(caller, folder_id)
    return {"sessions_unassigned": unassigned}
