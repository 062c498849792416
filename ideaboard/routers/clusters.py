from typing import Dict, List

from fastapi import APIRouter, Depends, status

from ideaboard.auth.auth import get_caller
from ideaboard.auth.credentials import Caller, load_session
from ideaboard.data.cluster_manager import ClusterManager, get_cluster_manager
from ideaboard.errors import ClusterNotFound
from ideaboard.schemas.idea import ClusterCreate, ClusterResponse, ClusterUpdate

clusters_router = APIRouter(
    prefix="/api/sessions/{session_id}/clusters", tags=["clusters"]
)


def _check_cluster_session(
    cluster_manager: ClusterManager, session_id: str, cluster_id: str
) -> None:
    cluster = cluster_manager.get_cluster(cluster_id)
    if cluster is not None and cluster.session_id != session_id:
        raise ClusterNotFound()


@clusters_router.get("/", response_model=List[ClusterResponse])
async def list_clusters(
    session_id: str, cluster_manager: ClusterManager = Depends(get_cluster_manager)
):
    load_session(cluster_manager.db, session_id)
    return cluster_manager.by_session(session_id)


@clusters_router.post(
    "/", response_model=ClusterResponse, status_code=status.HTTP_201_CREATED
)
async def create_cluster(
    session_id: str,
    payload: ClusterCreate,
    caller: Caller = Depends(get_caller),
    cluster_manager: ClusterManager = Depends(get_cluster_manager),
):
    return cluster_manager.create(
        caller,
        session_id,
        label=payload.label.strip(),
        position_x=payload.position_x,
        position_y=payload.position_y,
        color=payload.color,
    )


@clusters_router.patch("/{cluster_id}", response_model=ClusterResponse)
async def update_cluster(
    session_id: str,
    cluster_id: str,
    payload: ClusterUpdate,
    caller: Caller = Depends(get_caller),
    cluster_manager: ClusterManager = Depends(get_cluster_manager),
):
    _check_cluster_session(cluster_manager, session_id, cluster_id)
    return cluster_manager.update(
        caller, cluster_id, payload.model_dump(exclude_unset=True)
    )


@clusters_router.delete("/{cluster_id}")
async def delete_cluster(
    session_id: str,
    cluster_id: str,
    caller: Caller = Depends(get_caller),
    cluster_manager: ClusterManager = Depends(get_cluster_manager),
) -> Dict[str, int]:
    _check_cluster_session(cluster_manager, session_id, cluster_id)
    return {"ideas_unassigned": cluster_manager.remove(caller, cluster_id)}
