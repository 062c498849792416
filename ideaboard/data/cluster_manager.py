import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ..auth.credentials import Caller, authorize_session
from ..database import get_db
from ..errors import ClusterNotFound
from ..models.idea import Cluster, Idea
from ..services.change_feed import ChangeFeed, change_feed

logger = logging.getLogger("ideaboard.clusters")

DEFAULT_CLUSTER_COLOR = "#f5f5f4"
UPDATABLE_FIELDS = ("label", "position_x", "position_y", "width", "height", "color")


class ClusterManager:
    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or change_feed

    def get_cluster(self, cluster_id: str) -> Optional[Cluster]:
        return self.db.query(Cluster).filter(Cluster.cluster_id == cluster_id).first()

    def by_session(self, session_id: str) -> List[Cluster]:
        return (
            self.db.query(Cluster)
            .filter(Cluster.session_id == session_id)
            .order_by(Cluster.created_at, Cluster.cluster_id)
            .all()
        )

    def create(
        self,
        caller: Caller,
        session_id: str,
        label: str,
        position_x: float,
        position_y: float,
        color: Optional[str] = None,
    ) -> Cluster:
        authorize_session(self.db, caller, session_id)
        cluster = Cluster(
            session_id=session_id,
            label=label,
            position_x=position_x,
            position_y=position_y,
            color=color or DEFAULT_CLUSTER_COLOR,
        )
        self.db.add(cluster)
        self.db.commit()
        self.db.refresh(cluster)
        logger.info("Created cluster %s in session %s", cluster.cluster_id, session_id)
        self.feed.publish(
            "clusters", session_id, {"type": "created", "cluster_id": cluster.cluster_id}
        )
        return cluster

    def update(
        self, caller: Caller, cluster_id: str, changes: Dict[str, Any]
    ) -> Cluster:
        """Patch the supplied fields only."""
        cluster = self.get_cluster(cluster_id)
        if cluster is None:
            raise ClusterNotFound()
        authorize_session(self.db, caller, cluster.session_id)
        applied = {
            field: value
            for field, value in changes.items()
            if field in UPDATABLE_FIELDS and value is not None
        }
        if not applied:
            return cluster
        for field, value in applied.items():
            setattr(cluster, field, value)
        self.db.commit()
        self.db.refresh(cluster)
        self.feed.publish(
            "clusters", cluster.session_id, {"type": "updated", "cluster_id": cluster_id}
        )
        return cluster

    def remove(self, caller: Caller, cluster_id: str) -> int:
        """
        Unassign the cluster's ideas, then delete it.
        Returns how many ideas were unassigned; a missing cluster is a no-op (0).
        """
        cluster = self.get_cluster(cluster_id)
        if cluster is None:
            return 0
        session_id = cluster.session_id
        authorize_session(self.db, caller, session_id)
        unassigned = (
            self.db.query(Idea)
            .filter(Idea.session_id == session_id, Idea.cluster_id == cluster_id)
            .update({Idea.cluster_id: None}, synchronize_session=False)
        )
        self.db.delete(cluster)
        self.db.commit()
        logger.info(
            "Removed cluster %s (%s ideas unassigned)", cluster_id, unassigned
        )
        self.feed.publish(
            "clusters", session_id, {"type": "removed", "cluster_id": cluster_id}
        )
        if unassigned:
            self.feed.publish(
                "ideas", session_id, {"type": "unclustered", "cluster_id": cluster_id}
            )
        return unassigned


def get_cluster_manager(db: Session = Depends(get_db)) -> ClusterManager:
    """Dependency provider for ClusterManager."""
    return ClusterManager(db=db)
