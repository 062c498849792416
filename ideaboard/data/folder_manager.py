import logging
from typing import List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ..auth.credentials import Caller, require_identity
from ..database import get_db
from ..errors import FolderNotFound
from ..models.folder import Folder
from ..models.session import WorkshopSession
from ..services.change_feed import ChangeFeed, change_feed

logger = logging.getLogger("ideaboard.folders")


class FolderManager:
    """Per-owner folders used to group sessions on the dashboard."""

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or change_feed

    def _owned(self, caller: Caller, folder_id: str) -> Folder:
        user_id = require_identity(caller)
        folder = self.db.query(Folder).filter(Folder.folder_id == folder_id).first()
        # Another owner's folder is reported as missing, not forbidden.
        if folder is None or folder.owner_id != user_id:
            raise FolderNotFound()
        return folder

    def list_folders(self, caller: Caller) -> List[Folder]:
        if not caller.user_id:
            return []
        return (
            self.db.query(Folder)
            .filter(Folder.owner_id == caller.user_id)
            .order_by(Folder.created_at)
            .all()
        )

    def create(self, caller: Caller, name: str) -> Folder:
        user_id = require_identity(caller)
        folder = Folder(owner_id=user_id, name=name)
        self.db.add(folder)
        self.db.commit()
        self.db.refresh(folder)
        logger.info("Created folder %s for user %s", folder.folder_id, user_id)
        self.feed.publish(
            "folders", user_id, {"type": "created", "folder_id": folder.folder_id}
        )
        return folder

    def rename(self, caller: Caller, folder_id: str, name: str) -> Folder:
        folder = self._owned(caller, folder_id)
        folder.name = name
        self.db.commit()
        self.db.refresh(folder)
        self.feed.publish(
            "folders", folder.owner_id, {"type": "renamed", "folder_id": folder_id}
        )
        return folder

    def remove(self, caller: Caller, folder_id: str) -> int:
        """Unassign the folder's sessions, then delete it. Returns sessions unassigned."""
        folder = self._owned(caller, folder_id)
        unassigned = (
            self.db.query(WorkshopSession)
            .filter(WorkshopSession.folder_id == folder_id)
            .update({WorkshopSession.folder_id: None}, synchronize_session=False)
        )
        owner_id = folder.owner_id
        self.db.delete(folder)
        self.db.commit()
        logger.info(
            "Removed folder %s (%s sessions unassigned)", folder_id, unassigned
        )
        self.feed.publish(
            "folders", owner_id, {"type": "removed", "folder_id": folder_id}
        )
        return unassigned


def get_folder_manager(db: Session = Depends(get_db)) -> FolderManager:
    """Dependency provider for FolderManager."""
    return FolderManager(db=db)
