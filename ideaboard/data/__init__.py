"""
Data access layer providing one manager per workshop entity.
Managers raise ideaboard.errors kinds and publish to the change feed after commits.
"""

from .user_manager import UserManager
from .folder_manager import FolderManager
from .session_manager import SessionManager
from .participant_manager import ParticipantManager
from .co_admin_manager import CoAdminManager
from .ideas_manager import IdeasManager
from .cluster_manager import ClusterManager

__all__ = [
    "UserManager",
    "FolderManager",
    "SessionManager",
    "ParticipantManager",
    "CoAdminManager",
    "IdeasManager",
    "ClusterManager",
]
