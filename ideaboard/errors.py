"""Workshop error kinds.

Each kind is an HTTPException subclass so managers can raise it directly and
FastAPI renders it with the right status. ``code`` is the stable, transport
independent name of the kind.
"""

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status


class WorkshopError(HTTPException):
    code = "workshop_error"
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_detail = "Workshop request failed."

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.default_detail,
        )

    def to_response(self) -> dict:
        return {"detail": self.detail, "code": self.code}


class NotAuthenticated(WorkshopError):
    code = "not_authenticated"
    status_code_default = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"


class NotAuthorized(WorkshopError):
    code = "not_authorized"
    status_code_default = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized"


class NotFound(WorkshopError):
    code = "not_found"
    status_code_default = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class SessionNotFound(NotFound):
    code = "session_not_found"
    default_detail = "Session not found"


class FolderNotFound(NotFound):
    code = "folder_not_found"
    default_detail = "Folder not found"


class IdeaNotFound(NotFound):
    code = "idea_not_found"
    default_detail = "Idea not found"


class ClusterNotFound(NotFound):
    code = "cluster_not_found"
    default_detail = "Cluster not found"


class RoundNotFound(NotFound):
    code = "round_not_found"
    default_detail = "Round not found"


class ParticipantNotFound(NotFound):
    code = "participant_not_found"
    default_detail = "Participant not found or not in this session"


class CoAdminNotFound(NotFound):
    code = "co_admin_not_found"
    default_detail = "Co-admin not found"


class InvalidInvite(NotFound):
    code = "invalid_invite"
    default_detail = "Invalid invite link"


class PhaseNotCollect(WorkshopError):
    code = "phase_not_collect"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Ideas can only be submitted during the collect phase"


class AlreadyAtFinalPhase(WorkshopError):
    code = "already_at_final_phase"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Already at final phase"


class InvalidRevert(WorkshopError):
    code = "invalid_revert"
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_detail = "Can only revert to an earlier phase"


class PhaseNotVote(WorkshopError):
    code = "phase_not_vote"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Voting rounds can only be created during the vote phase"


class SessionNotActive(WorkshopError):
    code = "session_not_active"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Session not found or not active"


class InvalidIdea(WorkshopError):
    code = "invalid_idea"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Idea text is invalid"


class InvalidVote(WorkshopError):
    code = "invalid_vote"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Vote submission is invalid"


class InvalidDisplayToken(WorkshopError):
    code = "invalid_display_token"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Display token must not be blank"
