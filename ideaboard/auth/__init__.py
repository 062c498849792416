from .auth import (
    create_access_token,
    decode_access_token,
    get_token_from_cookie,
    get_optional_user,
    get_current_active_user,
    get_caller,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    SECRET_KEY,
    ALGORITHM,
)
from .credentials import (
    ANONYMOUS,
    AnonymousCredential,
    Caller,
    CoAdminCredential,
    Credential,
    OwnerCredential,
    ParticipantCredential,
    authorize_session,
    require_owner,
    resolve_participant,
)

__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_token_from_cookie",
    "get_optional_user",
    "get_current_active_user",
    "get_caller",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "SECRET_KEY",
    "ALGORITHM",
    "ANONYMOUS",
    "AnonymousCredential",
    "Caller",
    "CoAdminCredential",
    "Credential",
    "OwnerCredential",
    "ParticipantCredential",
    "authorize_session",
    "require_owner",
    "resolve_participant",
]
