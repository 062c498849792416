from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from datetime import datetime, timedelta, UTC
from jose import JWTError, jwt
import os
import logging
import secrets

from ideaboard.auth.credentials import Caller
from ideaboard.config.loader import get_access_token_expire_minutes
from ideaboard.data.user_manager import UserManager
from ideaboard.database import get_db
from ideaboard.models.user import User as UserModel

# Set up a dedicated logger for authentication events
logger = logging.getLogger("auth_module")
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

ACCESS_TOKEN_COOKIE = "access_token"
CO_ADMIN_TOKEN_HEADER = "X-CoAdmin-Token"
PARTICIPANT_TOKEN_HEADER = "X-Participant-Token"


# --- Configuration ---
def generate_dev_key() -> str:
    """Generate a throwaway signing key for development environments ONLY."""
    key = secrets.token_urlsafe(48)
    logger.warning(
        "\n"
        + "*" * 80
        + "\n"
        + "DEVELOPMENT MODE: Using generated secret key.\n"
        + "Tokens will not survive a restart and this is NOT secure for production.\n"
        + "Set IDEABOARD_JWT_SECRET_KEY in your environment variables for production.\n"
        + "*" * 80
    )
    return key


def validate_secret_key(key: str) -> bool:
    if not key:
        return False
    if len(key) < 32:
        logger.error("JWT secret key must be at least 32 characters long.")
        return False
    return True


def _is_production_mode() -> bool:
    env = os.getenv("IDEABOARD_ENV", "development").strip().lower()
    return env in {"production", "prod"}


SECRET_KEY = os.getenv("IDEABOARD_JWT_SECRET_KEY")
ALGORITHM = "HS256"
JWT_ISSUER = os.getenv("IDEABOARD_JWT_ISSUER", "ideaboard")
ACCESS_TOKEN_EXPIRE_MINUTES = get_access_token_expire_minutes()

if not SECRET_KEY:
    if _is_production_mode():
        raise RuntimeError(
            "Missing IDEABOARD_JWT_SECRET_KEY while IDEABOARD_ENV is set to production. "
            + "Configure a strong static secret before startup."
        )
    SECRET_KEY = generate_dev_key()
elif not validate_secret_key(SECRET_KEY):
    raise RuntimeError(
        "Invalid JWT secret key configuration. "
        + "The key must be at least 32 characters long. "
        + "Update IDEABOARD_JWT_SECRET_KEY in your environment variables."
    )
else:
    logger.info("JWT secret key validated and loaded from environment.")

if ACCESS_TOKEN_EXPIRE_MINUTES > 60:
    logger.warning(
        "Long token expiration time configured: %s minutes. "
        "Consider reducing this value.",
        ACCESS_TOKEN_EXPIRE_MINUTES,
    )


# --- Token Utilities ---


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Creates a signed JWT access token.
    The 'sub' claim carries the user's login.
    """
    to_encode = data.copy()
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now, "iss": JWT_ISSUER})

    try:
        encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    except JWTError as e:
        logger.error(
            "Error creating access token for subject %s: %s",
            data.get("sub"),
            e,
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create access token due to an internal error.",
        )
    logger.info("Created access token for subject: %s", data.get("sub"))
    return encoded_jwt


def decode_access_token(token: str) -> Optional[str]:
    """Return the login carried by a valid token, or None."""
    try:
        payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            issuer=JWT_ISSUER,
            options={"verify_aud": False},
        )
    except JWTError:
        logger.warning("JWT decode failure.")
        return None
    login = payload.get("sub")
    if not login:
        logger.warning("Token payload missing 'sub' (login).")
        return None
    return login


async def get_token_from_cookie(request: Request) -> Optional[str]:
    """
    Extracts the JWT from the 'access_token' HTTPOnly cookie.
    Handles a 'Bearer ' prefix.
    """
    token_with_prefix = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token_with_prefix:
        logger.debug("No 'access_token' cookie found in request.")
        return None
    if token_with_prefix.startswith("Bearer "):
        return token_with_prefix.split(" ", 1)[1]
    return token_with_prefix


# --- User Retrieval Dependencies ---


def load_user_from_token(token: Optional[str], db: Session) -> Optional[UserModel]:
    """Return the user a token belongs to; never raises for bad tokens."""
    if not token:
        return None
    login = decode_access_token(token)
    if login is None:
        return None
    user_crud = UserManager()
    user_crud.set_db(db)
    user = user_crud.get_user_by_login(login)
    if not user:
        logger.warning("User '%s' from a valid token no longer exists.", login)
    return user


async def get_optional_user(
    request: Request,
    token: Optional[str] = Depends(get_token_from_cookie),
    db: Session = Depends(get_db),
) -> Optional[UserModel]:
    user = load_user_from_token(token, db)
    if user is not None:
        request.state.user = user
    return user


async def get_current_active_user(
    user: Optional[UserModel] = Depends(get_optional_user),
) -> UserModel:
    """Signed-in facilitator, or 401."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials. Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_caller(
    request: Request,
    user: Optional[UserModel] = Depends(get_optional_user),
) -> Caller:
    """Resolve every credential the request carries, once."""
    co_admin_token = (request.headers.get(CO_ADMIN_TOKEN_HEADER) or "").strip()
    participant_token = (request.headers.get(PARTICIPANT_TOKEN_HEADER) or "").strip()
    return Caller(
        user_id=user.user_id if user else None,
        co_admin_token=co_admin_token or None,
        participant_token=participant_token or None,
    )


__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_token_from_cookie",
    "load_user_from_token",
    "get_optional_user",
    "get_current_active_user",
    "get_caller",
    "ACCESS_TOKEN_COOKIE",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "SECRET_KEY",
    "ALGORITHM",
    "JWT_ISSUER",
]
