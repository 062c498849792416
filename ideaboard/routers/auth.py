import logging
from datetime import timedelta
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ideaboard.auth.auth import (
    ACCESS_TOKEN_COOKIE,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_current_active_user,
)
from ideaboard.config.loader import get_secure_cookies_enabled
from ideaboard.data.user_manager import (
    UserManager,
    get_password_hash,
    get_user_manager,
)
from ideaboard.models.user import User as UserModel
from ideaboard.schemas.user import LoginResponse, TokenRequest, User, UserCreate

router = APIRouter(prefix="/api/auth", tags=["authentication"])
logger = logging.getLogger("auth_module")


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register_user(
    user: UserCreate,
    user_manager: UserManager = Depends(get_user_manager),
):
    hashed_password = get_password_hash(user.password)
    try:
        created = user_manager.add_user(
            login=user.login, hashed_password=hashed_password
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return created


@router.post("/token", response_model=LoginResponse)
async def login_for_access_token(
    response: Response,
    token_request: TokenRequest,
    user_manager: UserManager = Depends(get_user_manager),
) -> LoginResponse:
    """
    Token login using JSON body for credentials.
    Sets an HTTPOnly cookie with the access token.
    """
    user = user_manager.verify_user_credentials(
        token_request.username, token_request.password
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect login or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.login},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=f"Bearer {access_token}",
        httponly=True,
        secure=get_secure_cookies_enabled(),
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        expires=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        path="/",
    )
    logger.info("User %s signed in", user.login)
    return LoginResponse(login_successful=True, user_id=user.user_id, login=user.login)


@router.post("/logout")
async def logout(response: Response) -> Dict[str, str]:
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, path="/")
    return {"message": "Logged out"}


@router.get("/me", response_model=User)
async def read_current_user(
    current_user: UserModel = Depends(get_current_active_user),
):
    return current_user
