import logging
import uuid
from typing import Optional

from fastapi import Depends
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User

logger = logging.getLogger("auth_module")

# Password Hashing Context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password attempt against a stored bcrypt hash."""
    return pwd_context.verify(plain_password.strip(), hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password.strip())


class UserManager:
    """Facilitator accounts. Owners of sessions and folders are users."""

    def __init__(self):
        self.db: Optional[Session] = None

    def set_db(self, db: Session) -> None:
        self.db = db

    def add_user(self, login: str, hashed_password: str) -> User:
        normalized = (login or "").strip()
        if not normalized:
            raise ValueError("Login is required.")
        if self.get_user_by_login(normalized):
            raise ValueError(f"Login '{normalized}' is already registered.")

        user = User(login=normalized, hashed_password=hashed_password)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("Registered user %s (%s)", user.login, user.user_id)
        return user

    def get_user_by_login(self, login: str) -> Optional[User]:
        if not login:
            return None
        return self.db.query(User).filter(User.login == login.strip()).first()

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.user_id == user_id).first()

    def verify_user_credentials(self, login: str, password: str) -> Optional[User]:
        user = self.get_user_by_login(login)
        if not user:
            logger.info("Login attempt for unknown user '%s'", login)
            return None
        if not verify_password(password, user.hashed_password):
            logger.info("Login attempt with wrong password for '%s'", login)
            return None
        return user


def get_user_manager(db: Session = Depends(get_db)) -> UserManager:
    """Dependency provider for UserManager."""
    req_id = uuid.uuid4()
    logger.debug(f"[{req_id}] get_user_manager called")
    manager = UserManager()
    manager.set_db(db)
    return manager
