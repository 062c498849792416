from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from ideaboard.database import Base
from ideaboard.utils.identifiers import generate_id


class User(Base):
    """Facilitator account; the owner identity of sessions and folders."""

    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, index=True, default=generate_id)
    login = Column(String(120), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    sessions = relationship("WorkshopSession", back_populates="owner")
    folders = relationship("Folder", back_populates="owner")
