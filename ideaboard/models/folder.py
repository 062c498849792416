from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from ideaboard.database import Base
from ideaboard.utils.identifiers import generate_id


class Folder(Base):
    __tablename__ = "folders"

    folder_id = Column(String(36), primary_key=True, index=True, default=generate_id)
    owner_id = Column(
        String(36),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    owner = relationship("User", back_populates="folders")
