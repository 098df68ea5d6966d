from datetime import datetime
import uuid
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from taskboard.db.base import Base


def generate_session_id() -> str:
    return str(uuid.uuid4())


class UserSession(Base):
    """Server-side login session backing one access/refresh token pair"""

    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=generate_session_id)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", backref="sessions")
