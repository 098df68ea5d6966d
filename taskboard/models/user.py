from datetime import datetime
import enum
from sqlalchemy import Column, Integer, String, DateTime

from taskboard.db.base import Base


class Theme(str, enum.Enum):
    DARK = "dark"
    LIGHT = "light"
    VIOLET = "violet"


DEFAULT_AVATAR = "default"


class User(Base):
    """Registered user of the task manager"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(32), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    avatar_url = Column(String, nullable=False, default=DEFAULT_AVATAR)
    theme = Column(String(16), nullable=False, default=Theme.DARK.value)
    google_id = Column(String, nullable=True, index=True)  # Linked Google account
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
