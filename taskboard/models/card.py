from datetime import datetime
from typing import Optional
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from taskboard.db.base import Base


class CardPriority(str, enum.Enum):
    """Card priority, declared from lowest to highest"""

    WITHOUT = "without"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return list(CardPriority).index(self)


PRIORITY_COLORS = {
    CardPriority.WITHOUT: "#B2B2B2",
    CardPriority.LOW: "#8FA1D0",
    CardPriority.MEDIUM: "#E09CB5",
    CardPriority.HIGH: "#BEDBB0",
}


def priority_color_for(priority: CardPriority, override: Optional[str] = None) -> str:
    return override or PRIORITY_COLORS[CardPriority(priority)]


class Card(Base):
    """Task unit inside a column"""

    __tablename__ = "cards"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(16), nullable=False, default=CardPriority.WITHOUT.value)
    priority_color = Column(String(32), nullable=False)
    deadline = Column(DateTime, nullable=True)
    column_id = Column(Integer, ForeignKey("columns.id", ondelete="CASCADE"), nullable=False, index=True)
    # Copied from the column on write, kept for filtering without joins
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    column = relationship("Column", back_populates="cards")

    collaborators = relationship(
        "CardCollaborator",
        back_populates="card",
        cascade="all, delete-orphan",
        order_by="CardCollaborator.id",
    )


class CardCollaborator(Base):
    """Snapshot of a user tagged on a card, taken at assignment time"""

    __tablename__ = "card_collaborators"

    id = Column(Integer, primary_key=True, index=True)
    card_id = Column(Integer, ForeignKey("cards.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(32), nullable=False)
    avatar_url = Column(String, nullable=False)

    card = relationship("Card", back_populates="collaborators")
