from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from taskboard.models.card import CardPriority


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Deadlines are stored as naive UTC datetimes"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CardBase(BaseModel):
    """Base schema for card data"""
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: CardPriority = CardPriority.WITHOUT
    priority_color: Optional[str] = Field(None, max_length=32)
    deadline: Optional[datetime] = None

    @field_validator('deadline')
    @classmethod
    def parse_deadline(cls, value):
        return to_naive_utc(value)


class CardCreate(CardBase):
    """Schema for card creation"""
    collaborators: Optional[List[int]] = None


class CardUpdate(BaseModel):
    """Schema for card update, only provided fields are changed"""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    priority: Optional[CardPriority] = None
    priority_color: Optional[str] = Field(None, max_length=32)
    deadline: Optional[datetime] = None
    collaborators: Optional[List[int]] = None

    @field_validator('deadline')
    @classmethod
    def parse_deadline(cls, value):
        return to_naive_utc(value)


class CardCollaboratorResponse(BaseModel):
    user_id: int
    name: str
    avatar_url: str

    class Config:
        from_attributes = True


class CardResponse(BaseModel):
    """Schema for card response"""
    id: int
    title: str
    description: Optional[str] = None
    priority: CardPriority
    priority_color: str
    deadline: Optional[datetime] = None
    column_id: int
    board_id: int
    owner_id: int
    collaborators: List[CardCollaboratorResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CardList(BaseModel):
    cards: List[CardResponse]


class CardMove(BaseModel):
    """Schema for moving a card to a different column"""
    column_id: int
