from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from taskboard.models.board import BoardBackground, BoardIcon
from taskboard.schemas.column import ColumnResponse
from taskboard.schemas.user import UserSummary


class BoardCreate(BaseModel):
    """Schema for board creation"""
    title: str = Field(..., min_length=1)
    background: Optional[BoardBackground] = None
    icon: Optional[BoardIcon] = None
    collaborators: Optional[List[int]] = None


class BoardUpdate(BaseModel):
    """Schema for board update, only provided fields are changed"""
    title: Optional[str] = Field(None, min_length=1)
    background: Optional[BoardBackground] = None
    icon: Optional[BoardIcon] = None
    collaborators: Optional[List[int]] = None


class BoardResponse(BaseModel):
    id: int
    title: str
    background: Optional[str] = None
    icon: Optional[str] = None
    owner_id: int
    collaborators: List[UserSummary] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BoardList(BaseModel):
    boards: List[BoardResponse]
    total: int = 0


class BoardCompleteResponse(BoardResponse):
    """Board with its columns and their cards"""
    columns: List[ColumnResponse] = []


class BoardSummary(BaseModel):
    id: int
    title: str
    background: Optional[str] = None
    icon: Optional[str] = None
    owner: UserSummary

    class Config:
        from_attributes = True
