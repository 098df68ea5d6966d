from datetime import datetime
from typing import List
from pydantic import BaseModel, Field

from taskboard.schemas.card import CardResponse


class ColumnCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=150)


class ColumnUpdate(BaseModel):
    """Only the title of a column can be changed"""
    title: str = Field(..., min_length=1, max_length=150)


class ColumnResponse(BaseModel):
    id: int
    title: str
    board_id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime
    cards: List[CardResponse] = []

    class Config:
        from_attributes = True


class ColumnList(BaseModel):
    columns: List[ColumnResponse]
