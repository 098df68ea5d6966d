from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from taskboard.models.invitation import InvitationStatus
from taskboard.schemas.board import BoardSummary


class InvitationCreate(BaseModel):
    board_id: int
    user_id: int


class InvitationResponse(BaseModel):
    id: int
    board_id: int
    user_id: int
    invited_by_id: Optional[int] = None
    status: InvitationStatus
    created_at: datetime
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PendingInvitationResponse(InvitationResponse):
    board: BoardSummary


class InvitationList(BaseModel):
    invitations: List[PendingInvitationResponse]
