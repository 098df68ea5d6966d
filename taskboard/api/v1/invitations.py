from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.api.dependencies.permissions import check_board_access, WRITE_ROLES
from taskboard.models.user import User
from taskboard.schemas.invitation import (
    InvitationCreate,
    InvitationResponse,
    InvitationList,
)
from taskboard.services.invitation_service import InvitationService

router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)


@router.post("", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
async def create_invitation(
    invitation_create: InvitationCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Invite a user to a board (owner and collaborators)"""
    await check_board_access(invitation_create.board_id, db, current_user, WRITE_ROLES)

    invitation = await InvitationService.create(
        db=db,
        board_id=invitation_create.board_id,
        user_id=invitation_create.user_id,
        invited_by_id=current_user.id,
    )
    return invitation


@router.get("", response_model=InvitationList)
async def get_pending_invitations(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Pending invitations addressed to the current user"""
    invitations = await InvitationService.get_pending_for_user(db=db, user_id=current_user.id)
    return {"invitations": invitations}


@router.post("/accept/{invitation_id}", response_model=InvitationResponse)
async def accept_invitation(
    invitation_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Accept an invitation and join the board"""
    return await InvitationService.accept(
        db=db,
        invitation_id=invitation_id,
        user_id=current_user.id,
    )


@router.post("/decline/{invitation_id}", response_model=InvitationResponse)
async def decline_invitation(
    invitation_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Decline an invitation; an existing membership of the board is revoked"""
    return await InvitationService.decline(
        db=db,
        invitation_id=invitation_id,
        user_id=current_user.id,
    )
