from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from taskboard.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from taskboard.models.board import Board
from taskboard.models.invitation import Invitation, InvitationStatus
from taskboard.services.board_service import BoardService
from taskboard.services.user_service import UserService
from taskboard.logs import debug_logger, log_function


class InvitationService:
    """Invitation workflow: pending -> accepted | declined

    Accepted and declined are terminal. Accepting adds the invitee to the
    board's collaborators, declining removes them; both are idempotent on
    the collaborator set.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, invitation_id: int) -> Optional[Invitation]:
        query = (
            select(Invitation)
            .where(Invitation.id == invitation_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_pending(db: AsyncSession, board_id: int, user_id: int) -> Optional[Invitation]:
        query = select(Invitation).where(
            Invitation.board_id == board_id,
            Invitation.user_id == user_id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        board_id: int,
        user_id: int,
        invited_by_id: Optional[int] = None
    ) -> Invitation:
        """Invite a user to a board

        Only one pending invitation may exist per board and user; once that
        one is answered a new invitation can be created.
        """
        board = await BoardService.get_by_id(db, board_id)
        if not board:
            raise NotFoundError("Board not found")

        invitee = await UserService.get_by_id(db, user_id)
        if not invitee:
            raise NotFoundError("User not found")

        if board.owner_id == user_id:
            raise ValidationError("user_id: The board owner cannot be invited to their own board")

        if await InvitationService.get_pending(db, board_id, user_id):
            raise ConflictError("User already has a pending invitation to this board")

        invitation = Invitation(
            board_id=board_id,
            user_id=user_id,
            invited_by_id=invited_by_id,
            status=InvitationStatus.PENDING.value,
        )
        db.add(invitation)
        await db.commit()

        debug_logger.info(f"User {invited_by_id} invited user {user_id} to board {board_id}")
        return invitation

    @staticmethod
    async def _respond(
        db: AsyncSession,
        invitation_id: int,
        user_id: int,
        new_status: InvitationStatus
    ) -> Invitation:
        invitation = await InvitationService.get_by_id(db, invitation_id)
        if not invitation:
            raise NotFoundError("Invitation not found")

        if invitation.user_id != user_id:
            raise AuthorizationError("Only the invited user can respond to this invitation")

        if invitation.status != InvitationStatus.PENDING.value:
            raise ConflictError(f"Invitation has already been {invitation.status}")

        invitation.status = new_status.value
        invitation.responded_at = datetime.utcnow()

        if new_status == InvitationStatus.ACCEPTED:
            added = await BoardService.add_collaborator(db, invitation.board_id, invitation.user_id)
            debug_logger.debug(f"Collaborator {invitation.user_id} added to board {invitation.board_id}: {added}")
        else:
            removed = await BoardService.remove_collaborator(db, invitation.board_id, invitation.user_id)
            debug_logger.debug(f"Collaborator {invitation.user_id} removed from board {invitation.board_id}: {removed}")

        await db.commit()
        debug_logger.info(f"Invitation {invitation_id} {new_status.value}")
        return invitation

    @staticmethod
    @log_function()
    async def accept(db: AsyncSession, invitation_id: int, user_id: int) -> Invitation:
        return await InvitationService._respond(db, invitation_id, user_id, InvitationStatus.ACCEPTED)

    @staticmethod
    @log_function()
    async def decline(db: AsyncSession, invitation_id: int, user_id: int) -> Invitation:
        return await InvitationService._respond(db, invitation_id, user_id, InvitationStatus.DECLINED)

    @staticmethod
    async def get_pending_for_user(db: AsyncSession, user_id: int) -> List[Invitation]:
        """Pending invitations of a user, each with its board summary"""
        query = (
            select(Invitation)
            .where(
                Invitation.user_id == user_id,
                Invitation.status == InvitationStatus.PENDING.value,
            )
            .options(selectinload(Invitation.board).selectinload(Board.owner))
            .order_by(Invitation.created_at, Invitation.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())
