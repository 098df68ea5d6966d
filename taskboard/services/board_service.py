from typing import List, Optional, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from sqlalchemy.orm import selectinload

from taskboard.core.exceptions import ValidationError
from taskboard.models.board import Board, BoardBackground, BoardIcon, BoardRole, board_collaborators
from taskboard.models.column import Column
from taskboard.models.card import Card, CardCollaborator
from taskboard.models.invitation import Invitation
from taskboard.services.user_service import UserService
from taskboard.logs import debug_logger, log_function


def _validate_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValidationError("title: Title cannot be empty")
    return title.strip()


def _validate_choice(value, choices, field: str) -> Optional[str]:
    """Check a value against a closed enumeration and return its raw string"""
    if value is None:
        return None
    try:
        return choices(value).value
    except ValueError:
        allowed = ", ".join(choice.value for choice in choices)
        raise ValidationError(f"{field}: value must be one of {allowed}")


def _complete_board_options():
    return (
        selectinload(Board.collaborators),
        selectinload(Board.columns).selectinload(Column.cards).selectinload(Card.collaborators),
    )


class BoardService:
    """Board aggregate: boards with their columns and cards"""

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        owner_id: int,
        title: str,
        background: Optional[str] = None,
        icon: Optional[str] = None,
        collaborators: Optional[Iterable[int]] = None
    ) -> Board:
        """Create a new board with no columns"""
        title = _validate_title(title)
        background = _validate_choice(background, BoardBackground, "background")
        icon = _validate_choice(icon, BoardIcon, "icon")

        collaborator_ids = [user_id for user_id in (collaborators or []) if user_id != owner_id]
        collaborator_users = await UserService.get_many(db, collaborator_ids)

        board = Board(
            title=title,
            background=background,
            icon=icon,
            owner_id=owner_id,
            collaborators=collaborator_users,
        )
        db.add(board)
        await db.commit()

        debug_logger.info(f"Created board {board.id} for user {owner_id}")
        return await BoardService.get_complete_board(db, board.id)

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        board_id: int,
        load_relations: bool = False
    ) -> Optional[Board]:
        """Get board by id with optional relations loading"""
        query = select(Board).where(Board.id == board_id)

        if load_relations:
            query = query.options(selectinload(Board.collaborators)).execution_options(
                populate_existing=True
            )

        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_complete_board(
        db: AsyncSession,
        board_id: int
    ) -> Optional[Board]:
        """Deep read of a board: collaborators, columns, cards and card collaborators"""
        query = (
            select(Board)
            .where(Board.id == board_id)
            .options(*_complete_board_options())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_boards_by_user(
        db: AsyncSession,
        user_id: int
    ) -> List[Board]:
        """Boards the user owns or collaborates on"""
        shared_board_ids = select(board_collaborators.c.board_id).where(
            board_collaborators.c.user_id == user_id
        )
        query = (
            select(Board)
            .where(or_(Board.owner_id == user_id, Board.id.in_(shared_board_ids)))
            .options(selectinload(Board.collaborators))
            .order_by(Board.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        board_id: int,
        title: Optional[str] = None,
        background: Optional[str] = None,
        icon: Optional[str] = None,
        collaborators: Optional[Iterable[int]] = None
    ) -> Optional[Board]:
        """Update a board's details; a collaborators list replaces the current set"""
        board = await BoardService.get_by_id(db, board_id, load_relations=True)
        if not board:
            return None

        if title is not None:
            board.title = _validate_title(title)
        if background is not None:
            board.background = _validate_choice(background, BoardBackground, "background")
        if icon is not None:
            board.icon = _validate_choice(icon, BoardIcon, "icon")
        if collaborators is not None:
            collaborator_ids = [user_id for user_id in collaborators if user_id != board.owner_id]
            board.collaborators = await UserService.get_many(db, collaborator_ids)

        await db.commit()
        return await BoardService.get_complete_board(db, board_id)

    @staticmethod
    @log_function()
    async def delete(
        db: AsyncSession,
        board_id: int
    ) -> bool:
        """Delete a board together with everything nested under it"""
        card_ids = select(Card.id).where(Card.board_id == board_id)
        await db.execute(delete(CardCollaborator).where(CardCollaborator.card_id.in_(card_ids)))
        await db.execute(delete(Card).where(Card.board_id == board_id))
        await db.execute(delete(Column).where(Column.board_id == board_id))
        await db.execute(delete(Invitation).where(Invitation.board_id == board_id))
        await db.execute(delete(board_collaborators).where(board_collaborators.c.board_id == board_id))
        result = await db.execute(delete(Board).where(Board.id == board_id))
        await db.commit()

        deleted = result.rowcount > 0
        if deleted:
            debug_logger.info(f"Board {board_id} deleted with its columns and cards")
        return deleted

    @staticmethod
    async def get_user_role(
        db: AsyncSession,
        board_id: int,
        user_id: int,
        board: Optional[Board] = None
    ) -> Optional[BoardRole]:
        """Derive a user's role on a board

        Returns OWNER for the board's owner, COLLABORATOR for users in the
        collaborator set and None for everyone else.
        """
        if board is None:
            board = await BoardService.get_by_id(db, board_id)
            if not board:
                return None

        if board.owner_id == user_id:
            return BoardRole.OWNER

        query = select(board_collaborators.c.user_id).where(
            board_collaborators.c.board_id == board_id,
            board_collaborators.c.user_id == user_id
        )
        result = await db.execute(query)
        return BoardRole.COLLABORATOR if result.first() else None

    @staticmethod
    async def add_collaborator(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> bool:
        """Add a user to the collaborators; returns False if already present"""
        board = await BoardService.get_by_id(db, board_id, load_relations=True)
        if not board or board.owner_id == user_id:
            return False

        if any(user.id == user_id for user in board.collaborators):
            return False

        user = await UserService.get_by_id(db, user_id)
        if not user:
            return False

        board.collaborators.append(user)
        await db.flush()
        return True

    @staticmethod
    async def remove_collaborator(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> bool:
        """Remove a user from the collaborators; absent users are ignored"""
        stmt = delete(board_collaborators).where(
            board_collaborators.c.board_id == board_id,
            board_collaborators.c.user_id == user_id
        )
        result = await db.execute(stmt)
        await db.flush()
        return result.rowcount > 0
