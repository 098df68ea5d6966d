from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from sqlalchemy.orm import selectinload
from datetime import datetime

from taskboard.core.exceptions import NotFoundError, ValidationError
from taskboard.models.board import Board
from taskboard.models.column import Column
from taskboard.models.card import Card, CardCollaborator
from taskboard.logs import debug_logger


class ColumnService:
    """CRUD operations service for Column model"""

    @staticmethod
    async def create(
        db: AsyncSession,
        board_id: int,
        title: str
    ) -> Column:
        """Append a new column to a board"""
        if not title or not title.strip():
            raise ValidationError("title: Title cannot be empty")

        board = await db.get(Board, board_id)
        if not board:
            raise NotFoundError("Board not found")

        column = Column(
            title=title.strip(),
            board_id=board_id,
            owner_id=board.owner_id,
        )

        db.add(column)
        await db.commit()
        debug_logger.debug(f"Created column {column.id} on board {board_id}")

        return await ColumnService.get_by_id(db, column.id, load_cards=True)

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        column_id: int,
        load_cards: bool = False
    ) -> Optional[Column]:
        """Get column by id with optional cards loading"""
        query = select(Column).where(Column.id == column_id)

        if load_cards:
            query = query.options(
                selectinload(Column.cards).selectinload(Card.collaborators)
            ).execution_options(populate_existing=True)

        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_board_id(
        db: AsyncSession,
        board_id: int,
        load_cards: bool = False
    ) -> List[Column]:
        """Get all columns of a board in insertion order"""
        if not await db.get(Board, board_id):
            raise NotFoundError("Board not found")

        query = select(Column).where(Column.board_id == board_id).order_by(Column.id)

        if load_cards:
            query = query.options(
                selectinload(Column.cards).selectinload(Card.collaborators)
            ).execution_options(populate_existing=True)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def update(
        db: AsyncSession,
        column_id: int,
        title: str
    ) -> Optional[Column]:
        """Rename a column"""
        if not title or not title.strip():
            raise ValidationError("title: Title cannot be empty")

        stmt = update(Column).where(Column.id == column_id).values(
            title=title.strip(),
            updated_at=datetime.utcnow()
        )
        result = await db.execute(stmt)
        await db.commit()

        if result.rowcount == 0:
            return None

        return await ColumnService.get_by_id(db, column_id, load_cards=True)

    @staticmethod
    async def delete(
        db: AsyncSession,
        column_id: int
    ) -> bool:
        """Delete a column and its cards"""
        card_ids = select(Card.id).where(Card.column_id == column_id)
        await db.execute(delete(CardCollaborator).where(CardCollaborator.card_id.in_(card_ids)))
        await db.execute(delete(Card).where(Card.column_id == column_id))
        result = await db.execute(delete(Column).where(Column.id == column_id))
        await db.commit()

        deleted = result.rowcount > 0
        if deleted:
            debug_logger.info(f"Column {column_id} deleted with its cards")
        return deleted
