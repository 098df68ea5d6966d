from typing import List, Optional, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
from datetime import datetime

from taskboard.core.exceptions import NotFoundError, ValidationError
from taskboard.models.card import Card, CardCollaborator, CardPriority, priority_color_for
from taskboard.models.column import Column
from taskboard.services.user_service import UserService
from taskboard.logs import debug_logger, log_function, api_logger

# Sentinel for "field not provided" in partial updates
UNSET = object()


def _validate_priority(priority) -> CardPriority:
    try:
        return CardPriority(priority)
    except ValueError:
        allowed = ", ".join(p.value for p in CardPriority)
        raise ValidationError(f"priority: value must be one of {allowed}")


async def _snapshot_collaborators(db: AsyncSession, user_ids: Iterable[int]) -> List[CardCollaborator]:
    """Capture name and avatar of each user as they are right now"""
    users = await UserService.get_many(db, list(user_ids))
    return [
        CardCollaborator(user_id=user.id, name=user.name, avatar_url=user.avatar_url)
        for user in users
    ]


class CardService:
    """CRUD operations service for Card model"""

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        column_id: int,
        title: str,
        description: Optional[str] = None,
        priority: CardPriority = CardPriority.WITHOUT,
        priority_color: Optional[str] = None,
        deadline: Optional[datetime] = None,
        collaborator_ids: Optional[Iterable[int]] = None
    ) -> Card:
        """Create a new card at the end of a column"""
        if not title or not title.strip():
            raise ValidationError("title: Title cannot be empty")
        priority = _validate_priority(priority or CardPriority.WITHOUT)

        column = await db.get(Column, column_id)
        if not column:
            raise NotFoundError("Column not found")

        card = Card(
            title=title.strip(),
            description=description,
            priority=priority.value,
            priority_color=priority_color_for(priority, priority_color),
            deadline=deadline,
            column_id=column.id,
            board_id=column.board_id,
            owner_id=column.owner_id,
            collaborators=await _snapshot_collaborators(db, collaborator_ids or []),
        )

        db.add(card)
        await db.commit()

        debug_logger.info(f"Created card {card.id} in column {column_id}")
        return await CardService.get_by_id(db, card.id, load_relations=True)

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        card_id: int,
        load_relations: bool = False
    ) -> Optional[Card]:
        """Get a card by ID with optional relation loading"""
        query = select(Card).where(Card.id == card_id)

        if load_relations:
            query = query.options(selectinload(Card.collaborators)).execution_options(
                populate_existing=True
            )

        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_column_id(
        db: AsyncSession,
        column_id: int
    ) -> List[Card]:
        """Get all cards of a column in insertion order"""
        query = (
            select(Card)
            .where(Card.column_id == column_id)
            .options(selectinload(Card.collaborators))
            .order_by(Card.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        card_id: int,
        title: Optional[str] = None,
        description=UNSET,
        priority: Optional[CardPriority] = None,
        priority_color: Optional[str] = None,
        deadline=UNSET,
        collaborator_ids: Optional[Iterable[int]] = None
    ) -> Optional[Card]:
        """Update a card's details

        Changing the priority without an explicit colour resets the colour
        to the priority's default. A collaborator list replaces the current
        snapshots with fresh ones.
        """
        card = await CardService.get_by_id(db, card_id, load_relations=True)
        if not card:
            debug_logger.warning(f"Card {card_id} not found for update")
            return None

        if title is not None:
            if not title.strip():
                raise ValidationError("title: Title cannot be empty")
            card.title = title.strip()
        if description is not UNSET:
            card.description = description
        if priority is not None:
            priority = _validate_priority(priority)
            card.priority = priority.value
            card.priority_color = priority_color_for(priority, priority_color)
        elif priority_color is not None:
            card.priority_color = priority_color
        if deadline is not UNSET:
            card.deadline = deadline
        if collaborator_ids is not None:
            card.collaborators = await _snapshot_collaborators(db, collaborator_ids)

        await db.commit()
        debug_logger.info(f"Card {card_id} updated")
        return await CardService.get_by_id(db, card_id, load_relations=True)

    @staticmethod
    async def delete(
        db: AsyncSession,
        card_id: int
    ) -> bool:
        """Delete a card"""
        await db.execute(delete(CardCollaborator).where(CardCollaborator.card_id == card_id))
        result = await db.execute(delete(Card).where(Card.id == card_id))
        await db.commit()

        deleted = result.rowcount > 0
        if deleted:
            debug_logger.info(f"Card {card_id} deleted")
        else:
            debug_logger.warning(f"Card {card_id} not found for deletion")
        return deleted

    @staticmethod
    @log_function()
    async def move_card(
        db: AsyncSession,
        card_id: int,
        destination_column_id: int
    ) -> Card:
        """Move a card to another column of the same board

        Only the column reference changes. Moves across boards are refused
        so the card's board and owner always match its column.
        """
        card = await CardService.get_by_id(db, card_id)
        if not card:
            raise NotFoundError("Card not found")

        destination = await db.get(Column, destination_column_id)
        if not destination:
            raise NotFoundError("Target column not found")

        if destination.board_id != card.board_id:
            api_logger.warning(
                f"Refused to move card {card_id} from board {card.board_id} "
                f"to column {destination_column_id} of board {destination.board_id}"
            )
            raise ValidationError("column_id: Target column does not belong to the specified board")

        old_column_id = card.column_id
        card.column_id = destination.id
        await db.commit()

        debug_logger.info(f"Card {card_id} moved from column {old_column_id} to column {destination.id}")
        return await CardService.get_by_id(db, card_id, load_relations=True)
