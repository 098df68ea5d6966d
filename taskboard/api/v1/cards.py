from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import NotFoundError, ValidationError
from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.api.dependencies.permissions import check_board_access, READ_ROLES, WRITE_ROLES
from taskboard.api.v1.columns import get_board_column
from taskboard.models.user import User
from taskboard.models.card import Card
from taskboard.models.column import Column
from taskboard.services.card_service import CardService, UNSET
from taskboard.schemas.card import (
    CardCreate,
    CardResponse,
    CardUpdate,
    CardList,
    CardMove,
)
from taskboard.logs import debug_logger

router = APIRouter(
    prefix="/boards/{board_id}/columns/{column_id}/cards",
    tags=["cards"],
)


async def check_column_access(
    board_id: int,
    column_id: int,
    db: AsyncSession,
    current_user: User,
    required_roles=READ_ROLES
) -> Column:
    """
    Check the user's role on the board and that the column belongs to it

    Args:
        board_id: ID of the board
        column_id: ID of the column
        db: Database session
        current_user: Current authenticated user
        required_roles: Roles allowed to perform the operation
    """
    await check_board_access(board_id, db, current_user, required_roles)
    return await get_board_column(board_id, column_id, db)


async def get_column_card(
    column_id: int,
    card_id: int,
    db: AsyncSession
) -> Card:
    """Load a card and make sure it sits in the column from the path"""
    card = await CardService.get_by_id(db=db, card_id=card_id, load_relations=True)
    if not card:
        raise NotFoundError("Card not found")

    if card.column_id != column_id:
        raise ValidationError("card_id: Card does not belong to the specified column")

    return card


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    board_id: int,
    column_id: int,
    card_create: CardCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a new card at the end of a column"""
    await check_column_access(board_id, column_id, db, current_user, WRITE_ROLES)

    card = await CardService.create(
        db=db,
        column_id=column_id,
        title=card_create.title,
        description=card_create.description,
        priority=card_create.priority,
        priority_color=card_create.priority_color,
        deadline=card_create.deadline,
        collaborator_ids=card_create.collaborators,
    )
    return card


@router.get("", response_model=CardList)
async def get_cards(
    board_id: int,
    column_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get all cards of a column"""
    await check_column_access(board_id, column_id, db, current_user, READ_ROLES)

    cards = await CardService.get_by_column_id(db=db, column_id=column_id)
    return {"cards": cards}


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(
    board_id: int,
    column_id: int,
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get a specific card by ID"""
    await check_column_access(board_id, column_id, db, current_user, READ_ROLES)

    return await get_column_card(column_id, card_id, db)


@router.put("/{card_id}", response_model=CardResponse)
async def update_card(
    board_id: int,
    column_id: int,
    card_id: int,
    card_update: CardUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Update a card; fields left out of the body are kept"""
    await check_column_access(board_id, column_id, db, current_user, WRITE_ROLES)
    await get_column_card(column_id, card_id, db)

    provided = card_update.model_fields_set
    updated_card = await CardService.update(
        db=db,
        card_id=card_id,
        title=card_update.title,
        description=card_update.description if "description" in provided else UNSET,
        priority=card_update.priority,
        priority_color=card_update.priority_color,
        deadline=card_update.deadline if "deadline" in provided else UNSET,
        collaborator_ids=card_update.collaborators,
    )
    if not updated_card:
        raise NotFoundError("Card not found")

    return updated_card


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    board_id: int,
    column_id: int,
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a card"""
    await check_column_access(board_id, column_id, db, current_user, WRITE_ROLES)
    await get_column_card(column_id, card_id, db)

    deleted = await CardService.delete(db=db, card_id=card_id)
    if not deleted:
        raise NotFoundError("Card not found")


@router.patch("/{card_id}/move", response_model=CardResponse)
async def move_card(
    board_id: int,
    column_id: int,
    card_id: int,
    card_move: CardMove,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Move a card to another column of the same board"""
    await check_column_access(board_id, column_id, db, current_user, WRITE_ROLES)
    await get_column_card(column_id, card_id, db)

    debug_logger.debug(f"Moving card {card_id} from column {column_id} to column {card_move.column_id}")
    return await CardService.move_card(
        db=db,
        card_id=card_id,
        destination_column_id=card_move.column_id,
    )
