from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import NotFoundError
from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.api.dependencies.permissions import check_board_access, READ_ROLES, OWNER_ONLY
from taskboard.models.user import User
from taskboard.models.card import CardPriority
from taskboard.schemas.board import (
    BoardCreate,
    BoardUpdate,
    BoardList,
    BoardCompleteResponse,
)
from taskboard.services.board_service import BoardService

router = APIRouter(
    prefix="/boards",
    tags=["boards"],
)


def filter_cards_by_priority(
    board: BoardCompleteResponse,
    priority: Optional[CardPriority]
) -> BoardCompleteResponse:
    """Keep only cards at or above the given priority; columns always stay"""
    if priority is None:
        return board

    for column in board.columns:
        column.cards = [card for card in column.cards if card.priority.rank >= priority.rank]
    return board


@router.post("", response_model=BoardCompleteResponse, status_code=status.HTTP_201_CREATED)
async def create_board(
    board_create: BoardCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a new board owned by the current user"""
    board = await BoardService.create(
        db=db,
        owner_id=current_user.id,
        title=board_create.title,
        background=board_create.background,
        icon=board_create.icon,
        collaborators=board_create.collaborators,
    )
    return board


@router.get("", response_model=BoardList)
async def get_boards(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get all boards the current user owns or collaborates on"""
    boards = await BoardService.get_boards_by_user(
        db=db,
        user_id=current_user.id,
    )
    return {
        "boards": boards,
        "total": len(boards)
    }


@router.get("/{board_id}", response_model=BoardCompleteResponse)
async def get_board(
    board_id: int,
    priority: Optional[CardPriority] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get a board with its columns and cards, optionally filtered by priority"""
    await check_board_access(board_id, db, current_user, READ_ROLES)

    board = await BoardService.get_complete_board(db=db, board_id=board_id)
    if not board:
        raise NotFoundError("Board not found")

    return filter_cards_by_priority(BoardCompleteResponse.model_validate(board), priority)


@router.put("/{board_id}", response_model=BoardCompleteResponse)
async def update_board(
    board_id: int,
    board_update: BoardUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Update a board (owner only)"""
    await check_board_access(board_id, db, current_user, OWNER_ONLY)

    updated_board = await BoardService.update(
        db=db,
        board_id=board_id,
        title=board_update.title,
        background=board_update.background,
        icon=board_update.icon,
        collaborators=board_update.collaborators,
    )
    if not updated_board:
        raise NotFoundError("Board not found")

    return updated_board


@router.delete("/{board_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a board with all its columns and cards (owner only)"""
    await check_board_access(board_id, db, current_user, OWNER_ONLY)

    deleted = await BoardService.delete(db=db, board_id=board_id)
    if not deleted:
        raise NotFoundError("Board not found")
