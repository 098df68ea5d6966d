from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import NotFoundError, ValidationError
from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user
from taskboard.api.dependencies.permissions import check_board_access, READ_ROLES, WRITE_ROLES
from taskboard.models.user import User
from taskboard.models.column import Column
from taskboard.services.column_service import ColumnService
from taskboard.schemas.column import (
    ColumnCreate,
    ColumnResponse,
    ColumnUpdate,
    ColumnList,
)

router = APIRouter(
    prefix="/boards/{board_id}/columns",
    tags=["columns"],
)


async def get_board_column(
    board_id: int,
    column_id: int,
    db: AsyncSession,
    load_cards: bool = False
) -> Column:
    """Load a column and make sure it belongs to the board in the path"""
    column = await ColumnService.get_by_id(db=db, column_id=column_id, load_cards=load_cards)
    if not column:
        raise NotFoundError("Column not found")

    if column.board_id != board_id:
        raise ValidationError("column_id: Column does not belong to the specified board")

    return column


@router.post("", response_model=ColumnResponse, status_code=status.HTTP_201_CREATED)
async def create_column(
    board_id: int,
    column_create: ColumnCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Append a column to a board (owner and collaborators)"""
    await check_board_access(board_id, db, current_user, WRITE_ROLES)

    column = await ColumnService.create(
        db=db,
        board_id=board_id,
        title=column_create.title,
    )
    return column


@router.get("", response_model=ColumnList)
async def get_columns(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get all columns of a board with their cards"""
    await check_board_access(board_id, db, current_user, READ_ROLES)

    columns = await ColumnService.get_by_board_id(
        db=db,
        board_id=board_id,
        load_cards=True
    )
    return {"columns": columns}


@router.get("/{column_id}", response_model=ColumnResponse)
async def get_column(
    board_id: int,
    column_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get a specific column by ID"""
    await check_board_access(board_id, db, current_user, READ_ROLES)

    return await get_board_column(board_id, column_id, db, load_cards=True)


@router.put("/{column_id}", response_model=ColumnResponse)
async def update_column(
    board_id: int,
    column_id: int,
    column_update: ColumnUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Rename a column"""
    await check_board_access(board_id, db, current_user, WRITE_ROLES)
    await get_board_column(board_id, column_id, db)

    updated_column = await ColumnService.update(
        db=db,
        column_id=column_id,
        title=column_update.title,
    )
    if not updated_column:
        raise NotFoundError("Column not found")

    return updated_column


@router.delete("/{column_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_column(
    board_id: int,
    column_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a column together with its cards"""
    await check_board_access(board_id, db, current_user, WRITE_ROLES)
    await get_board_column(board_id, column_id, db)

    deleted = await ColumnService.delete(db=db, column_id=column_id)
    if not deleted:
        raise NotFoundError("Column not found")
