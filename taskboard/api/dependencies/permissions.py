from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import AuthorizationError, NotFoundError
from taskboard.models.user import User
from taskboard.models.board import Board, BoardRole
from taskboard.services.board_service import BoardService
from taskboard.logs import debug_logger

READ_ROLES = [BoardRole.OWNER, BoardRole.COLLABORATOR]
WRITE_ROLES = [BoardRole.OWNER, BoardRole.COLLABORATOR]
OWNER_ONLY = [BoardRole.OWNER]


async def check_board_permissions(
    db: AsyncSession,
    board_id: int,
    user_id: int,
    required_roles: list[BoardRole],
    board: Optional[Board] = None
) -> BoardRole:
    """
    Check if a user has one of the required roles on a board

    Args:
        db: Database session
        board_id: Board ID
        user_id: User ID
        required_roles: Roles that may perform the operation
        board: Already loaded board (optional)

    Returns:
        The user's role, otherwise raises AuthorizationError
    """
    user_role = await BoardService.get_user_role(db, board_id, user_id, board)

    if not user_role:
        debug_logger.warning(f"User {user_id} has no role on board {board_id}")
        raise AuthorizationError("You don't have access to this board")

    if user_role not in required_roles:
        raise AuthorizationError("Only the board owner can perform this operation")

    return user_role


async def check_board_access(
    board_id: int,
    db: AsyncSession,
    current_user: User,
    required_roles: list[BoardRole] = READ_ROLES
) -> Board:
    """
    Load a board and check the current user's role on it

    A missing board is reported as 404 before any role check.
    """
    board = await BoardService.get_by_id(db=db, board_id=board_id)
    if not board:
        raise NotFoundError("Board not found")

    await check_board_permissions(
        db=db,
        board_id=board_id,
        user_id=current_user.id,
        required_roles=required_roles,
        board=board
    )

    return board
