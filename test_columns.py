import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.dependencies.permissions import (
    check_board_access,
    check_board_permissions,
    READ_ROLES,
    OWNER_ONLY,
)
from taskboard.api.v1.columns import (
    create_column,
    get_columns,
    get_column,
    update_column,
    delete_column
)
from taskboard.models.user import User
from taskboard.models.board import Board, BoardRole
from taskboard.models.column import Column
from taskboard.schemas.column import ColumnCreate, ColumnUpdate

from conftest import register_user, auth_headers


class TestCheckBoardAccess:
    """Tests for check_board_access"""

    @pytest.fixture
    def mock_db(self):
        return AsyncMock(spec=AsyncSession)

    @pytest.fixture
    def regular_user(self):
        user = MagicMock(spec=User)
        user.id = 1
        return user

    @pytest.fixture
    def mock_board(self):
        board = MagicMock(spec=Board)
        board.id = 1
        board.owner_id = 1
        board.title = "Test Board"
        return board

    @pytest.mark.asyncio
    async def test_access_existing_board(self, mock_db, regular_user, mock_board):
        with patch('taskboard.api.dependencies.permissions.BoardService.get_by_id', return_value=mock_board), \
             patch('taskboard.api.dependencies.permissions.check_board_permissions') as mock_check_permissions:

            result = await check_board_access(1, mock_db, regular_user)

            assert result == mock_board
            mock_check_permissions.assert_called_once_with(
                db=mock_db,
                board_id=1,
                user_id=regular_user.id,
                required_roles=READ_ROLES,
                board=mock_board
            )

    @pytest.mark.asyncio
    async def test_access_with_owner_only_roles(self, mock_db, regular_user, mock_board):
        with patch('taskboard.api.dependencies.permissions.BoardService.get_by_id', return_value=mock_board), \
             patch('taskboard.api.dependencies.permissions.check_board_permissions') as mock_check_permissions:

            await check_board_access(1, mock_db, regular_user, OWNER_ONLY)

            assert mock_check_permissions.call_args.kwargs["required_roles"] == [BoardRole.OWNER]

    @pytest.mark.asyncio
    async def test_access_nonexistent_board(self, mock_db, regular_user):
        """Missing board is reported before any role check"""
        with patch('taskboard.api.dependencies.permissions.BoardService.get_by_id', return_value=None), \
             patch('taskboard.api.dependencies.permissions.check_board_permissions') as mock_check_permissions:

            with pytest.raises(HTTPException) as exc_info:
                await check_board_access(999, mock_db, regular_user)

            assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND
            assert "Board not found" in str(exc_info.value.detail)
            mock_check_permissions.assert_not_called()


class TestCheckBoardPermissions:
    """Tests for check_board_permissions"""

    @pytest.fixture
    def mock_db(self):
        return AsyncMock(spec=AsyncSession)

    @pytest.mark.asyncio
    async def test_stranger_is_forbidden(self, mock_db):
        with patch('taskboard.api.dependencies.permissions.BoardService.get_user_role', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await check_board_permissions(mock_db, 1, 5, READ_ROLES)

            assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
            assert exc_info.value.detail == "You don't have access to this board"

    @pytest.mark.asyncio
    async def test_collaborator_cannot_do_owner_only(self, mock_db):
        with patch('taskboard.api.dependencies.permissions.BoardService.get_user_role',
                   return_value=BoardRole.COLLABORATOR):
            with pytest.raises(HTTPException) as exc_info:
                await check_board_permissions(mock_db, 1, 2, OWNER_ONLY)

            assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_collaborator_can_read(self, mock_db):
        with patch('taskboard.api.dependencies.permissions.BoardService.get_user_role',
                   return_value=BoardRole.COLLABORATOR):
            role = await check_board_permissions(mock_db, 1, 2, READ_ROLES)
            assert role == BoardRole.COLLABORATOR


class TestColumnEndpoints:
    """Tests for the column endpoints with mocked services"""

    @pytest.fixture
    def mock_db(self):
        return AsyncMock(spec=AsyncSession)

    @pytest.fixture
    def current_user(self):
        user = MagicMock(spec=User)
        user.id = 1
        return user

    @pytest.fixture
    def mock_column(self):
        column = MagicMock(spec=Column)
        column.id = 10
        column.title = "Todo"
        column.board_id = 1
        return column

    @pytest.mark.asyncio
    async def test_create_column(self, mock_db, current_user, mock_column):
        with patch('taskboard.api.v1.columns.check_board_access') as mock_access, \
             patch('taskboard.api.v1.columns.ColumnService.create', return_value=mock_column) as mock_create:

            result = await create_column(1, ColumnCreate(title="Todo"), mock_db, current_user)

            assert result == mock_column
            mock_access.assert_called_once()
            mock_create.assert_called_once_with(db=mock_db, board_id=1, title="Todo")

    @pytest.mark.asyncio
    async def test_get_columns(self, mock_db, current_user, mock_column):
        with patch('taskboard.api.v1.columns.check_board_access'), \
             patch('taskboard.api.v1.columns.ColumnService.get_by_board_id', return_value=[mock_column]):

            result = await get_columns(1, mock_db, current_user)

            assert result == {"columns": [mock_column]}

    @pytest.mark.asyncio
    async def test_get_column_not_found(self, mock_db, current_user):
        with patch('taskboard.api.v1.columns.check_board_access'), \
             patch('taskboard.api.v1.columns.ColumnService.get_by_id', return_value=None):

            with pytest.raises(HTTPException) as exc_info:
                await get_column(1, 99, mock_db, current_user)

            assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_get_column_of_another_board(self, mock_db, current_user, mock_column):
        mock_column.board_id = 2
        with patch('taskboard.api.v1.columns.check_board_access'), \
             patch('taskboard.api.v1.columns.ColumnService.get_by_id', return_value=mock_column):

            with pytest.raises(HTTPException) as exc_info:
                await get_column(1, 10, mock_db, current_user)

            assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_update_column(self, mock_db, current_user, mock_column):
        renamed = MagicMock(spec=Column)
        renamed.title = "Doing"
        with patch('taskboard.api.v1.columns.check_board_access'), \
             patch('taskboard.api.v1.columns.ColumnService.get_by_id', return_value=mock_column), \
             patch('taskboard.api.v1.columns.ColumnService.update', return_value=renamed) as mock_update:

            result = await update_column(1, 10, ColumnUpdate(title="Doing"), mock_db, current_user)

            assert result.title == "Doing"
            mock_update.assert_called_once_with(db=mock_db, column_id=10, title="Doing")

    @pytest.mark.asyncio
    async def test_delete_column(self, mock_db, current_user, mock_column):
        with patch('taskboard.api.v1.columns.check_board_access'), \
             patch('taskboard.api.v1.columns.ColumnService.get_by_id', return_value=mock_column), \
             patch('taskboard.api.v1.columns.ColumnService.delete', return_value=True) as mock_delete:

            await delete_column(1, 10, mock_db, current_user)

            mock_delete.assert_called_once_with(db=mock_db, column_id=10)


@pytest.mark.asyncio
async def test_column_title_length_is_validated(client):
    owner = await register_user(client)
    board = (await client.post("/api/boards", json={"title": "Board"}, headers=auth_headers(owner))).json()

    response = await client.post(
        f"/api/boards/{board['id']}/columns",
        json={"title": "x" * 151},
        headers=auth_headers(owner),
    )

    assert response.status_code == 400
    assert response.json()["detail"].startswith("title:")


@pytest.mark.asyncio
async def test_columns_keep_insertion_order(client):
    owner = await register_user(client)
    headers = auth_headers(owner)
    board = (await client.post("/api/boards", json={"title": "Board"}, headers=headers)).json()

    for title in ("Todo", "Doing", "Done"):
        response = await client.post(f"/api/boards/{board['id']}/columns", json={"title": title}, headers=headers)
        assert response.status_code == 201

    response = await client.get(f"/api/boards/{board['id']}/columns", headers=headers)

    assert [column["title"] for column in response.json()["columns"]] == ["Todo", "Doing", "Done"]


@pytest.mark.asyncio
async def test_delete_column_removes_its_cards(client):
    owner = await register_user(client)
    headers = auth_headers(owner)
    board = (await client.post("/api/boards", json={"title": "Board"}, headers=headers)).json()
    column = (await client.post(f"/api/boards/{board['id']}/columns", json={"title": "Todo"}, headers=headers)).json()
    cards_url = f"/api/boards/{board['id']}/columns/{column['id']}/cards"
    card = (await client.post(cards_url, json={"title": "Fix bug"}, headers=headers)).json()

    response = await client.delete(f"/api/boards/{board['id']}/columns/{column['id']}", headers=headers)
    assert response.status_code == 204

    response = await client.get(f"{cards_url}/{card['id']}", headers=headers)
    assert response.status_code == 404

    response = await client.get(f"/api/boards/{board['id']}", headers=headers)
    assert response.json()["columns"] == []
