import pytest
from unittest.mock import AsyncMock, patch, MagicMock
from datetime import datetime, timedelta
from jose import jwt

from taskboard.services.security_service import SecurityService
from taskboard.services.session_service import SessionService
from taskboard.models.user import User
from taskboard.models.session import UserSession
from sqlalchemy.ext.asyncio import AsyncSession


class TestSecurityService:
    """Unit tests for SecurityService"""

    def setup_method(self):
        """Setup for each test"""
        self.mock_db = AsyncMock(spec=AsyncSession)
        self.test_user = User(
            id=1,
            name="Test User",
            email="test@example.com",
            hashed_password="$2b$12$test_hashed_password",
        )
        self.test_session = UserSession(id="session-1", user_id=1)

    def _mock_first(self, value):
        mock_scalars = MagicMock()
        mock_scalars.first.return_value = value

        mock_result = MagicMock()
        mock_result.scalars.return_value = mock_scalars

        self.mock_db.execute.return_value = mock_result

    def test_create_password_hash(self):
        """Hash differs from the password and is a bcrypt hash"""
        password = "testpassword123"
        hash_result = SecurityService.create_password_hash(password)

        assert hash_result != password
        assert hash_result.startswith("$2b$")

    def test_verify_password_correct(self):
        password = "testpassword123"
        hash_password = SecurityService.create_password_hash(password)

        assert SecurityService.verify_password(password, hash_password) is True

    def test_verify_password_incorrect(self):
        hash_password = SecurityService.create_password_hash("testpassword123")

        assert SecurityService.verify_password("wrongpassword", hash_password) is False

    def test_unusable_password_hash_is_random(self):
        """Google-only accounts get a hash nobody knows the password of"""
        first = SecurityService.create_unusable_password_hash()
        second = SecurityService.create_unusable_password_hash()

        assert first != second
        assert SecurityService.verify_password("", first) is False

    @pytest.mark.asyncio
    async def test_get_user_by_email_found(self):
        self._mock_first(self.test_user)

        result = await SecurityService.get_user_by_email(self.mock_db, "test@example.com")

        assert result == self.test_user
        self.mock_db.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_user_by_email_not_found(self):
        self._mock_first(None)

        result = await SecurityService.get_user_by_email(self.mock_db, "nonexistent@example.com")

        assert result is None
        self.mock_db.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_authenticate_user_success(self):
        password = "testpassword123"
        self.test_user.hashed_password = SecurityService.create_password_hash(password)

        with patch.object(SecurityService, 'get_user_by_email', return_value=self.test_user):
            result = await SecurityService.authenticate_user(self.mock_db, "test@example.com", password)
            assert result == self.test_user

    @pytest.mark.asyncio
    async def test_authenticate_user_wrong_password(self):
        self.test_user.hashed_password = SecurityService.create_password_hash("testpassword123")

        with patch.object(SecurityService, 'get_user_by_email', return_value=self.test_user):
            result = await SecurityService.authenticate_user(self.mock_db, "test@example.com", "wrongpassword")
            assert result is None

    @pytest.mark.asyncio
    async def test_authenticate_user_not_found(self):
        with patch.object(SecurityService, 'get_user_by_email', return_value=None):
            result = await SecurityService.authenticate_user(self.mock_db, "nobody@example.com", "testpassword123")
            assert result is None

    @patch('taskboard.services.security_service.settings')
    def test_create_access_token(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        token = SecurityService.create_access_token({"sub": "1", "sid": "session-1"}, timedelta(minutes=30))

        decoded = jwt.decode(token, "test_secret_key", algorithms=["HS256"])
        assert decoded["sub"] == "1"
        assert decoded["sid"] == "session-1"
        assert decoded["type"] == "access"

    @patch('taskboard.services.security_service.settings')
    def test_create_refresh_token(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        token = SecurityService.create_refresh_token({"sub": "1", "sid": "session-1"}, timedelta(days=7))

        decoded = jwt.decode(token, "test_secret_key", algorithms=["HS256"])
        assert decoded["type"] == "refresh"
        assert "jti" in decoded

    @patch('taskboard.services.security_service.settings')
    def test_create_tokens_default_lifetimes(self, mock_settings):
        """Access token lives for hours, refresh token for days"""
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"
        mock_settings.ACCESS_TOKEN_EXPIRE_MINUTES = 1200
        mock_settings.REFRESH_TOKEN_EXPIRE_DAYS = 7

        tokens = SecurityService.create_tokens(1, "session-1")

        assert tokens["token_type"] == "bearer"
        access = jwt.decode(tokens["access_token"], "test_secret_key", algorithms=["HS256"])
        refresh = jwt.decode(tokens["refresh_token"], "test_secret_key", algorithms=["HS256"])

        assert access["sid"] == refresh["sid"] == "session-1"
        access_lifetime = datetime.utcfromtimestamp(access["exp"]) - datetime.utcnow()
        refresh_lifetime = datetime.utcfromtimestamp(refresh["exp"]) - datetime.utcnow()
        assert timedelta(hours=19) < access_lifetime <= timedelta(hours=20)
        assert timedelta(days=6) < refresh_lifetime <= timedelta(days=7)

    @patch('taskboard.services.security_service.settings')
    def test_verify_token_valid_access(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        data = {"sub": "1", "sid": "session-1", "type": "access", "exp": datetime.utcnow() + timedelta(minutes=30)}
        token = jwt.encode(data, "test_secret_key", algorithm="HS256")

        result = SecurityService.verify_token(token, "access")

        assert result is not None
        assert result["sub"] == "1"

    @patch('taskboard.services.security_service.settings')
    def test_verify_token_expired(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        data = {"sub": "1", "sid": "session-1", "type": "access", "exp": datetime.utcnow() - timedelta(minutes=30)}
        token = jwt.encode(data, "test_secret_key", algorithm="HS256")

        assert SecurityService.verify_token(token, "access") is None

    @patch('taskboard.services.security_service.settings')
    def test_verify_token_wrong_type(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        data = {"sub": "1", "sid": "session-1", "type": "refresh", "exp": datetime.utcnow() + timedelta(days=7)}
        token = jwt.encode(data, "test_secret_key", algorithm="HS256")

        assert SecurityService.verify_token(token, "access") is None

    @patch('taskboard.services.security_service.settings')
    def test_verify_token_without_session(self, mock_settings):
        """Tokens that carry no session id are never accepted"""
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        data = {"sub": "1", "type": "access", "exp": datetime.utcnow() + timedelta(minutes=30)}
        token = jwt.encode(data, "test_secret_key", algorithm="HS256")

        assert SecurityService.verify_token(token, "access") is None

    @patch('taskboard.services.security_service.settings')
    def test_verify_token_bad_signature(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        data = {"sub": "1", "sid": "session-1", "type": "access", "exp": datetime.utcnow() + timedelta(minutes=30)}
        token = jwt.encode(data, "another_key", algorithm="HS256")

        assert SecurityService.verify_token(token, "access") is None

    @pytest.mark.asyncio
    async def test_resolve_token_success(self):
        payload = {"sub": "1", "sid": "session-1", "type": "access"}

        with patch.object(SecurityService, 'verify_token', return_value=payload), \
             patch.object(SessionService, 'get_by_id', return_value=self.test_session), \
             patch.object(SecurityService, 'get_user_by_id', return_value=self.test_user):

            result = await SecurityService.resolve_token(self.mock_db, "token")

            assert result == (self.test_user, self.test_session)

    @pytest.mark.asyncio
    async def test_resolve_token_closed_session(self):
        """A signed token is rejected once its session is gone"""
        payload = {"sub": "1", "sid": "session-1", "type": "access"}

        with patch.object(SecurityService, 'verify_token', return_value=payload), \
             patch.object(SessionService, 'get_by_id', return_value=None), \
             patch.object(SecurityService, 'get_user_by_id', return_value=self.test_user) as mock_get_user:

            result = await SecurityService.resolve_token(self.mock_db, "token")

            assert result is None
            mock_get_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_resolve_token_session_of_another_user(self):
        payload = {"sub": "2", "sid": "session-1", "type": "access"}

        with patch.object(SecurityService, 'verify_token', return_value=payload), \
             patch.object(SessionService, 'get_by_id', return_value=self.test_session):

            assert await SecurityService.resolve_token(self.mock_db, "token") is None

    @pytest.mark.asyncio
    async def test_resolve_token_user_not_found(self):
        payload = {"sub": "1", "sid": "session-1", "type": "access"}

        with patch.object(SecurityService, 'verify_token', return_value=payload), \
             patch.object(SessionService, 'get_by_id', return_value=self.test_session), \
             patch.object(SecurityService, 'get_user_by_id', return_value=None):

            assert await SecurityService.resolve_token(self.mock_db, "token") is None

    @pytest.mark.asyncio
    async def test_refresh_tokens_keeps_session(self):
        with patch.object(SecurityService, 'resolve_token', return_value=(self.test_user, self.test_session)), \
             patch.object(SecurityService, 'create_tokens') as mock_create_tokens:

            mock_create_tokens.return_value = {
                "access_token": "new_access_token",
                "refresh_token": "new_refresh_token",
                "token_type": "bearer"
            }

            result = await SecurityService.refresh_tokens(self.mock_db, "valid_refresh_token")

            assert result["access_token"] == "new_access_token"
            mock_create_tokens.assert_called_once_with(1, "session-1")

    @pytest.mark.asyncio
    async def test_refresh_tokens_invalid_token(self):
        with patch.object(SecurityService, 'verify_token', return_value=None):
            result = await SecurityService.refresh_tokens(self.mock_db, "invalid_refresh_token")
            assert result is None

    @pytest.mark.asyncio
    async def test_logout_closes_session(self):
        with patch.object(SecurityService, 'resolve_token', return_value=(self.test_user, self.test_session)), \
             patch.object(SessionService, 'delete', return_value=True) as mock_delete:

            assert await SecurityService.logout(self.mock_db, "valid_refresh_token") is True
            mock_delete.assert_called_once_with(self.mock_db, "session-1")

    @pytest.mark.asyncio
    async def test_logout_invalid_token(self):
        with patch.object(SecurityService, 'resolve_token', return_value=None), \
             patch.object(SessionService, 'delete') as mock_delete:

            assert await SecurityService.logout(self.mock_db, "invalid") is False
            mock_delete.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
