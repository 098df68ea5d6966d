from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import AuthenticationError
from taskboard.db.database import get_async_session
from taskboard.services.security_service import SecurityService
from taskboard.models.user import User

# OAuth2 configuration
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# Dependency to get current user
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_session)
) -> User:
    """
    Get the current authenticated user from the bearer token

    The token must be a valid access token whose session is still open.

    Raises:
        AuthenticationError: If the token is missing, invalid or revoked
    """
    if not token:
        raise AuthenticationError("Not authenticated")

    user = await SecurityService.get_current_user(db, token)
    if not user:
        raise AuthenticationError("Invalid authentication credentials")
    return user
