from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import secrets
import uuid

from taskboard.models.user import User
from taskboard.models.session import UserSession
from taskboard.services.session_service import SessionService
from taskboard.core import get_settings
from taskboard.logs import debug_logger

settings = get_settings()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

JWTToken = Dict[str, str]

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class SecurityService:
    """Password hashing, JWT issuing and session-backed token validation"""

    @staticmethod
    def create_password_hash(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_unusable_password_hash() -> str:
        """Hash of a random secret, for accounts that only sign in through Google"""
        return pwd_context.hash(secrets.token_urlsafe(32))

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
        query = select(User).where(User.email == email)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def authenticate_user(
        db: AsyncSession,
        email: str,
        password: str
    ) -> Optional[User]:
        """Return the user if the email exists and the password matches"""
        user = await SecurityService.get_user_by_email(db, email)
        if not user:
            return None

        if not SecurityService.verify_password(password, user.hashed_password):
            return None

        return user

    @staticmethod
    def _encode(
        data: Dict[str, Any],
        token_type: str,
        expires_delta: timedelta
    ) -> str:
        to_encode = data.copy()
        to_encode.update({
            "exp": datetime.utcnow() + expires_delta,
            "type": token_type,
            "jti": str(uuid.uuid4()),
        })
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        return SecurityService._encode(
            data,
            ACCESS_TOKEN_TYPE,
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    @staticmethod
    def create_refresh_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        return SecurityService._encode(
            data,
            REFRESH_TOKEN_TYPE,
            expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    @staticmethod
    def create_tokens(user_id: int, session_id: str) -> JWTToken:
        """Create an access/refresh pair bound to a session"""
        token_data = {"sub": str(user_id), "sid": session_id}

        return {
            "access_token": SecurityService.create_access_token(token_data),
            "refresh_token": SecurityService.create_refresh_token(token_data),
            "token_type": "bearer",
        }

    @staticmethod
    def verify_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> Optional[Dict[str, Any]]:
        """Check signature, expiry and type; return the payload or None"""
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
        except JWTError:
            return None

        if payload.get("type") != token_type:
            return None

        if payload.get("sub") is None or payload.get("sid") is None:
            return None

        return payload

    @staticmethod
    async def resolve_token(
        db: AsyncSession,
        token: str,
        token_type: str = ACCESS_TOKEN_TYPE
    ) -> Optional[Tuple[User, UserSession]]:
        """Resolve a token to its live user and session

        A cryptographically valid token is still rejected when its session
        was closed or its user no longer exists.
        """
        payload = SecurityService.verify_token(token, token_type)
        if not payload:
            return None

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            return None

        session = await SessionService.get_by_id(db, payload["sid"])
        if not session or session.user_id != user_id:
            debug_logger.debug(f"Token refers to a missing session {payload['sid']}")
            return None

        user = await SecurityService.get_user_by_id(db, user_id)
        if not user:
            return None

        return user, session

    @staticmethod
    async def get_current_user(db: AsyncSession, token: str) -> Optional[User]:
        resolved = await SecurityService.resolve_token(db, token)
        if not resolved:
            return None
        return resolved[0]

    @staticmethod
    async def start_session(db: AsyncSession, user: User) -> JWTToken:
        """Open a new session for the user and issue its tokens"""
        session = await SessionService.create(db, user.id)
        return SecurityService.create_tokens(user.id, session.id)

    @staticmethod
    async def refresh_tokens(db: AsyncSession, refresh_token: str) -> Optional[JWTToken]:
        """Issue a new pair for the same session"""
        resolved = await SecurityService.resolve_token(db, refresh_token, REFRESH_TOKEN_TYPE)
        if not resolved:
            return None

        user, session = resolved
        return SecurityService.create_tokens(user.id, session.id)

    @staticmethod
    async def logout(db: AsyncSession, refresh_token: str) -> bool:
        resolved = await SecurityService.resolve_token(db, refresh_token, REFRESH_TOKEN_TYPE)
        if not resolved:
            return False

        _, session = resolved
        return await SessionService.delete(db, session.id)
