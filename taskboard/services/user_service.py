from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from taskboard.core.exceptions import ConflictError, NotFoundError
from taskboard.models.user import User, Theme
from taskboard.services.security_service import SecurityService
from taskboard.logs import debug_logger, log_function

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 32
DEFAULT_USER_NAME = "User"


def display_name(name: Optional[str], email: str) -> str:
    """Fit an external display name into the users.name column"""
    for candidate in (name, email.split("@")[0]):
        candidate = (candidate or "").strip()[:NAME_MAX_LENGTH].strip()
        if len(candidate) >= NAME_MIN_LENGTH:
            return candidate
    return DEFAULT_USER_NAME


class UserService:
    """CRUD operations service for User model"""

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        name: str,
        email: str,
        password: Optional[str] = None,
        avatar_url: Optional[str] = None,
        google_id: Optional[str] = None
    ) -> User:
        """Create a new user

        Without a password the account gets an unusable one and can only
        sign in through Google.
        """
        if await UserService.get_by_email(db, email):
            raise ConflictError("Provided email already exists")

        if password is not None:
            hashed_password = SecurityService.create_password_hash(password)
        else:
            hashed_password = SecurityService.create_unusable_password_hash()

        user = User(
            name=name,
            email=email,
            hashed_password=hashed_password,
            google_id=google_id,
        )
        if avatar_url:
            user.avatar_url = avatar_url

        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            await db.rollback()
            raise ConflictError("Provided email already exists")
        await db.refresh(user)
        debug_logger.info(f"Registered user {user.id}")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        query = select(User).where(User.email == email)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_many(db: AsyncSession, user_ids: list[int]) -> list[User]:
        """Load users by id, failing if any id does not resolve"""
        unique_ids = list(dict.fromkeys(user_ids))
        if not unique_ids:
            return []

        query = select(User).where(User.id.in_(unique_ids))
        result = await db.execute(query)
        users = {user.id: user for user in result.scalars().all()}

        missing = [user_id for user_id in unique_ids if user_id not in users]
        if missing:
            raise NotFoundError(f"User not found: {missing[0]}")

        return [users[user_id] for user_id in unique_ids]

    @staticmethod
    async def find_or_create_google_user(
        db: AsyncSession,
        email: str,
        name: str,
        avatar_url: Optional[str] = None,
        google_id: Optional[str] = None
    ) -> User:
        user = await UserService.get_by_email(db, email)
        if user:
            if google_id and not user.google_id:
                user.google_id = google_id
                await db.commit()
            return user

        return await UserService.create(
            db,
            name=display_name(name, email),
            email=email,
            avatar_url=avatar_url,
            google_id=google_id,
        )

    @staticmethod
    async def _apply(db: AsyncSession, user_id: int, values: dict) -> User:
        if values:
            stmt = update(User).where(User.id == user_id).values(**values)
            await db.execute(stmt)
            await db.commit()

        query = select(User).where(User.id == user_id).execution_options(populate_existing=True)
        result = await db.execute(query)
        user = result.scalars().first()
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def update_theme(db: AsyncSession, user_id: int, theme: Theme) -> User:
        return await UserService._apply(db, user_id, {"theme": Theme(theme).value})

    @staticmethod
    async def update_avatar(db: AsyncSession, user_id: int, avatar_url: str) -> User:
        return await UserService._apply(db, user_id, {"avatar_url": avatar_url})

    @staticmethod
    @log_function()
    async def update_profile(
        db: AsyncSession,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None
    ) -> User:
        """Update name, email and/or password of a user"""
        update_data = {}
        if name is not None:
            update_data["name"] = name
        if email is not None:
            existing_user = await UserService.get_by_email(db, email)
            if existing_user and existing_user.id != user_id:
                raise ConflictError("Provided email already exists")
            update_data["email"] = email
        if password is not None:
            update_data["hashed_password"] = SecurityService.create_password_hash(password)

        return await UserService._apply(db, user_id, update_data)
