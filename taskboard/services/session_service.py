from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from taskboard.models.session import UserSession
from taskboard.logs import debug_logger


class SessionService:
    """Persistence of login sessions"""

    @staticmethod
    async def create(db: AsyncSession, user_id: int) -> UserSession:
        """Open a new session for a user"""
        session = UserSession(user_id=user_id)
        db.add(session)
        await db.commit()
        debug_logger.debug(f"Opened session {session.id} for user {user_id}")
        return session

    @staticmethod
    async def get_by_id(db: AsyncSession, session_id: str) -> Optional[UserSession]:
        query = select(UserSession).where(UserSession.id == session_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def delete(db: AsyncSession, session_id: str) -> bool:
        """Close a session; tokens bound to it stop working immediately"""
        stmt = delete(UserSession).where(UserSession.id == session_id)
        result = await db.execute(stmt)
        await db.commit()
        debug_logger.debug(f"Closed session {session_id}")
        return result.rowcount > 0
