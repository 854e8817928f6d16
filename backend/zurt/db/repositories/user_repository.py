# backend/zurt/db/repositories/user_repository.py
from typing import Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from zurt.db.models.user import User
from zurt.db.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        result = await self.session.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def lock(self, user_id: UUID) -> Optional[User]:
        """
        SELECT ... FOR UPDATE on the user row.

        Serializes subscription changes for one user until the transaction
        ends. SQLite ignores FOR UPDATE.
        """
        result = await self.session.execute(
            select(User).where(User.id == user_id).with_for_update()
        )
        return result.scalar_one_or_none()
