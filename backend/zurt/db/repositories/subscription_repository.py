# backend/zurt/db/repositories/subscription_repository.py
from typing import Iterable, List, Optional, Tuple
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from zurt.core.constants import ENTITLED_STATUSES, LIVE_STATUSES, SubscriptionStatus
from zurt.db.models.subscription import Subscription
from zurt.db.repositories.base import BaseRepository

# id breaks created_at ties so "latest" is deterministic
NEWEST_FIRST = (Subscription.created_at.desc(), Subscription.id.desc())


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for Subscription operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Subscription, session)

    async def _latest(
        self,
        user_id: UUID,
        statuses: Optional[Iterable[SubscriptionStatus]] = None,
    ) -> Optional[Subscription]:
        query = (
            select(Subscription)
            .options(joinedload(Subscription.plan))
            .where(Subscription.user_id == user_id)
        )
        if statuses is not None:
            query = query.where(Subscription.status.in_([s.value for s in statuses]))

        result = await self.session.execute(
            query.order_by(*NEWEST_FIRST).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_current(self, user_id: UUID) -> Optional[Subscription]:
        """Most recently created subscription, any status"""
        return await self._latest(user_id)

    async def get_live(self, user_id: UUID) -> Optional[Subscription]:
        """The user's active, trialing or past_due subscription"""
        return await self._latest(user_id, LIVE_STATUSES)

    async def get_active(self, user_id: UUID) -> Optional[Subscription]:
        return await self._latest(user_id, [SubscriptionStatus.ACTIVE])

    async def get_entitled(self, user_id: UUID) -> Optional[Subscription]:
        """Latest subscription that currently grants plan features"""
        return await self._latest(user_id, ENTITLED_STATUSES)

    async def get_history(
        self,
        user_id: UUID,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Subscription], int]:
        """Subscriptions newest first plus the total count"""
        total = await self.session.scalar(
            select(func.count(Subscription.id)).where(Subscription.user_id == user_id)
        )

        result = await self.session.execute(
            select(Subscription)
            .options(joinedload(Subscription.plan))
            .where(Subscription.user_id == user_id)
            .order_by(*NEWEST_FIRST)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def save(self, subscription: Subscription) -> Subscription:
        """Flush pending changes on an already-tracked subscription"""
        self.session.add(subscription)
        await self.session.flush()
        return subscription
