# backend/zurt/db/repositories/plan_repository.py
from typing import Dict, List
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from zurt.core.constants import SubscriptionStatus
from zurt.db.models.plan import Plan
from zurt.db.models.subscription import Subscription
from zurt.db.repositories.base import BaseRepository


class PlanRepository(BaseRepository[Plan]):
    """Read-only access to the plan catalog"""

    def __init__(self, session: AsyncSession):
        super().__init__(Plan, session)

    async def list_active(self) -> List[Plan]:
        """Active plans, cheapest first"""
        result = await self.session.execute(
            select(Plan)
            .where(Plan.is_active.is_(True))
            .order_by(Plan.price_cents.asc(), Plan.code.asc())
        )
        return list(result.scalars().all())

    async def count_active_subscribers(self) -> Dict[UUID, int]:
        """Number of active subscriptions per plan"""
        result = await self.session.execute(
            select(Subscription.plan_id, func.count(Subscription.id))
            .where(Subscription.status == SubscriptionStatus.ACTIVE.value)
            .group_by(Subscription.plan_id)
        )
        return {plan_id: count for plan_id, count in result.all()}
