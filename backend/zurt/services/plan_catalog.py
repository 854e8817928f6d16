# backend/zurt/services/plan_catalog.py
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from zurt.core.constants import BillingPeriod
from zurt.core.exceptions import PlanInactive, PlanNotAvailable, PlanNotFound
from zurt.db.models.plan import Plan
from zurt.db.repositories.plan_repository import PlanRepository
from zurt.schemas.plan import PlanListing


class PlanCatalog:
    """
    Read-only view of the plans users can subscribe to.

    `cadence_pricing` is the deployment capability flag: when off, only the
    legacy flat price is used.
    """

    def __init__(self, session: AsyncSession, cadence_pricing: bool = True):
        self.plans = PlanRepository(session)
        self.cadence_pricing = cadence_pricing

    async def get_active_plan(self, plan_id: str) -> Plan:
        try:
            plan_uuid = UUID(str(plan_id))
        except ValueError:
            raise PlanNotFound(details={"planId": plan_id})

        plan = await self.plans.get(plan_uuid)
        if plan is None:
            raise PlanNotFound(details={"planId": plan_id})
        if not plan.is_active:
            raise PlanInactive(details={"planId": plan_id})
        return plan

    def resolve_price(self, plan: Plan, billing_period: BillingPeriod) -> int:
        """
        Price in cents for a cadence.

        Plans created before cadence pricing only carry price_cents, so a null
        cadence column falls back to it unchanged.
        """
        if self.cadence_pricing:
            if billing_period == BillingPeriod.ANNUAL:
                cadence_price = plan.annual_price_cents
            else:
                cadence_price = plan.monthly_price_cents
            if cadence_price is not None:
                return cadence_price
        return plan.price_cents

    @staticmethod
    def ensure_role_allowed(plan: Plan, user_role: Optional[str]) -> None:
        if plan.role and plan.role != user_role:
            raise PlanNotAvailable(details={"planId": str(plan.id), "role": plan.role})

    async def list_active_plans(self, billing_period: BillingPeriod) -> List[PlanListing]:
        plans = await self.plans.list_active()
        subscribers = await self.plans.count_active_subscribers()

        listings = []
        for plan in plans:
            monthly = self.resolve_price(plan, BillingPeriod.MONTHLY)
            annual = self.resolve_price(plan, BillingPeriod.ANNUAL)
            listings.append(PlanListing(
                id=plan.id,
                code=plan.code,
                name=plan.name,
                monthly_price_cents=monthly,
                annual_price_cents=annual,
                price_cents=annual if billing_period == BillingPeriod.ANNUAL else monthly,
                connection_limit=plan.connection_limit,
                features=plan.features,
                is_active=plan.is_active,
                role=plan.role,
                subscriber_count=subscribers.get(plan.id, 0),
            ))
        return listings
