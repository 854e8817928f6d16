# backend/zurt/api/v1/plans.py
from fastapi import APIRouter, Depends, Query

from zurt.api.dependencies import get_plan_catalog
from zurt.core.config import settings
from zurt.services.billing_period import parse_billing_period
from zurt.services.plan_catalog import PlanCatalog

router = APIRouter()


@router.get("")
async def list_plans(
    billing_period: str = Query("monthly", alias="billingPeriod"),
    catalog: PlanCatalog = Depends(get_plan_catalog),
):
    """Active plans with prices for the requested billing period (public)"""
    if not settings.SUBSCRIPTIONS_ENABLED:
        return {"plans": []}

    plans = await catalog.list_active_plans(parse_billing_period(billing_period))
    return {"plans": [plan.model_dump(by_alias=True, mode="json") for plan in plans]}
