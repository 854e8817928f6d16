# backend/zurt/api/v1/subscriptions.py
from fastapi import APIRouter, Depends, Query, status

from zurt.api.dependencies import (
    get_current_active_user,
    get_subscription_service,
    require_subscriptions_enabled,
)
from zurt.core.config import settings
from zurt.core.constants import DEFAULT_HISTORY_PAGE_SIZE, MAX_HISTORY_PAGE_SIZE
from zurt.db.models.user import User
from zurt.schemas.subscription import SubscriptionCreate
from zurt.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get("/me")
async def get_my_subscription(
    current_user: User = Depends(get_current_active_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Latest subscription of the current user, whatever its status"""
    if not settings.SUBSCRIPTIONS_ENABLED:
        return {"subscription": None}

    subscription = await service.get_current_subscription(current_user.id)
    return {
        "subscription": subscription.model_dump(by_alias=True, mode="json") if subscription else None
    }


@router.get("/me/plan")
async def get_my_plan(
    current_user: User = Depends(get_current_active_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Plan currently granting features; null means the free tier"""
    if not settings.SUBSCRIPTIONS_ENABLED:
        return {"plan": None}

    plan = await service.get_entitled_plan(current_user.id)
    return {"plan": plan.model_dump(by_alias=True, mode="json") if plan else None}


@router.get("/me/checkout", dependencies=[Depends(require_subscriptions_enabled)])
async def get_my_checkout(
    current_user: User = Depends(get_current_active_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Checkout link for a subscription still awaiting payment"""
    checkout = await service.get_pending_checkout(current_user.id)
    return {"payment": checkout.model_dump(by_alias=True, mode="json")}


@router.get("/history")
async def get_subscription_history(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_HISTORY_PAGE_SIZE, ge=1, le=MAX_HISTORY_PAGE_SIZE),
    current_user: User = Depends(get_current_active_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """All subscriptions of the current user, newest first"""
    if not settings.SUBSCRIPTIONS_ENABLED:
        return {
            "history": [],
            "pagination": {"page": page, "limit": limit, "total": 0, "totalPages": 0},
        }

    items, pagination = await service.get_history(current_user.id, page=page, page_size=limit)
    return {
        "history": [item.model_dump(by_alias=True, mode="json") for item in items],
        "pagination": pagination.model_dump(by_alias=True, mode="json"),
    }


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_subscriptions_enabled)],
)
async def create_subscription(
    request: SubscriptionCreate,
    current_user: User = Depends(get_current_active_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Subscribe the current user to a plan.

    Any live subscription is canceled first. Paid plans come back past_due
    with a Mercado Pago checkout link; if the gateway is unavailable the
    subscription is still created and `payment` is omitted.
    """
    contact = request.payment.billing if request.payment else None
    result = await service.create_subscription(
        current_user,
        request.plan_id,
        billing_period=request.billing_period,
        contact=contact,
    )

    response = {"subscription": result.subscription.model_dump(by_alias=True, mode="json")}
    if result.payment is not None:
        response["payment"] = result.payment.model_dump(by_alias=True, mode="json")
    return response


@router.patch("/cancel", dependencies=[Depends(require_subscriptions_enabled)])
async def cancel_subscription(
    current_user: User = Depends(get_current_active_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Cancel the current user's active subscription"""
    await service.cancel_subscription(current_user.id)
    return {"message": "Subscription canceled successfully"}
