# backend/zurt/api/dependencies.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

import jwt

from zurt.core.config import settings
from zurt.core.exceptions import SubscriptionsUnavailable
from zurt.core.security import decode_token
from zurt.db.database import get_db
from zurt.db.models.user import User
from zurt.db.repositories.user_repository import UserRepository
from zurt.services.mercadopago_service import MercadoPagoService
from zurt.services.plan_catalog import PlanCatalog
from zurt.services.subscription_service import SubscriptionService

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    try:
        payload = decode_token(credentials.credentials)
        user_id = uuid.UUID(str(payload.get("sub")))
    except (jwt.InvalidTokenError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )

    user = await UserRepository(db).get(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Verify user is active"""
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )
    return current_user


def get_payment_gateway() -> MercadoPagoService:
    """Mercado Pago adapter configured from settings"""
    return MercadoPagoService.from_settings()


async def get_subscription_service(
    db: AsyncSession = Depends(get_db),
    gateway: MercadoPagoService = Depends(get_payment_gateway),
) -> SubscriptionService:
    return SubscriptionService(
        db,
        gateway,
        cadence_pricing=settings.CADENCE_PRICING_ENABLED,
    )


async def get_plan_catalog(db: AsyncSession = Depends(get_db)) -> PlanCatalog:
    return PlanCatalog(db, cadence_pricing=settings.CADENCE_PRICING_ENABLED)


async def require_subscriptions_enabled() -> None:
    """Block write endpoints on deployments without subscriptions"""
    if not settings.SUBSCRIPTIONS_ENABLED:
        raise SubscriptionsUnavailable()
