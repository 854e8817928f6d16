# backend/zurt/services/subscription_service.py
"""
Subscription orchestrator.

Owns the subscription state machine and the transaction boundary for
creating, superseding and canceling subscriptions. The payment gateway is
only called after the subscription write has been committed, so a gateway
outage never loses or blocks local bookkeeping.
"""
from dataclasses import dataclass
from datetime import datetime
from math import ceil
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zurt.core.constants import (
    MAX_HISTORY_PAGE_SIZE,
    BillingPeriod,
    SubscriptionStatus,
)
from zurt.core.exceptions import (
    GatewayError,
    MissingPlanId,
    NoActiveSubscription,
    NoPendingPayment,
    SubscriptionConflict,
)
from zurt.core.logging import logger
from zurt.db.models.plan import Plan
from zurt.db.models.subscription import LIVE_SUBSCRIPTION_INDEX, Subscription
from zurt.db.models.user import User
from zurt.db.repositories.subscription_repository import SubscriptionRepository
from zurt.db.repositories.user_repository import UserRepository
from zurt.schemas.subscription import (
    BillingContact,
    CheckoutOut,
    HistoryItem,
    Pagination,
    PlanInfo,
    PlanSummary,
    SubscriptionMetadata,
    SubscriptionOut,
)
from zurt.services.billing_period import compute_period, parse_billing_period
from zurt.services.mercadopago_service import (
    CheckoutResult,
    MercadoPagoService,
    select_checkout_url,
)
from zurt.services.plan_catalog import PlanCatalog

# One retry after losing the one-live-subscription race, then give up
CREATE_ATTEMPTS = 2


def is_live_subscription_conflict(error: IntegrityError) -> bool:
    """True when `error` is the one-live-subscription index rejecting a write"""
    message = str(error.orig)
    # Postgres names the index; SQLite names the indexed column
    return (
        LIVE_SUBSCRIPTION_INDEX in message
        or "UNIQUE constraint failed: subscriptions.user_id" in message
    )


def initial_status(price_cents: int) -> SubscriptionStatus:
    """Free plans are in force immediately; paid ones wait for payment confirmation"""
    if price_cents == 0:
        return SubscriptionStatus.ACTIVE
    return SubscriptionStatus.PAST_DUE


def serialize_subscription(subscription: Subscription, plan: Plan, price_cents: int) -> SubscriptionOut:
    """`price_cents` is the price charged for the subscription's cadence, not the flat plan price"""
    return SubscriptionOut(
        id=subscription.id,
        status=subscription.status,
        billing_period=subscription.payment_metadata.billing_period,
        started_at=subscription.started_at,
        current_period_start=subscription.current_period_start,
        current_period_end=subscription.current_period_end,
        canceled_at=subscription.canceled_at,
        plan=PlanSummary(
            id=plan.id,
            code=plan.code,
            name=plan.name,
            price_cents=price_cents,
        ),
    )


@dataclass
class SubscriptionResult:
    """Outcome of a purchase: the stored subscription and, when obtained, a checkout link"""
    subscription: SubscriptionOut
    payment: Optional[CheckoutOut] = None


class SubscriptionService:
    """Create, cancel and query a user's subscriptions"""

    def __init__(
        self,
        session: AsyncSession,
        gateway: MercadoPagoService,
        cadence_pricing: bool = True,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.session = session
        self.gateway = gateway
        self.catalog = PlanCatalog(session, cadence_pricing=cadence_pricing)
        self.subscriptions = SubscriptionRepository(session)
        self.users = UserRepository(session)
        self.clock = clock

    async def create_subscription(
        self,
        user: User,
        plan_id: Optional[str],
        billing_period: Optional[str] = None,
        contact: Optional[BillingContact] = None,
    ) -> SubscriptionResult:
        if not plan_id:
            raise MissingPlanId()
        cadence = parse_billing_period(billing_period)
        user_id = user.id

        subscription, plan, price_cents = await self._write_subscription(user_id, plan_id, cadence)
        result = SubscriptionResult(subscription=serialize_subscription(subscription, plan, price_cents))

        if price_cents == 0:
            return result

        checkout = await self._request_checkout(subscription, plan, cadence, price_cents, contact, user)
        if checkout is None:
            return result

        result.payment = CheckoutOut(
            preference_id=checkout.preference_id,
            checkout_url=select_checkout_url(checkout, self.gateway.test_mode),
        )
        await self._attach_preference(subscription, checkout.preference_id)
        return result

    async def _write_subscription(
        self,
        user_id: UUID,
        plan_id: str,
        cadence: BillingPeriod,
    ) -> Tuple[Subscription, Plan, int]:
        """
        Supersede the live subscription (if any) and insert the new one in a
        single transaction, serialized per user by the user row lock.

        A unique-index violation means a concurrent request for the same user
        committed first; the whole read-modify-write is replayed once.
        """
        for attempt in range(1, CREATE_ATTEMPTS + 1):
            # Re-read everything on each attempt: a rollback expires loaded rows
            plan = await self.catalog.get_active_plan(plan_id)
            user = await self.users.lock(user_id)
            self.catalog.ensure_role_allowed(plan, user.role if user else None)
            price_cents = self.catalog.resolve_price(plan, cadence)

            try:
                now = self.clock()
                existing = await self.subscriptions.get_live(user_id)
                if existing is not None:
                    previous_status = existing.status
                    existing.transition_to(SubscriptionStatus.CANCELED, now)
                    await self.subscriptions.save(existing)
                    logger.info(
                        f"Superseding subscription {existing.id} (was {previous_status})",
                        extra={"user_id": user_id, "subscription_id": existing.id},
                    )

                period = compute_period(now, cadence)
                subscription = await self.subscriptions.create({
                    "user_id": user_id,
                    "plan_id": plan.id,
                    "status": initial_status(price_cents).value,
                    "started_at": now,
                    "created_at": now,
                    "current_period_start": period.start,
                    "current_period_end": period.end,
                    "metadata_json": SubscriptionMetadata(
                        billing_period=cadence.value,
                    ).model_dump(exclude_none=True),
                })
                await self.session.commit()
            except IntegrityError as e:
                await self.session.rollback()
                if not is_live_subscription_conflict(e):
                    raise
                if attempt == CREATE_ATTEMPTS:
                    logger.error(
                        "Subscription create kept conflicting with a concurrent request",
                        extra={"user_id": user_id},
                    )
                    raise SubscriptionConflict()
                logger.warning(
                    f"Concurrent subscription change detected, retrying (attempt {attempt})",
                    extra={"user_id": user_id},
                )
                continue

            logger.info(
                f"Created subscription {subscription.id} on plan {plan.code} "
                f"({cadence.value}, {price_cents} cents, {subscription.status})",
                extra={"user_id": user_id, "subscription_id": subscription.id},
            )
            return subscription, plan, price_cents

        raise SubscriptionConflict()

    async def _request_checkout(
        self,
        subscription: Subscription,
        plan: Plan,
        cadence: BillingPeriod,
        price_cents: int,
        contact: Optional[BillingContact],
        user: User,
    ) -> Optional[CheckoutResult]:
        """Ask the gateway for a checkout; failures leave the subscription past_due without a link"""
        try:
            return await self.gateway.create_checkout(
                subscription, plan, cadence, price_cents, contact, user
            )
        except GatewayError as e:
            logger.error(
                f"Checkout creation failed: {e.message}",
                extra={"user_id": subscription.user_id, "subscription_id": subscription.id},
            )
        except Exception:
            logger.exception(
                "Unexpected error while creating checkout",
                extra={"user_id": subscription.user_id, "subscription_id": subscription.id},
            )
        return None

    async def _attach_preference(self, subscription: Subscription, preference_id: str) -> None:
        """Best-effort second write; the checkout link is returned either way"""
        subscription_id = subscription.id
        try:
            metadata = subscription.payment_metadata.model_copy(
                update={"payment_preference_id": preference_id}
            )
            subscription.payment_metadata = metadata
            await self.subscriptions.save(subscription)
            await self.session.commit()
        except SQLAlchemyError:
            logger.exception(
                f"Failed to store preference {preference_id} on subscription",
                extra={"subscription_id": subscription_id},
            )
            await self.session.rollback()

    async def cancel_subscription(self, user_id: UUID) -> Subscription:
        """Cancel the user's active subscription"""
        await self.users.lock(user_id)
        subscription = await self.subscriptions.get_active(user_id)
        if subscription is None:
            raise NoActiveSubscription()

        subscription.transition_to(SubscriptionStatus.CANCELED, self.clock())
        await self.subscriptions.save(subscription)
        await self.session.commit()

        logger.info(
            f"Canceled subscription {subscription.id}",
            extra={"user_id": user_id, "subscription_id": subscription.id},
        )
        return subscription

    def charged_price(self, subscription: Subscription) -> int:
        """Price for the cadence stored on the subscription; rows without one were monthly"""
        cadence = parse_billing_period(subscription.payment_metadata.billing_period)
        return self.catalog.resolve_price(subscription.plan, cadence)

    async def get_current_subscription(self, user_id: UUID) -> Optional[SubscriptionOut]:
        """Latest subscription regardless of status"""
        subscription = await self.subscriptions.get_current(user_id)
        if subscription is None:
            return None
        return serialize_subscription(
            subscription, subscription.plan, self.charged_price(subscription)
        )

    async def get_history(
        self,
        user_id: UUID,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[HistoryItem], Pagination]:
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_HISTORY_PAGE_SIZE)

        subscriptions, total = await self.subscriptions.get_history(
            user_id, skip=(page - 1) * page_size, limit=page_size
        )
        items = [
            HistoryItem(
                id=s.id,
                status=s.status,
                plan_name=s.plan.name,
                price_cents=self.charged_price(s),
                started_at=s.started_at,
                current_period_start=s.current_period_start,
                current_period_end=s.current_period_end,
                canceled_at=s.canceled_at,
                created_at=s.created_at,
            )
            for s in subscriptions
        ]
        pagination = Pagination(
            page=page,
            limit=page_size,
            total=total,
            total_pages=ceil(total / page_size),
        )
        return items, pagination

    async def get_entitled_plan(self, user_id: UUID) -> Optional[PlanInfo]:
        """Plan granting features right now (active or trialing); None means the free tier"""
        subscription = await self.subscriptions.get_entitled(user_id)
        if subscription is None:
            return None
        return PlanInfo(
            plan_id=subscription.plan.id,
            plan_code=subscription.plan.code,
            plan_name=subscription.plan.name,
            subscription_status=subscription.status,
            connection_limit=subscription.plan.connection_limit,
        )

    async def get_pending_checkout(self, user_id: UUID) -> CheckoutOut:
        """
        Checkout link for a subscription still awaiting payment.

        Reuses the stored preference instead of creating a new one, so a user
        can come back to pay without duplicating preferences at the gateway.

        Raises:
            NoPendingPayment: no past_due subscription with a stored preference
            GatewayError: the preference could not be fetched
        """
        subscription = await self.subscriptions.get_live(user_id)
        preference_id = subscription.payment_metadata.payment_preference_id if subscription else None
        if subscription is None or subscription.status != SubscriptionStatus.PAST_DUE or not preference_id:
            raise NoPendingPayment()

        preference = await self.gateway.get_preference(preference_id)
        checkout = CheckoutResult(
            preference_id=preference_id,
            init_point=preference.get("init_point"),
            sandbox_init_point=preference.get("sandbox_init_point"),
        )
        return CheckoutOut(
            preference_id=preference_id,
            checkout_url=select_checkout_url(checkout, self.gateway.test_mode),
        )
