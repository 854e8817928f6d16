# backend/zurt/core/constants.py
from enum import Enum
from typing import Dict, FrozenSet


class SubscriptionStatus(str, Enum):
    PAST_DUE = "past_due"    # awaiting payment confirmation
    ACTIVE = "active"
    TRIALING = "trialing"
    CANCELED = "canceled"


class BillingPeriod(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    CONSULTANT = "consultant"
    ADMIN = "admin"


# Statuses that count against the one-live-subscription-per-user rule
LIVE_STATUSES: FrozenSet[SubscriptionStatus] = frozenset({
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIALING,
    SubscriptionStatus.PAST_DUE,
})

# Statuses that grant access to plan features
ENTITLED_STATUSES: FrozenSet[SubscriptionStatus] = frozenset({
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIALING,
})

# past_due -> active belongs to payment reconciliation, which is not implemented here.
ALLOWED_TRANSITIONS: Dict[SubscriptionStatus, FrozenSet[SubscriptionStatus]] = {
    SubscriptionStatus.PAST_DUE: frozenset({SubscriptionStatus.CANCELED}),
    SubscriptionStatus.ACTIVE: frozenset({SubscriptionStatus.CANCELED}),
    SubscriptionStatus.TRIALING: frozenset({SubscriptionStatus.CANCELED}),
    SubscriptionStatus.CANCELED: frozenset(),
}

# Line item labels shown on the Mercado Pago checkout page
BILLING_PERIOD_LABELS: Dict[BillingPeriod, str] = {
    BillingPeriod.MONTHLY: "Mensal",
    BillingPeriod.ANNUAL: "Anual",
}

DEFAULT_HISTORY_PAGE_SIZE = 10
MAX_HISTORY_PAGE_SIZE = 100
