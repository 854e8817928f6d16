"""
Billing exceptions.

Every error the subscription flow can surface to a caller derives from
BillingError, which carries the HTTP status and a stable error code. The API
layer renders them through a single exception handler.
"""
from typing import Any, Dict, Optional


class BillingError(Exception):
    """Base exception for subscription and billing errors."""

    status_code: int = 400
    code: str = "BILLING_ERROR"
    default_message: str = "Billing request failed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        body: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


# Validation errors: caller mistakes, never retried

class MissingPlanId(BillingError):
    status_code = 400
    code = "MISSING_PLAN_ID"
    default_message = "planId is required"


class InvalidBillingPeriod(BillingError):
    status_code = 400
    code = "INVALID_BILLING_PERIOD"
    default_message = "billingPeriod must be 'monthly' or 'annual'"


class PlanNotFound(BillingError):
    status_code = 404
    code = "PLAN_NOT_FOUND"
    default_message = "Plan not found"


class PlanInactive(BillingError):
    status_code = 400
    code = "PLAN_INACTIVE"
    default_message = "Plan is not active"


class PlanNotAvailable(BillingError):
    status_code = 403
    code = "PLAN_NOT_AVAILABLE"
    default_message = "Plan is not available for your account type"


class NoActiveSubscription(BillingError):
    status_code = 404
    code = "NO_ACTIVE_SUBSCRIPTION"
    default_message = "No active subscription found"


class NoPendingPayment(BillingError):
    status_code = 404
    code = "NO_PENDING_PAYMENT"
    default_message = "No subscription awaiting payment"


# Transient

class SubscriptionConflict(BillingError):
    """Raised when a concurrent create for the same user keeps winning the race."""

    status_code = 409
    code = "SUBSCRIPTION_CONFLICT"
    default_message = "Another subscription change is in progress, please try again"


class SubscriptionsUnavailable(BillingError):
    status_code = 503
    code = "SUBSCRIPTIONS_UNAVAILABLE"
    default_message = "Subscriptions are not enabled on this deployment"


# Internal

class InvalidTransition(BillingError):
    status_code = 500
    code = "INVALID_TRANSITION"
    default_message = "Invalid subscription status transition"


class GatewayError(BillingError):
    """
    Any failure talking to the payment gateway.

    Recovered inside the subscription service; only escapes when the gateway
    is called directly (e.g. preference lookups).
    """

    status_code = 502
    code = "GATEWAY_ERROR"
    default_message = "Payment gateway request failed"
