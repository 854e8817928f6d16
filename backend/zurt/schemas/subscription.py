# backend/zurt/schemas/subscription.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from uuid import UUID


class CamelModel(BaseModel):
    """Wire models speak camelCase; Python code uses snake_case"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SubscriptionMetadata(BaseModel):
    """Typed contents of subscriptions.metadata"""
    model_config = ConfigDict(extra="ignore")

    payment_preference_id: Optional[str] = None
    billing_period: Optional[str] = None


# Requests

class BillingContact(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    document: Optional[str] = None  # CPF or CNPJ
    zip_code: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    def is_complete(self) -> bool:
        return all(
            value and value.strip()
            for value in (
                self.name, self.email, self.phone, self.document,
                self.zip_code, self.address, self.city, self.state,
            )
        )


class PaymentRequest(CamelModel):
    payment_method: Optional[str] = None
    billing: Optional[BillingContact] = None


class SubscriptionCreate(CamelModel):
    # Presence and cadence are checked by the service so callers get 400s, not 422s
    plan_id: Optional[str] = None
    billing_period: Optional[str] = "monthly"
    payment: Optional[PaymentRequest] = None


# Responses

class PlanSummary(CamelModel):
    id: UUID
    code: str
    name: str
    price_cents: int


class SubscriptionOut(CamelModel):
    id: UUID
    status: str
    billing_period: Optional[str] = None
    started_at: datetime
    current_period_start: datetime
    current_period_end: datetime
    canceled_at: Optional[datetime] = None
    plan: PlanSummary


class CheckoutOut(CamelModel):
    preference_id: str
    checkout_url: Optional[str] = None


class HistoryItem(CamelModel):
    id: UUID
    status: str
    plan_name: str
    price_cents: int
    started_at: datetime
    current_period_start: datetime
    current_period_end: datetime
    canceled_at: Optional[datetime] = None
    created_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PlanInfo(CamelModel):
    """Plan currently granting access to features"""
    plan_id: UUID
    plan_code: str
    plan_name: str
    subscription_status: str
    connection_limit: Optional[int] = None
