# backend/zurt/schemas/plan.py
from typing import List, Optional
from uuid import UUID

from zurt.schemas.subscription import CamelModel


class PlanListing(CamelModel):
    id: UUID
    code: str
    name: str
    monthly_price_cents: int
    annual_price_cents: int
    price_cents: int  # price for the requested billing period
    connection_limit: Optional[int] = None
    features: List[str] = []
    is_active: bool
    role: Optional[str] = None
    subscriber_count: int = 0
