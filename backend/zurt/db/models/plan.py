# backend/zurt/db/models/plan.py
from sqlalchemy import Column, String, Integer, Boolean, JSON, Uuid
from sqlalchemy.orm import relationship
import uuid
from zurt.db.base import BaseModel


class Plan(BaseModel):
    """Subscribable plan. Edited by admin tooling, read-only to billing."""
    __tablename__ = "plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)

    # Pricing (cents). price_cents predates cadence pricing and is the fallback for both cadences.
    price_cents = Column(Integer, nullable=False, default=0)
    monthly_price_cents = Column(Integer, nullable=True)
    annual_price_cents = Column(Integer, nullable=True)

    # Limits
    connection_limit = Column(Integer, nullable=True)
    role = Column(String(50), nullable=True)  # None: any role may subscribe
    features_json = Column(JSON, default=dict)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    subscriptions = relationship("Subscription", back_populates="plan")

    @property
    def features(self):
        return list((self.features_json or {}).get("features", []))
