# backend/zurt/db/models/subscription.py
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Column, String, ForeignKey, DateTime, JSON, Index, Uuid, text
from sqlalchemy.orm import relationship
import uuid

from zurt.core.constants import ALLOWED_TRANSITIONS, SubscriptionStatus
from zurt.core.exceptions import InvalidTransition
from zurt.db.base import BaseModel
from zurt.schemas.subscription import SubscriptionMetadata

LIVE_SUBSCRIPTION_INDEX = "uq_subscriptions_one_live_per_user"
_LIVE_STATUS_CLAUSE = text("status IN ('active', 'trialing', 'past_due')")


class Subscription(BaseModel):
    """One purchase agreement between a user and a plan"""
    __tablename__ = "subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(Uuid, ForeignKey("plans.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, index=True)  # past_due, active, trialing, canceled

    # Billing cycle
    started_at = Column(DateTime, nullable=False)
    current_period_start = Column(DateTime, nullable=False)
    current_period_end = Column(DateTime, nullable=False)
    canceled_at = Column(DateTime, nullable=True)

    # "metadata" is reserved on declarative classes
    metadata_json = Column("metadata", JSON, default=dict, nullable=False)

    # Relationships
    user = relationship("User", back_populates="subscriptions")
    plan = relationship("Plan", back_populates="subscriptions")

    __table_args__ = (
        # At most one live subscription per user
        Index(
            LIVE_SUBSCRIPTION_INDEX,
            "user_id",
            unique=True,
            postgresql_where=_LIVE_STATUS_CLAUSE,
            sqlite_where=_LIVE_STATUS_CLAUSE,
        ),
        Index("ix_subscriptions_user_created", "user_id", "created_at"),
        CheckConstraint(
            "current_period_end > current_period_start",
            name="ck_subscriptions_period_order",
        ),
        CheckConstraint(
            "(status = 'canceled') = (canceled_at IS NOT NULL)",
            name="ck_subscriptions_canceled_at",
        ),
    )

    @property
    def payment_metadata(self) -> SubscriptionMetadata:
        return SubscriptionMetadata.model_validate(self.metadata_json or {})

    @payment_metadata.setter
    def payment_metadata(self, value: SubscriptionMetadata):
        # Reassign so the JSON column is flagged dirty
        self.metadata_json = value.model_dump(exclude_none=True)

    def transition_to(self, new_status: SubscriptionStatus, now: Optional[datetime] = None) -> None:
        """Move to `new_status` if the state machine allows it"""
        current = SubscriptionStatus(self.status)
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Cannot move subscription {self.id} from {current.value} to {new_status.value}"
            )

        self.status = new_status.value
        if new_status == SubscriptionStatus.CANCELED:
            self.canceled_at = now or datetime.utcnow()
