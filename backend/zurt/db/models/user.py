# backend/zurt/db/models/user.py
from sqlalchemy import Column, String, Boolean, Uuid
from sqlalchemy.orm import relationship
import uuid
from zurt.core.constants import UserRole
from zurt.db.base import BaseModel


class User(BaseModel):
    """
    Dashboard user.

    Accounts are managed by the auth service; billing only reads the profile
    (payer fallback, plan role restriction) and locks the row while changing
    the user's subscription.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(50), default=UserRole.CUSTOMER.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    subscriptions = relationship("Subscription", back_populates="user")
