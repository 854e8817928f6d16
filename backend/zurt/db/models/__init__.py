# backend/zurt/db/models/__init__.py
from zurt.db.models.user import User
from zurt.db.models.plan import Plan
from zurt.db.models.subscription import Subscription

__all__ = ["User", "Plan", "Subscription"]
