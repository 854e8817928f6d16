from fastapi import APIRouter
from zurt.api.v1 import plans, subscriptions

api_router = APIRouter()

api_router.include_router(plans.router, prefix="/plans", tags=["plans"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
