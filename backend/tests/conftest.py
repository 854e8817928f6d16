"""
Pytest configuration and fixtures
Shared test setup for all test modules
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("MERCADOPAGO_ACCESS_TOKEN", "TEST-0000000000000000-000000-test")

from datetime import datetime
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from zurt.main import app
from zurt.api.dependencies import get_payment_gateway
from zurt.core.exceptions import GatewayError
from zurt.core.security import create_access_token
from zurt.db.base import Base
from zurt.db.database import get_db
from zurt.db.models import Plan, Subscription, User
from zurt.services.mercadopago_service import CheckoutResult

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class StubGateway:
    """Stands in for MercadoPagoService; records every checkout request"""

    def __init__(self, test_mode: bool = True, fail: bool = False):
        self.test_mode = test_mode
        self.fail = fail
        self.calls: List[dict] = []
        self.preferences = {}

    async def create_checkout(self, subscription, plan, billing_period, price_cents, contact, user):
        self.calls.append({
            "subscription_id": subscription.id,
            "plan_id": plan.id,
            "billing_period": billing_period,
            "price_cents": price_cents,
            "contact": contact,
        })
        if self.fail:
            raise GatewayError("gateway unavailable")
        preference_id = f"pref-{len(self.calls)}"
        result = CheckoutResult(
            preference_id=preference_id,
            init_point=f"https://www.mercadopago.com.br/checkout?pref_id={preference_id}",
            sandbox_init_point=f"https://sandbox.mercadopago.com.br/checkout?pref_id={preference_id}",
        )
        self.preferences[preference_id] = {
            "id": preference_id,
            "init_point": result.init_point,
            "sandbox_init_point": result.sandbox_init_point,
        }
        return result

    async def get_preference(self, preference_id):
        if self.fail:
            raise GatewayError("gateway unavailable")
        return self.preferences[preference_id]


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, gateway: StubGateway):
    """Test client with database and gateway overrides"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(
        email="cliente@example.com",
        full_name="Maria Silva",
        role="customer",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate auth headers for test user"""
    access_token = create_access_token({"sub": str(test_user.id)})
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def make_plan(db_session: AsyncSession):
    async def _make_plan(
        code: str,
        price_cents: int,
        monthly_price_cents: Optional[int] = None,
        annual_price_cents: Optional[int] = None,
        is_active: bool = True,
        role: Optional[str] = None,
        connection_limit: Optional[int] = None,
        features: Optional[list] = None,
    ) -> Plan:
        plan = Plan(
            code=code,
            name=code.title(),
            price_cents=price_cents,
            monthly_price_cents=monthly_price_cents,
            annual_price_cents=annual_price_cents,
            is_active=is_active,
            role=role,
            connection_limit=connection_limit,
            features_json={"features": features or []},
        )
        db_session.add(plan)
        await db_session.commit()
        return plan

    return _make_plan


@pytest_asyncio.fixture
async def free_plan(make_plan) -> Plan:
    return await make_plan("free", 0)


@pytest_asyncio.fixture
async def basic_plan(make_plan) -> Plan:
    return await make_plan("basic", 2990, monthly_price_cents=2990, annual_price_cents=29900)


@pytest_asyncio.fixture
async def pro_plan(make_plan) -> Plan:
    return await make_plan("pro", 5990, monthly_price_cents=5990, annual_price_cents=59900)


@pytest.fixture
def make_subscription(db_session: AsyncSession):
    async def _make_subscription(
        user: User,
        plan: Plan,
        status: str = "active",
        created_at: Optional[datetime] = None,
    ) -> Subscription:
        created_at = created_at or datetime.utcnow()
        subscription = Subscription(
            user_id=user.id,
            plan_id=plan.id,
            status=status,
            started_at=created_at,
            current_period_start=created_at,
            current_period_end=created_at.replace(year=created_at.year + 1),
            canceled_at=created_at if status == "canceled" else None,
            created_at=created_at,
            metadata_json={},
        )
        db_session.add(subscription)
        await db_session.commit()
        return subscription

    return _make_subscription
