# scripts/seed-data.py
"""Seed database with the default plan catalog and a demo user"""
import asyncio
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from zurt.core.security import create_access_token
from zurt.db.database import async_session_local, init_db
from zurt.db.repositories.plan_repository import PlanRepository
from zurt.db.repositories.user_repository import UserRepository
from zurt.db.models.plan import Plan
from sqlalchemy import select

DEFAULT_PLANS = [
    {
        "code": "free",
        "name": "Gratuito",
        "price_cents": 0,
        "connection_limit": 1,
        "features_json": {"features": ["1 conexão bancária", "Dashboard básico"]},
    },
    {
        "code": "basic",
        "name": "Básico",
        "price_cents": 2990,
        "monthly_price_cents": 2990,
        "annual_price_cents": 29900,
        "connection_limit": 3,
        "features_json": {"features": ["3 conexões bancárias", "Relatórios mensais", "Metas"]},
    },
    {
        "code": "pro",
        "name": "Pro",
        "price_cents": 5990,
        "monthly_price_cents": 5990,
        "annual_price_cents": 59900,
        "connection_limit": None,
        "features_json": {"features": ["Conexões ilimitadas", "Relatórios ilimitados", "Alertas", "IA"]},
    },
    {
        "code": "consultant",
        "name": "Consultor",
        "price_cents": 14990,
        "role": "consultant",
        "connection_limit": None,
        "features_json": {"features": ["Carteira de clientes", "Convites", "White label"]},
    },
]


async def seed_data():
    """Seed database with plans and a demo customer"""
    await init_db()

    async with async_session_local() as session:
        plan_repo = PlanRepository(session)
        user_repo = UserRepository(session)

        for plan_data in DEFAULT_PLANS:
            existing = await session.scalar(select(Plan).where(Plan.code == plan_data["code"]))
            if existing:
                print(f"Plan already exists: {existing.code}")
                continue
            plan = await plan_repo.create(plan_data)
            print(f"Created plan: {plan.code} ({plan.price_cents} cents)")

        user = await user_repo.get_by_email("demo@zurt.com.br")
        if user:
            print(f"User already exists: {user.email}")
        else:
            user = await user_repo.create({
                "email": "demo@zurt.com.br",
                "full_name": "Demo User",
                "role": "customer",
                "is_active": True,
            })
            print(f"Created user: {user.email}")

        await session.commit()

        print("\nBearer token for the demo user:")
        print(create_access_token({"sub": str(user.id)}))


if __name__ == "__main__":
    asyncio.run(seed_data())
