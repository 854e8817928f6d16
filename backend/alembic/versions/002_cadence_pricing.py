"""Add cadence pricing and one-live-subscription index

Revision ID: 002
Revises: 001
Create Date: 2026-02-01 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = '002'
down_revision = '001'


def upgrade() -> None:
    # Cadence prices; NULL keeps the legacy price_cents for that cadence
    op.add_column('plans', sa.Column('monthly_price_cents', sa.Integer, nullable=True))
    op.add_column('plans', sa.Column('annual_price_cents', sa.Integer, nullable=True))

    # Older rows may have stacked live subscriptions; keep only the newest per user
    op.execute("""
        UPDATE subscriptions s
        SET status = 'canceled', canceled_at = now(), updated_at = now()
        WHERE s.status IN ('active', 'trialing', 'past_due')
          AND EXISTS (
            SELECT 1 FROM subscriptions newer
            WHERE newer.user_id = s.user_id
              AND newer.status IN ('active', 'trialing', 'past_due')
              AND (newer.created_at > s.created_at
                   OR (newer.created_at = s.created_at AND newer.id > s.id))
          )
    """)

    op.create_index(
        'uq_subscriptions_one_live_per_user',
        'subscriptions',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text("status IN ('active', 'trialing', 'past_due')"),
    )


def downgrade() -> None:
    op.drop_index('uq_subscriptions_one_live_per_user', table_name='subscriptions')
    op.drop_column('plans', 'annual_price_cents')
    op.drop_column('plans', 'monthly_price_cents')
