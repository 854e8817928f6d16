# tests/test_subscriptions_api.py
"""
Subscription endpoint tests
Tests: authentication, status codes, response shapes, capability flags
"""
from datetime import datetime, timedelta

import pytest

from zurt.core.config import settings
from zurt.core.security import create_access_token

API = "/api/v1/subscriptions"


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get(f"{API}/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_bad_token(self, client):
        response = await client.get(f"{API}/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_unknown_user(self, client):
        token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000"})
        response = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestCreateSubscription:

    @pytest.mark.asyncio
    async def test_paid_plan_returns_payment_block(self, client, auth_headers, basic_plan, gateway):
        response = await client.post(
            API,
            json={
                "planId": str(basic_plan.id),
                "billingPeriod": "annual",
                "payment": {
                    "paymentMethod": "pix",
                    "billing": {"name": "Maria Silva", "email": "maria@example.com"},
                },
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["subscription"]["status"] == "past_due"
        assert data["subscription"]["billingPeriod"] == "annual"
        assert data["subscription"]["plan"]["code"] == "basic"
        assert data["subscription"]["canceledAt"] is None
        assert data["payment"]["preferenceId"] == "pref-1"
        assert data["payment"]["checkoutUrl"].startswith("https://sandbox.mercadopago.com.br")

        assert gateway.calls[0]["price_cents"] == 29900
        assert gateway.calls[0]["contact"].email == "maria@example.com"

    @pytest.mark.asyncio
    async def test_annual_purchase_reports_charged_price(self, client, auth_headers, basic_plan):
        created = await client.post(
            API, json={"planId": str(basic_plan.id), "billingPeriod": "annual"}, headers=auth_headers
        )

        assert created.json()["subscription"]["plan"]["priceCents"] == 29900

        current = (await client.get(f"{API}/me", headers=auth_headers)).json()["subscription"]
        assert current["plan"]["priceCents"] == 29900

        history = (await client.get(f"{API}/history", headers=auth_headers)).json()["history"]
        assert history[0]["priceCents"] == 29900

    @pytest.mark.asyncio
    async def test_free_plan_omits_payment(self, client, auth_headers, free_plan, gateway):
        response = await client.post(API, json={"planId": str(free_plan.id)}, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["subscription"]["status"] == "active"
        assert data["subscription"]["billingPeriod"] == "monthly"
        assert "payment" not in data
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_gateway_down_still_creates(self, client, auth_headers, basic_plan, gateway):
        gateway.fail = True

        response = await client.post(API, json={"planId": str(basic_plan.id)}, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["subscription"]["status"] == "past_due"
        assert "payment" not in response.json()

    @pytest.mark.asyncio
    async def test_missing_plan_id(self, client, auth_headers):
        response = await client.post(API, json={}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_PLAN_ID"

    @pytest.mark.asyncio
    async def test_invalid_billing_period(self, client, auth_headers, basic_plan):
        response = await client.post(
            API, json={"planId": str(basic_plan.id), "billingPeriod": "weekly"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_BILLING_PERIOD"

    @pytest.mark.asyncio
    async def test_unknown_plan(self, client, auth_headers):
        response = await client.post(
            API, json={"planId": "00000000-0000-0000-0000-000000000000"}, headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json() == {
            "detail": "Plan not found",
            "code": "PLAN_NOT_FOUND",
            "details": {"planId": "00000000-0000-0000-0000-000000000000"},
        }

    @pytest.mark.asyncio
    async def test_inactive_plan(self, client, auth_headers, make_plan):
        plan = await make_plan("legacy", 990, is_active=False)

        response = await client.post(API, json={"planId": str(plan.id)}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "PLAN_INACTIVE"

    @pytest.mark.asyncio
    async def test_role_restricted_plan(self, client, auth_headers, make_plan):
        plan = await make_plan("consultant", 14990, role="consultant")

        response = await client.post(API, json={"planId": str(plan.id)}, headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "PLAN_NOT_AVAILABLE"

    @pytest.mark.asyncio
    async def test_disabled_deployment(self, client, auth_headers, basic_plan, monkeypatch):
        monkeypatch.setattr(settings, "SUBSCRIPTIONS_ENABLED", False)

        response = await client.post(API, json={"planId": str(basic_plan.id)}, headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["code"] == "SUBSCRIPTIONS_UNAVAILABLE"


class TestCurrentSubscription:

    @pytest.mark.asyncio
    async def test_none_yet(self, client, auth_headers):
        response = await client.get(f"{API}/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"subscription": None}

    @pytest.mark.asyncio
    async def test_after_purchase(self, client, auth_headers, pro_plan):
        created = await client.post(API, json={"planId": str(pro_plan.id)}, headers=auth_headers)

        response = await client.get(f"{API}/me", headers=auth_headers)

        subscription = response.json()["subscription"]
        assert subscription["id"] == created.json()["subscription"]["id"]
        assert subscription["plan"]["name"] == "Pro"
        assert subscription["plan"]["priceCents"] == 5990
        assert "currentPeriodEnd" in subscription

    @pytest.mark.asyncio
    async def test_disabled_deployment_reports_none(
        self, client, auth_headers, basic_plan, test_user, make_subscription, monkeypatch
    ):
        await make_subscription(test_user, basic_plan)
        monkeypatch.setattr(settings, "SUBSCRIPTIONS_ENABLED", False)

        response = await client.get(f"{API}/me", headers=auth_headers)

        assert response.json() == {"subscription": None}

    @pytest.mark.asyncio
    async def test_entitled_plan(self, client, auth_headers, free_plan, basic_plan):
        await client.post(API, json={"planId": str(free_plan.id)}, headers=auth_headers)
        response = await client.get(f"{API}/me/plan", headers=auth_headers)
        assert response.json()["plan"]["planCode"] == "free"

        # A paid plan awaiting payment grants nothing yet
        await client.post(API, json={"planId": str(basic_plan.id)}, headers=auth_headers)
        response = await client.get(f"{API}/me/plan", headers=auth_headers)
        assert response.json() == {"plan": None}


class TestPendingCheckout:

    @pytest.mark.asyncio
    async def test_returns_stored_link(self, client, auth_headers, basic_plan):
        created = await client.post(API, json={"planId": str(basic_plan.id)}, headers=auth_headers)

        response = await client.get(f"{API}/me/checkout", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["payment"] == created.json()["payment"]

    @pytest.mark.asyncio
    async def test_nothing_pending(self, client, auth_headers):
        response = await client.get(f"{API}/me/checkout", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "NO_PENDING_PAYMENT"

    @pytest.mark.asyncio
    async def test_gateway_error_is_bad_gateway(self, client, auth_headers, basic_plan, gateway):
        await client.post(API, json={"planId": str(basic_plan.id)}, headers=auth_headers)
        gateway.fail = True

        response = await client.get(f"{API}/me/checkout", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["code"] == "GATEWAY_ERROR"


class TestHistory:

    @pytest.mark.asyncio
    async def test_paginates_newest_first(self, client, auth_headers, test_user, basic_plan, make_subscription):
        start = datetime(2025, 1, 1)
        for i in range(15):
            await make_subscription(test_user, basic_plan, status="canceled", created_at=start + timedelta(days=i))

        response = await client.get(f"{API}/history?page=2&limit=10", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert len(data["history"]) == 5
        assert data["pagination"] == {"page": 2, "limit": 10, "total": 15, "totalPages": 2}
        assert data["history"][0]["planName"] == "Basic"
        assert data["history"][-1]["createdAt"].startswith("2025-01-01")

    @pytest.mark.asyncio
    async def test_defaults(self, client, auth_headers):
        response = await client.get(f"{API}/history", headers=auth_headers)

        assert response.json() == {
            "history": [],
            "pagination": {"page": 1, "limit": 10, "total": 0, "totalPages": 0},
        }

    @pytest.mark.asyncio
    async def test_limit_is_bounded(self, client, auth_headers):
        response = await client.get(f"{API}/history?limit=1000", headers=auth_headers)
        assert response.status_code == 422


class TestCancelSubscription:

    @pytest.mark.asyncio
    async def test_cancel_active(self, client, auth_headers, free_plan):
        await client.post(API, json={"planId": str(free_plan.id)}, headers=auth_headers)

        response = await client.patch(f"{API}/cancel", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Subscription canceled successfully"}

        current = (await client.get(f"{API}/me", headers=auth_headers)).json()["subscription"]
        assert current["status"] == "canceled"
        assert current["canceledAt"] is not None

    @pytest.mark.asyncio
    async def test_cancel_twice(self, client, auth_headers, free_plan):
        await client.post(API, json={"planId": str(free_plan.id)}, headers=auth_headers)
        await client.patch(f"{API}/cancel", headers=auth_headers)

        response = await client.patch(f"{API}/cancel", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "NO_ACTIVE_SUBSCRIPTION"

    @pytest.mark.asyncio
    async def test_past_due_is_not_cancelable(self, client, auth_headers, basic_plan):
        await client.post(API, json={"planId": str(basic_plan.id)}, headers=auth_headers)

        response = await client.patch(f"{API}/cancel", headers=auth_headers)

        assert response.status_code == 404


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers
