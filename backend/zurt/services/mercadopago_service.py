# backend/zurt/services/mercadopago_service.py
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from zurt.core.config import settings
from zurt.core.constants import BILLING_PERIOD_LABELS, BillingPeriod
from zurt.core.exceptions import GatewayError
from zurt.core.logging import logger
from zurt.db.models.plan import Plan
from zurt.db.models.subscription import Subscription
from zurt.db.models.user import User
from zurt.schemas.subscription import BillingContact


@dataclass(frozen=True)
class CheckoutResult:
    """Checkout preference created by Mercado Pago"""
    preference_id: str
    init_point: Optional[str] = None
    sandbox_init_point: Optional[str] = None


def select_checkout_url(result: CheckoutResult, test_mode: bool) -> Optional[str]:
    """Sandbox link first in test mode, production link first otherwise"""
    if test_mode:
        return result.sandbox_init_point or result.init_point
    return result.init_point or result.sandbox_init_point


def _digits(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


class MercadoPagoService:
    """Service for Mercado Pago Checkout Pro integration"""

    def __init__(
        self,
        access_token: Optional[str],
        test_mode: bool,
        base_url: str = "https://api.mercadopago.com",
        webhook_url: Optional[str] = None,
        frontend_url: str = "https://zurt.com.br",
        currency: str = "BRL",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.test_mode = test_mode
        self.base_url = base_url.rstrip("/")
        self.webhook_url = webhook_url
        self.frontend_url = frontend_url.rstrip("/")
        self.currency = currency
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "MercadoPagoService":
        return cls(
            access_token=settings.MERCADOPAGO_ACCESS_TOKEN,
            test_mode=settings.mercadopago_test_mode,
            base_url=settings.MERCADOPAGO_BASE_URL,
            webhook_url=settings.MERCADOPAGO_WEBHOOK_URL,
            frontend_url=settings.frontend_base_url,
            currency=settings.MERCADOPAGO_CURRENCY,
            timeout=settings.MERCADOPAGO_TIMEOUT_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token)

    def build_payer(self, contact: Optional[BillingContact], user: User) -> Dict[str, Any]:
        """
        Payer block for the preference.

        A complete billing contact is forwarded as-is; anything less falls back
        to the profile name and email, which Mercado Pago accepts on its own.
        """
        if contact is None or not contact.is_complete():
            return {
                "name": user.full_name or user.email.split("@")[0],
                "email": user.email,
            }

        first_name, _, surname = contact.name.strip().partition(" ")
        phone = _digits(contact.phone)
        document = _digits(contact.document)

        return {
            "name": first_name,
            "surname": surname,
            "email": contact.email.strip(),
            "phone": {"area_code": phone[:2], "number": phone[2:]},
            "identification": {
                "type": "CPF" if len(document) <= 11 else "CNPJ",
                "number": document,
            },
            "address": {
                "zip_code": _digits(contact.zip_code),
                "street_name": contact.address.strip(),
                "city": contact.city.strip(),
                "state": contact.state.strip(),
            },
        }

    def build_preference(
        self,
        subscription: Subscription,
        plan: Plan,
        billing_period: BillingPeriod,
        price_cents: int,
        contact: Optional[BillingContact],
        user: User,
    ) -> Dict[str, Any]:
        """
        Request body for POST /checkout/preferences

        Mercado Pago takes unit_price in major units (reais), so cents are
        divided by 100.
        """
        return {
            "items": [{
                "id": "1",
                "title": f"{plan.name} - {BILLING_PERIOD_LABELS[billing_period]}",
                "quantity": 1,
                "unit_price": round(price_cents / 100, 2),
                "currency_id": self.currency,
            }],
            "payer": self.build_payer(contact, user),
            "back_urls": {
                "success": f"{self.frontend_url}/payment/success",
                "failure": f"{self.frontend_url}/payment/failure",
                "pending": f"{self.frontend_url}/payment/pending",
            },
            "auto_return": "approved",
            "external_reference": str(subscription.id),
            "notification_url": self.webhook_url,
            "metadata": {
                "subscription_id": str(subscription.id),
                "user_id": str(subscription.user_id),
                "plan_id": str(plan.id),
                "billing_period": billing_period.value,
            },
        }

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.is_configured:
            raise GatewayError("Mercado Pago is not configured. Please set MERCADOPAGO_ACCESS_TOKEN.")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    headers={"Authorization": f"Bearer {self.access_token}"},
                )
        except httpx.TimeoutException as e:
            raise GatewayError(f"Mercado Pago request timed out: {e!r}")
        except httpx.HTTPError as e:
            raise GatewayError(f"Mercado Pago request failed: {e!r}")

        try:
            result = response.json()
        except ValueError:
            raise GatewayError(
                f"Mercado Pago returned a non-JSON response (HTTP {response.status_code})"
            )

        if response.status_code >= 400:
            message = result.get("message") if isinstance(result, dict) else None
            raise GatewayError(
                f"Mercado Pago rejected the request (HTTP {response.status_code}): {message or 'Unknown error'}",
                details={"status_code": response.status_code},
            )

        if not isinstance(result, dict):
            raise GatewayError("Mercado Pago returned an unexpected response body")

        return result

    async def create_checkout(
        self,
        subscription: Subscription,
        plan: Plan,
        billing_period: BillingPeriod,
        price_cents: int,
        contact: Optional[BillingContact],
        user: User,
    ) -> CheckoutResult:
        """
        Create a checkout preference for a subscription.

        Raises:
            GatewayError: on any transport, HTTP or payload problem
        """
        body = self.build_preference(subscription, plan, billing_period, price_cents, contact, user)
        result = await self._request("POST", "/checkout/preferences", json=body)

        preference_id = result.get("id")
        if not preference_id:
            raise GatewayError("Mercado Pago response is missing the preference id")

        logger.info(
            f"Created Mercado Pago preference: {preference_id}",
            extra={"subscription_id": subscription.id, "user_id": subscription.user_id},
        )

        return CheckoutResult(
            preference_id=str(preference_id),
            init_point=result.get("init_point"),
            sandbox_init_point=result.get("sandbox_init_point"),
        )

    async def get_preference(self, preference_id: str) -> Dict[str, Any]:
        """Fetch a preference as stored by Mercado Pago"""
        return await self._request("GET", f"/checkout/preferences/{preference_id}")
