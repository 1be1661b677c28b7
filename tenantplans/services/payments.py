"""Payment gateway client — checkout creation for paid subscriptions.

Confirmation is the other half of the flow and arrives later through
``POST /v1/payments/confirm``; see ``SubscriptionLifecycle.confirm_payment``.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlencode

import httpx

from tenantplans.core.config import get_settings
from tenantplans.core.errors import ExternalServiceError
from tenantplans.models.plan import PaymentProvider, Plan

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    checkout_url: str
    # Reference the gateway will echo back when it confirms the payment
    external_transaction_id: str


class PaymentGateway(Protocol):
    async def create_checkout(
        self, provider: PaymentProvider, plan: Plan, tenant_id: uuid.UUID
    ) -> CheckoutSession: ...


class HttpPaymentGateway:
    """Talks to the payment service that fronts the individual providers.

    Manual bank transfers need no remote call: the tenant is sent to the
    dashboard's upload page and staff confirm once the proof is reviewed.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.payment_gateway_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.payment_gateway_api_key
        self.timeout = timeout or settings.payment_timeout_seconds
        self.frontend_url = settings.frontend_url.rstrip("/")

    async def create_checkout(
        self, provider: PaymentProvider, plan: Plan, tenant_id: uuid.UUID
    ) -> CheckoutSession:
        if provider == PaymentProvider.MANUAL_TRANSFER:
            external_id = f"{tenant_id}-{int(time.time() * 1000)}"
            query = urlencode({"tenantId": str(tenant_id), "planId": str(plan.id), "ref": external_id})
            return CheckoutSession(
                checkout_url=f"{self.frontend_url}/manual-payment?{query}",
                external_transaction_id=external_id,
            )

        body = {
            "provider": provider.value,
            "plan_id": str(plan.id),
            "tenant_id": str(tenant_id),
            "amount": f"{plan.price:.2f}",
            "currency": plan.currency,
            "description": plan.name,
            "return_url": f"{self.frontend_url}/subscription/return",
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(f"{self.base_url}/checkouts", json=body, headers=headers)
                resp.raise_for_status()
                data = resp.json()
            return CheckoutSession(
                checkout_url=data["checkout_url"],
                external_transaction_id=str(data["transaction_id"]),
            )
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error(
                "Checkout creation failed for tenant %s via %s: %s", tenant_id, provider.value, exc
            )
            raise ExternalServiceError(
                f"Could not start a {provider.value} checkout; try again later"
            ) from exc
