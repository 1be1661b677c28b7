"""Tenant notifications — fire-and-forget delivery over signed webhooks."""

import json
import logging
from typing import Any, Protocol

import httpx
from sqlmodel import select

from tenantplans.core.config import get_settings
from tenantplans.core.security import sign_payload
from tenantplans.models.tenant import Tenant
from tenantplans.models.webhook import Webhook, WebhookEvent

logger = logging.getLogger(__name__)


class NotificationPort(Protocol):
    async def notify(
        self,
        tenant: Tenant,
        title: str,
        message: str,
        kind: WebhookEvent,
        data: dict[str, Any] | None = None,
    ) -> None: ...


class WebhookNotifier:
    """Posts each notification to the tenant's active webhooks for ``kind``.

    Uses its own session so delivery never touches the caller's transaction.
    Never raises.
    """

    def __init__(self, session_factory: Any = None) -> None:
        if session_factory is None:
            from tenantplans.core.database import async_session_factory

            session_factory = async_session_factory
        self.session_factory = session_factory

    async def notify(
        self,
        tenant: Tenant,
        title: str,
        message: str,
        kind: WebhookEvent,
        data: dict[str, Any] | None = None,
    ) -> None:
        payload = {
            "event": kind.value,
            "tenant_id": str(tenant.id),
            "title": title,
            "message": message,
            "data": data or {},
        }
        try:
            async with self.session_factory() as session:
                stmt = select(Webhook).where(
                    Webhook.tenant_id == tenant.id,
                    Webhook.is_active.is_(True),  # type: ignore[union-attr]
                )
                result = await session.execute(stmt)
                webhooks = result.scalars().all()

            for wh in webhooks:
                if not wh.subscribes_to(kind):
                    continue
                await _send_webhook(wh, kind.value, payload)
        except Exception:
            logger.exception("Notification %s failed for tenant %s", kind.value, tenant.id)


async def _send_webhook(wh: Webhook, event_type: str, payload: dict) -> None:
    body = json.dumps(payload, default=str).encode()
    try:
        async with httpx.AsyncClient(timeout=get_settings().webhook_timeout_seconds) as client:
            resp = await client.post(
                wh.url,
                content=body,
                headers={
                    "Content-Type": "application/json",
                    "X-Tenantplans-Signature": sign_payload(wh.secret, body),
                    "X-Tenantplans-Event": event_type,
                },
            )
        if not resp.is_success:
            logger.warning(
                "Webhook %s answered %s for %s", wh.id, resp.status_code, event_type
            )
    except httpx.HTTPError:
        logger.warning("Webhook delivery failed for %s to %s", event_type, wh.url)


async def notify_safely(
    notifier: NotificationPort,
    tenant: Tenant,
    title: str,
    message: str,
    kind: WebhookEvent,
    data: dict[str, Any] | None = None,
) -> None:
    """Deliver through any port implementation, logging instead of raising.

    Called only after the state transition has been committed.
    """
    try:
        await notifier.notify(tenant, title, message, kind, data)
    except Exception:
        logger.exception(
            "Notification %s for tenant %s could not be delivered",
            kind.value, tenant.id,
        )
