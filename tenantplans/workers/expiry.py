"""Daily job — remind tenants whose subscription ends in a reminder window."""

from __future__ import annotations

import logging
from datetime import timedelta
from urllib.parse import urlencode

from sqlmodel import select

from tenantplans.core.config import get_settings
from tenantplans.core.database import async_session_factory
from tenantplans.models.base import days_until, utcnow
from tenantplans.models.subscription import Subscription, SubscriptionStatus
from tenantplans.models.tenant import Tenant
from tenantplans.models.webhook import WebhookEvent
from tenantplans.services.notifications import WebhookNotifier, notify_safely

logger = logging.getLogger(__name__)


def renewal_url(subscription: Subscription) -> str:
    """Dashboard link that renews the same plan for another full term."""
    new_end = subscription.end_date + timedelta(days=subscription.duration_in_days)
    query = urlencode({
        "tenantId": str(subscription.tenant_id),
        "planId": str(subscription.plan_id),
        "newEndDate": new_end.date().isoformat(),
    })
    return f"{get_settings().frontend_url.rstrip('/')}/renew-subscription?{query}"


async def send_expiry_reminders(ctx: dict) -> dict:
    """Cron job: one reminder per subscription that is exactly N days from ending.

    Status is never changed here; lapsed subscriptions are expired lazily by
    the lifecycle. Tests inject a fake notifier via ``ctx["notifier"]``.
    """
    settings = get_settings()
    notifier = ctx.get("notifier") or WebhookNotifier()
    reminder_days = set(settings.reminder_days)
    now = utcnow()

    async with async_session_factory() as session:
        stmt = (
            select(Subscription, Tenant)
            .join(Tenant, Tenant.id == Subscription.tenant_id)  # type: ignore[arg-type]
            .where(
                Subscription.status == SubscriptionStatus.ACTIVE,
                Subscription.end_date > now,
            )
        )
        result = await session.execute(stmt)
        rows = list(result.all())

    reminded = 0
    for subscription, tenant in rows:
        days = days_until(subscription.end_date, now)
        if days not in reminder_days:
            continue

        url = renewal_url(subscription)
        await notify_safely(
            notifier,
            tenant,
            "Subscription expiring soon",
            f"Your '{subscription.plan_name}' subscription ends in {days} day(s). "
            f"Renew here: {url}",
            WebhookEvent.SUBSCRIPTION_EXPIRING,
            {"subscription_id": str(subscription.id), "days_remaining": days, "renewal_url": url},
        )
        reminded += 1
        logger.info("Expiry reminder sent for subscription %s (%d days left)", subscription.id, days)

    logger.info("Expiry scanner: %d reminder(s) sent", reminded)
    return {"reminded": reminded}
