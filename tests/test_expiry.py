"""Tests for the daily expiry reminder job."""

from datetime import timedelta
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from tenantplans.models.base import utcnow
from tenantplans.models.subscription import SubscriptionStatus
from tenantplans.workers.expiry import send_expiry_reminders


async def _subscribe_ending_in(lifecycle, session, make_tenant, make_plan, delta: timedelta):
    tenant = await make_tenant()
    plan = await make_plan(duration_in_days=30)
    sub = (await lifecycle.subscribe(tenant.id, plan.id)).subscription
    sub.end_date = utcnow() + delta
    session.add(sub)
    await session.commit()
    return tenant, sub


async def _run_scanner(test_session_factory, notifier) -> dict:
    notifier.sent.clear()
    with patch("tenantplans.workers.expiry.async_session_factory", test_session_factory):
        result = await send_expiry_reminders({"notifier": notifier})
    return result


async def test_reminder_sent_on_reminder_day(
    lifecycle, session, make_tenant, make_plan, notifier, test_session_factory
):
    # 6 days 23 hours left rounds up to 7
    tenant, sub = await _subscribe_ending_in(
        lifecycle, session, make_tenant, make_plan, timedelta(days=7) - timedelta(hours=1)
    )

    result = await _run_scanner(test_session_factory, notifier)

    assert result["reminded"] >= 1
    mine = [n for n in notifier.sent if n["tenant_id"] == tenant.id]
    assert len(mine) == 1
    assert mine[0]["kind"].value == "subscription.expiring"
    assert mine[0]["data"]["days_remaining"] == 7

    url = urlparse(mine[0]["data"]["renewal_url"])
    assert url.path.endswith("/renew-subscription")
    query = parse_qs(url.query)
    assert query["tenantId"] == [str(tenant.id)]
    assert query["planId"] == [str(sub.plan_id)]
    expected_end = (sub.end_date + timedelta(days=30)).date().isoformat()
    assert query["newEndDate"] == [expected_end]


async def test_no_reminder_outside_reminder_days(
    lifecycle, session, make_tenant, make_plan, notifier, test_session_factory
):
    tenant, _ = await _subscribe_ending_in(
        lifecycle, session, make_tenant, make_plan, timedelta(days=8) - timedelta(hours=1)
    )

    await _run_scanner(test_session_factory, notifier)

    assert notifier.kinds(tenant.id) == []


async def test_scanner_never_changes_status(
    lifecycle, session, make_tenant, make_plan, notifier, test_session_factory
):
    tenant, sub = await _subscribe_ending_in(
        lifecycle, session, make_tenant, make_plan, -timedelta(days=2)
    )

    await _run_scanner(test_session_factory, notifier)

    assert notifier.kinds(tenant.id) == []
    await session.refresh(sub)
    assert sub.status == SubscriptionStatus.ACTIVE
