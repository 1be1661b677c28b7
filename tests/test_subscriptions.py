"""Subscription lifecycle: subscribe, renew, change, extend, cancel and overrides."""

import uuid
from datetime import timedelta

import pytest

from tenantplans.core.errors import NotFoundError, PolicyViolationError
from tenantplans.models.base import utcnow
from tenantplans.models.plan import PaymentProvider
from tenantplans.models.subscription import Actor, ActorKind, SubscriptionStatus
from tenantplans.models.tenant import TenantSubscriptionStatus
from tenantplans.services.plan_policy import PlanChangeAction

ADMIN = Actor(kind=ActorKind.ADMIN, id=uuid.UUID("00000000-0000-0000-0000-00000000a0a0"))


async def _set_end_date(session, subscription, end_date) -> None:
    subscription.end_date = end_date
    session.add(subscription)
    await session.commit()


# ── Subscribe ─────────────────────────────────────────────────

async def test_subscribe_free_plan_activates_and_projects(
    lifecycle, session, make_tenant, make_plan, notifier
):
    tenant = await make_tenant()
    plan = await make_plan(max_entitlement=10, duration_in_days=30)

    result = await lifecycle.subscribe(tenant.id, plan.id)

    assert result.requires_payment is False
    assert result.action == PlanChangeAction.NEW
    sub = result.subscription
    assert sub.status == SubscriptionStatus.ACTIVE
    assert sub.plan_name == plan.name
    assert sub.max_entitlement == 10
    assert sub.end_date - sub.start_date == timedelta(days=30)
    assert sub.activated_by is None

    await session.refresh(tenant)
    assert tenant.subscription_status == TenantSubscriptionStatus.ACTIVE
    assert tenant.current_plan_id == plan.id
    assert tenant.subscribed_at is not None
    assert notifier.kinds(tenant.id) == ["subscription.activated"]


async def test_subscribe_below_usage_is_rejected(lifecycle, make_tenant, make_plan, employees):
    tenant = await make_tenant()
    tenant_id = tenant.id
    plan = await make_plan(max_entitlement=5)
    employees.counts[tenant_id] = 6

    with pytest.raises(PolicyViolationError) as exc:
        await lifecycle.subscribe(tenant_id, plan.id)

    assert "6" in exc.value.message
    assert await lifecycle.get_current_subscription(tenant_id) is None


async def test_subscribe_unknown_or_inactive_plan(lifecycle, make_tenant, make_plan):
    tenant = await make_tenant()
    retired = await make_plan(is_active=False)

    with pytest.raises(NotFoundError):
        await lifecycle.subscribe(tenant.id, uuid.uuid4())
    with pytest.raises(NotFoundError):
        await lifecycle.subscribe(tenant.id, retired.id)


async def test_subscribe_unknown_tenant(lifecycle, make_plan):
    plan = await make_plan()
    with pytest.raises(NotFoundError):
        await lifecycle.subscribe(uuid.uuid4(), plan.id)


async def test_renew_stacks_onto_existing_end_date(
    lifecycle, session, make_tenant, make_plan, notifier
):
    tenant = await make_tenant()
    plan = await make_plan(duration_in_days=30)
    first = (await lifecycle.subscribe(tenant.id, plan.id)).subscription
    await _set_end_date(session, first, utcnow() + timedelta(days=10))
    start_date = first.start_date

    result = await lifecycle.subscribe(tenant.id, plan.id)

    assert result.action == PlanChangeAction.RENEW
    assert result.subscription.id == first.id
    assert result.subscription.start_date == start_date
    assert result.subscription.days_remaining() == 40
    assert notifier.kinds(tenant.id)[-1] == "subscription.renewed"
    assert len(await lifecycle.get_history(tenant.id)) == 1


async def test_upgrade_supersedes_and_resets_dates(lifecycle, make_tenant, make_plan, employees):
    tenant = await make_tenant()
    small = await make_plan(max_entitlement=5, duration_in_days=30)
    large = await make_plan(max_entitlement=10, duration_in_days=90)
    employees.counts[tenant.id] = 3

    old = (await lifecycle.subscribe(tenant.id, small.id)).subscription
    result = await lifecycle.subscribe(tenant.id, large.id)

    assert result.action == PlanChangeAction.UPGRADE
    new = result.subscription
    assert new.id != old.id
    assert old.status == SubscriptionStatus.EXPIRED
    assert new.end_date - new.start_date == timedelta(days=90)
    assert (await lifecycle.get_current_subscription(tenant.id)).id == new.id


async def test_trial_plan_can_only_be_used_once(lifecycle, make_tenant, make_plan):
    tenant = await make_tenant()
    trial = await make_plan(is_trial=True, duration_in_days=14)
    other_trial = await make_plan(is_trial=True, duration_in_days=7)

    await lifecycle.subscribe(tenant.id, trial.id)
    with pytest.raises(PolicyViolationError, match="Trial"):
        await lifecycle.subscribe(tenant.id, other_trial.id)

    await lifecycle.cancel(tenant.id)
    with pytest.raises(PolicyViolationError, match="Trial"):
        await lifecycle.subscribe(tenant.id, trial.id)


# ── Override ──────────────────────────────────────────────────

async def test_override_allows_downgrade_and_records_actor(
    lifecycle, make_tenant, make_plan, employees
):
    tenant = await make_tenant()
    large = await make_plan(max_entitlement=10)
    small = await make_plan(max_entitlement=5)
    employees.counts[tenant.id] = 2
    await lifecycle.subscribe(tenant.id, large.id)

    with pytest.raises(PolicyViolationError):
        await lifecycle.subscribe(tenant.id, small.id)

    result = await lifecycle.subscribe(tenant.id, small.id, actor=ADMIN, override=True)
    assert result.action == PlanChangeAction.DOWNGRADE
    assert result.subscription.max_entitlement == 5
    assert result.subscription.activated_by == ADMIN


async def test_override_never_skips_entitlement_ceiling(
    lifecycle, make_tenant, make_plan, employees
):
    tenant = await make_tenant()
    tenant_id = tenant.id
    plan = await make_plan(max_entitlement=5)
    employees.counts[tenant_id] = 8

    with pytest.raises(PolicyViolationError, match="ceiling"):
        await lifecycle.subscribe(tenant_id, plan.id, actor=ADMIN, override=True)

    result = await lifecycle.subscribe(
        tenant_id, plan.id, actor=ADMIN, override=True, custom_entitlement_override=8
    )
    assert result.subscription.custom_entitlement_override == 8
    assert result.subscription.effective_entitlement == 8


async def test_override_skips_payment_for_paid_plan(lifecycle, make_tenant, make_plan, gateway):
    tenant = await make_tenant()
    paid = await make_plan(price="250")

    result = await lifecycle.subscribe(tenant.id, paid.id, actor=ADMIN, override=True)

    assert result.requires_payment is False
    assert result.subscription.status == SubscriptionStatus.ACTIVE
    assert gateway.calls == []


async def test_override_requires_an_actor(lifecycle, make_tenant, make_plan):
    tenant = await make_tenant()
    plan = await make_plan()
    with pytest.raises(PolicyViolationError):
        await lifecycle.subscribe(tenant.id, plan.id, override=True)
    with pytest.raises(PolicyViolationError):
        await lifecycle.subscribe(tenant.id, plan.id, custom_entitlement_override=20)


async def test_override_bypasses_trial_reuse(lifecycle, make_tenant, make_plan):
    tenant = await make_tenant()
    trial = await make_plan(is_trial=True)
    await lifecycle.subscribe(tenant.id, trial.id)
    await lifecycle.cancel(tenant.id)

    result = await lifecycle.subscribe(tenant.id, trial.id, actor=ADMIN, override=True)
    assert result.subscription.status == SubscriptionStatus.ACTIVE


# ── Change plan ───────────────────────────────────────────────

async def test_change_plan_requires_active_subscription(lifecycle, make_tenant, make_plan):
    tenant = await make_tenant()
    plan = await make_plan()
    with pytest.raises(NotFoundError):
        await lifecycle.change_plan(tenant.id, plan.id)


async def test_change_plan_below_usage_names_both_counts(
    lifecycle, make_tenant, make_plan, employees
):
    tenant = await make_tenant()
    ten = await make_plan(max_entitlement=10)
    five = await make_plan(max_entitlement=5)
    employees.counts[tenant.id] = 8
    await lifecycle.subscribe(tenant.id, ten.id)

    with pytest.raises(PolicyViolationError) as exc:
        await lifecycle.change_plan(tenant.id, five.id)

    assert "8" in exc.value.message
    assert "5" in exc.value.message
    current = await lifecycle.get_current_subscription(tenant.id)
    assert current.max_entitlement == 10


async def test_change_plan_reports_old_and_new_terms(
    lifecycle, make_tenant, make_plan, notifier
):
    tenant = await make_tenant()
    basic = await make_plan(max_entitlement=5)
    pro = await make_plan(max_entitlement=25)
    await lifecycle.subscribe(tenant.id, basic.id)

    result = await lifecycle.change_plan(tenant.id, pro.id, actor=ADMIN)

    assert result.action == PlanChangeAction.UPGRADE
    assert result.old_plan.max_entitlement == 5
    assert result.new_plan.max_entitlement == 25
    assert result.subscription.activated_by == ADMIN
    assert notifier.kinds(tenant.id)[-1] == "subscription.upgraded"


async def test_change_plan_to_same_terms_renews(lifecycle, session, make_tenant, make_plan):
    tenant = await make_tenant()
    plan = await make_plan(duration_in_days=30)
    sub = (await lifecycle.subscribe(tenant.id, plan.id)).subscription
    await _set_end_date(session, sub, utcnow() + timedelta(days=10))

    result = await lifecycle.change_plan(tenant.id, plan.id)

    assert result.action == PlanChangeAction.RENEW
    assert result.subscription.days_remaining() == 40


async def test_renew_onto_other_plan_takes_its_snapshot(
    lifecycle, session, make_tenant, make_plan
):
    tenant = await make_tenant()
    plan_a = await make_plan(max_entitlement=5, price="100", duration_in_days=30)
    plan_b = await make_plan(
        max_entitlement=5, price="100", duration_in_days=90, payment_provider=PaymentProvider.TAP
    )
    sub = (await lifecycle.subscribe(tenant.id, plan_a.id, actor=ADMIN, override=True)).subscription
    await _set_end_date(session, sub, utcnow() + timedelta(days=10))

    result = await lifecycle.change_plan(tenant.id, plan_b.id)

    assert result.action == PlanChangeAction.RENEW
    assert result.new_plan.name == plan_b.name
    renewed = result.subscription
    assert renewed.id == sub.id
    assert renewed.plan_id == plan_b.id
    assert renewed.plan_name == plan_b.name
    assert renewed.duration_in_days == 90
    assert renewed.days_remaining() == 100

    await session.refresh(tenant)
    assert tenant.current_plan_id == plan_b.id
    assert tenant.payment_provider == PaymentProvider.TAP


async def test_get_expiring_lists_soonest_first(lifecycle, session, make_tenant, make_plan):
    plan = await make_plan()
    soon, later, outside, lapsed = [await make_tenant() for _ in range(4)]
    ends = {
        soon.id: timedelta(days=3),
        later.id: timedelta(days=20),
        outside.id: timedelta(days=45),
        lapsed.id: -timedelta(days=1),
    }
    for tenant in (soon, later, outside, lapsed):
        sub = (await lifecycle.subscribe(tenant.id, plan.id)).subscription
        await _set_end_date(session, sub, utcnow() + ends[tenant.id])

    expiring = await lifecycle.get_expiring(30)

    mine = [s.tenant_id for s in expiring if s.tenant_id in ends]
    assert mine == [soon.id, later.id]
    assert [s.end_date for s in expiring] == sorted(s.end_date for s in expiring)

    with pytest.raises(PolicyViolationError):
        await lifecycle.get_expiring(0)


async def test_validate_plan_change_is_a_dry_run(lifecycle, make_tenant, make_plan, employees):
    tenant = await make_tenant()
    large = await make_plan(max_entitlement=10, price="200")
    small = await make_plan(max_entitlement=5, price="100")
    employees.counts[tenant.id] = 3

    preview = await lifecycle.validate_plan_change(tenant.id, large.id)
    assert preview.can_change is True
    assert preview.action == PlanChangeAction.NEW
    assert preview.requires_payment is True
    assert preview.current_plan is None

    await lifecycle.subscribe(tenant.id, large.id, actor=ADMIN, override=True)
    preview = await lifecycle.validate_plan_change(tenant.id, small.id)
    assert preview.can_change is False
    assert preview.action == PlanChangeAction.DOWNGRADE
    assert preview.current_usage == 3
    assert preview.current_plan.max_entitlement == 10
    assert preview.new_plan.max_entitlement == 5
    assert (await lifecycle.get_current_subscription(tenant.id)).max_entitlement == 10


# ── Extend ────────────────────────────────────────────────────

async def test_extend_adds_exactly_n_days(lifecycle, make_tenant, make_plan, notifier):
    tenant = await make_tenant()
    plan = await make_plan(duration_in_days=30)
    sub = (await lifecycle.subscribe(tenant.id, plan.id)).subscription
    end_before = sub.end_date

    result = await lifecycle.extend(tenant.id, 15, actor=ADMIN)

    assert result.subscription.end_date - end_before == timedelta(days=15)
    assert result.days_remaining_after == result.days_remaining_before + 15
    assert notifier.kinds(tenant.id)[-1] == "subscription.extended"


async def test_extend_validation(lifecycle, make_tenant, make_plan, employees):
    tenant = await make_tenant()
    tenant_id = tenant.id
    plan = await make_plan(max_entitlement=10)

    with pytest.raises(NotFoundError):
        await lifecycle.extend(tenant_id, 5)

    await lifecycle.subscribe(tenant_id, plan.id)
    with pytest.raises(PolicyViolationError):
        await lifecycle.extend(tenant_id, 0)

    # Usage drifted above the entitlement
    employees.counts[tenant_id] = 12
    with pytest.raises(PolicyViolationError):
        await lifecycle.extend(tenant_id, 5)


# ── Cancel ────────────────────────────────────────────────────

async def test_cancel_without_subscription_returns_zero(lifecycle, make_tenant, notifier):
    tenant = await make_tenant()

    result = await lifecycle.cancel(tenant.id)

    assert result.cancelled_count == 0
    assert result.tenant_status == TenantSubscriptionStatus.INACTIVE
    assert notifier.kinds(tenant.id) == []


async def test_cancel_unknown_tenant(lifecycle):
    with pytest.raises(NotFoundError):
        await lifecycle.cancel(uuid.uuid4())


async def test_cancel_expires_active_and_clears_projection(
    lifecycle, session, make_tenant, make_plan, notifier
):
    tenant = await make_tenant()
    plan = await make_plan()
    sub = (await lifecycle.subscribe(tenant.id, plan.id)).subscription

    result = await lifecycle.cancel(tenant.id, actor=ADMIN)
    again = await lifecycle.cancel(tenant.id)

    assert result.cancelled_count == 1
    assert again.cancelled_count == 0
    assert sub.status == SubscriptionStatus.EXPIRED
    await session.refresh(tenant)
    assert tenant.subscription_status == TenantSubscriptionStatus.INACTIVE
    assert tenant.current_plan_id is None
    assert notifier.kinds(tenant.id).count("subscription.cancelled") == 1


# ── Lazy expiry, history, entitlement override ────────────────

async def test_lapsed_subscription_is_expired_on_read(lifecycle, session, make_tenant, make_plan):
    tenant = await make_tenant()
    plan = await make_plan()
    sub = (await lifecycle.subscribe(tenant.id, plan.id)).subscription
    await _set_end_date(session, sub, utcnow() - timedelta(hours=1))

    assert await lifecycle.get_current_subscription(tenant.id) is None

    assert sub.status == SubscriptionStatus.EXPIRED
    await session.refresh(tenant)
    assert tenant.subscription_status == TenantSubscriptionStatus.INACTIVE


async def test_history_is_newest_first(lifecycle, make_tenant, make_plan):
    tenant = await make_tenant()
    small = await make_plan(max_entitlement=5)
    large = await make_plan(max_entitlement=10)
    first = (await lifecycle.subscribe(tenant.id, small.id)).subscription
    second = (await lifecycle.subscribe(tenant.id, large.id)).subscription

    history = await lifecycle.get_history(tenant.id)

    assert [s.id for s in history] == [second.id, first.id]
    assert [s.status for s in history] == [SubscriptionStatus.ACTIVE, SubscriptionStatus.EXPIRED]


async def test_set_entitlement_override(lifecycle, make_tenant, make_plan, employees):
    tenant = await make_tenant()
    tenant_id = tenant.id
    plan = await make_plan(max_entitlement=10)
    employees.counts[tenant_id] = 6

    with pytest.raises(NotFoundError):
        await lifecycle.set_entitlement_override(tenant_id, 20, ADMIN)

    await lifecycle.subscribe(tenant_id, plan.id)
    with pytest.raises(PolicyViolationError):
        await lifecycle.set_entitlement_override(tenant_id, 20, None)
    with pytest.raises(PolicyViolationError):
        await lifecycle.set_entitlement_override(tenant_id, 5, ADMIN)

    sub = await lifecycle.set_entitlement_override(tenant_id, 20, ADMIN)
    assert sub.effective_entitlement == 20

    sub = await lifecycle.set_entitlement_override(tenant_id, None, ADMIN)
    assert sub.effective_entitlement == 10
