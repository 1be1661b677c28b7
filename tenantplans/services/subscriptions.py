"""Subscription lifecycle — the only writer of subscription and tenant
projection state.

Per tenant: NONE -> PENDING -> ACTIVE -> {EXPIRED, CANCELLED}. A later
subscribe starts a fresh cycle; old rows are kept for audit.

Every mutation runs inside ``tenant_lock``: load current subscription,
decide, write the subscription row(s), write the tenant projection, commit.
Checkout creation talks to the payment gateway and therefore happens
between two locked phases, never inside one. Notifications go out after
commit and cannot fail a transition.

Expiry is lazy: whenever the current subscription is loaded under the lock,
ACTIVE rows past their end date are flipped to EXPIRED and the projection is
repaired. Nothing else expires subscriptions.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenantplans.core.errors import ConflictError, NotFoundError, PolicyViolationError
from tenantplans.core.locks import tenant_lock
from tenantplans.models.base import utcnow
from tenantplans.models.payment import PaymentStatus, PaymentTransaction
from tenantplans.models.plan import PaymentProvider, Plan
from tenantplans.models.subscription import Actor, Subscription, SubscriptionStatus
from tenantplans.models.tenant import Tenant, TenantSubscriptionStatus
from tenantplans.models.webhook import WebhookEvent
from tenantplans.services.employees import EmployeeCounter, SqlEmployeeCounter
from tenantplans.services.entitlements import load_current_subscription
from tenantplans.services.notifications import NotificationPort, notify_safely
from tenantplans.services.payments import PaymentGateway
from tenantplans.services.plan_catalog import PlanCatalog
from tenantplans.services.plan_policy import (
    PlanChangeAction,
    PlanChangeDecision,
    PlanTerms,
    decide,
)

logger = logging.getLogger(__name__)


# ── Results ───────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class SubscribeResult:
    message: str
    requires_payment: bool
    action: PlanChangeAction
    checkout_url: str | None = None
    subscription: Subscription | None = None


@dataclass(frozen=True, slots=True)
class CancelResult:
    cancelled_count: int
    tenant_status: TenantSubscriptionStatus


@dataclass(frozen=True, slots=True)
class ExtendResult:
    subscription: Subscription
    days_remaining_before: int
    days_remaining_after: int


@dataclass(frozen=True, slots=True)
class PlanChangeResult:
    subscription: Subscription
    action: PlanChangeAction
    old_plan: PlanTerms
    new_plan: PlanTerms


@dataclass(frozen=True, slots=True)
class PlanChangeValidation:
    can_change: bool
    action: PlanChangeAction
    reason: str
    current_usage: int
    requires_payment: bool
    current_plan: PlanTerms | None
    new_plan: PlanTerms


@dataclass(frozen=True, slots=True)
class _Applied:
    subscription: Subscription
    action: PlanChangeAction
    event: WebhookEvent
    message: str


# ── Lifecycle ─────────────────────────────────────────────────

class SubscriptionLifecycle:
    def __init__(
        self,
        session: AsyncSession,
        payments: PaymentGateway,
        notifier: NotificationPort,
        employees: EmployeeCounter | None = None,
    ) -> None:
        self.session = session
        self.payments = payments
        self.notifier = notifier
        self.employees = employees or SqlEmployeeCounter(session)
        self.catalog = PlanCatalog(session)

    # ── Reads ─────────────────────────────────────────────────

    async def get_current_subscription(self, tenant_id: uuid.UUID) -> Subscription | None:
        async with tenant_lock(self.session, tenant_id) as tenant:
            return await self._load_current(tenant)

    async def get_history(self, tenant_id: uuid.UUID) -> list[Subscription]:
        await self._get_tenant(tenant_id)
        stmt = (
            select(Subscription)
            .where(Subscription.tenant_id == tenant_id)
            .order_by(Subscription.created_at.desc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_expiring(self, days: int = 30) -> list[Subscription]:
        """ACTIVE subscriptions of every tenant ending within ``days``, soonest first.

        Rows already past their end date are lapsed, not expiring, and are
        left out.
        """
        if days < 1:
            raise PolicyViolationError("The expiry window must be at least one day")
        now = utcnow()
        stmt = (
            select(Subscription)
            .where(
                Subscription.status == SubscriptionStatus.ACTIVE,
                Subscription.end_date > now,
                Subscription.end_date <= now + timedelta(days=days),
            )
            .order_by(Subscription.end_date)  # type: ignore[arg-type]
        )
        result = await self.session.execute(stmt)
        subscriptions = list(result.scalars().all())
        logger.info("%d subscription(s) end within %d days", len(subscriptions), days)
        return subscriptions

    async def validate_plan_change(
        self, tenant_id: uuid.UUID, new_plan_id: uuid.UUID
    ) -> PlanChangeValidation:
        """Dry run of a plan change. Writes nothing, not even lazy expiry."""
        await self._get_tenant(tenant_id)
        plan = await self.catalog.get(new_plan_id, active_only=True)
        current = await load_current_subscription(self.session, tenant_id)
        usage = await self.employees.count(tenant_id)

        current_terms = PlanTerms.of_subscription(current) if current else None
        decision = decide(current_terms, usage, PlanTerms.of_plan(plan))
        can_change, reason = decision.allowed, decision.reason
        if can_change and plan.is_trial and await self._has_used_trial(tenant_id):
            can_change, reason = False, "Trial plans can only be used once per tenant"

        return PlanChangeValidation(
            can_change=can_change,
            action=decision.action,
            reason=reason,
            current_usage=usage,
            requires_payment=current is None and plan.is_paid,
            current_plan=current_terms,
            new_plan=PlanTerms.of_plan(plan),
        )

    # ── Transitions ───────────────────────────────────────────

    async def subscribe(
        self,
        tenant_id: uuid.UUID,
        plan_id: uuid.UUID,
        actor: Actor | None = None,
        override: bool = False,
        custom_entitlement_override: int | None = None,
    ) -> SubscribeResult:
        """Start, renew or switch the tenant's subscription.

        ``override`` skips the allow/deny policy (and trial reuse) but not the
        entitlement ceiling; ``custom_entitlement_override`` raises that
        ceiling explicitly. A brand-new paid subscription without override
        is created PENDING and the caller gets a checkout URL instead.
        """
        if override and actor is None:
            raise PolicyViolationError("Administrative override requires an acting staff member")
        if custom_entitlement_override is not None:
            if not override:
                raise PolicyViolationError(
                    "A custom entitlement can only be set with administrative override"
                )
            if custom_entitlement_override < 1:
                raise PolicyViolationError("Custom entitlement must be at least 1")

        async with tenant_lock(self.session, tenant_id) as tenant:
            plan = await self.catalog.get(plan_id, active_only=True)
            current = await self._load_current(tenant)
            decision = await self._evaluate(
                tenant_id, current, plan, override=override, custom=custom_entitlement_override
            )
            needs_payment = current is None and plan.is_paid and not override
            if not needs_payment:
                applied = await self._apply(
                    tenant, current, plan, decision.action, actor, custom_entitlement_override,
                    manual=override,
                )

        if not needs_payment:
            await self._notify_applied(tenant, applied)
            return SubscribeResult(
                message=applied.message,
                requires_payment=False,
                action=applied.action,
                subscription=applied.subscription,
            )

        return await self._start_checkout(tenant_id, plan_id)

    async def change_plan(
        self, tenant_id: uuid.UUID, new_plan_id: uuid.UUID, actor: Actor | None = None
    ) -> PlanChangeResult:
        """Move an existing subscription to another plan under normal policy."""
        async with tenant_lock(self.session, tenant_id) as tenant:
            plan = await self.catalog.get(new_plan_id, active_only=True)
            current = await self._load_current(tenant)
            if current is None:
                raise NotFoundError(f"Tenant {tenant_id} has no active subscription to change")
            decision = await self._evaluate(tenant_id, current, plan, override=False, custom=None)
            old_terms = PlanTerms.of_subscription(current)
            applied = await self._apply(tenant, current, plan, decision.action, actor, None)

        await self._notify_applied(tenant, applied)
        return PlanChangeResult(
            subscription=applied.subscription,
            action=applied.action,
            old_plan=old_terms,
            new_plan=PlanTerms.of_plan(plan),
        )

    async def extend(
        self, tenant_id: uuid.UUID, days: int, actor: Actor | None = None
    ) -> ExtendResult:
        """Push the active subscription's end date out by ``days``."""
        if days < 1:
            raise PolicyViolationError("Extension must be at least one day")

        async with tenant_lock(self.session, tenant_id) as tenant:
            current = await self._load_current(tenant)
            if current is None:
                raise NotFoundError(f"Tenant {tenant_id} has no active subscription to extend")

            usage = await self.employees.count(tenant_id)
            if usage > current.effective_entitlement:
                logger.error(
                    "Tenant %s holds %d employees over an entitlement of %d",
                    tenant_id, usage, current.effective_entitlement,
                )
                raise PolicyViolationError(
                    f"Cannot extend: the tenant has {usage} employees but the subscription "
                    f"allows {current.effective_entitlement}"
                )

            now = utcnow()
            before = current.days_remaining(now)
            current.end_date = current.end_date + timedelta(days=days)
            current.touch(now)
            self.session.add(current)
            after = current.days_remaining(now)
            _project_active(tenant, current, tenant.payment_provider, subscribed_at=tenant.subscribed_at)

        logger.info(
            "Extended subscription %s for tenant %s by %d days (actor=%s)",
            current.id, tenant_id, days, actor,
        )
        await notify_safely(
            self.notifier,
            tenant,
            "Subscription extended",
            f"Your subscription now ends on {current.end_date:%Y-%m-%d}.",
            WebhookEvent.SUBSCRIPTION_EXTENDED,
            {"subscription_id": str(current.id), "days": days},
        )
        return ExtendResult(
            subscription=current, days_remaining_before=before, days_remaining_after=after
        )

    async def cancel(self, tenant_id: uuid.UUID, actor: Actor | None = None) -> CancelResult:
        """Expire every active subscription and clear the projection.

        Idempotent: a tenant with nothing active yields ``cancelled_count=0``.
        """
        async with tenant_lock(self.session, tenant_id) as tenant:
            await self._load_current(tenant)
            stmt = select(Subscription).where(
                Subscription.tenant_id == tenant_id,
                Subscription.status.in_(  # type: ignore[attr-defined]
                    [SubscriptionStatus.ACTIVE, SubscriptionStatus.PENDING]
                ),
            )
            result = await self.session.execute(stmt)
            now = utcnow()
            cancelled = 0
            for sub in result.scalars().all():
                if sub.status == SubscriptionStatus.ACTIVE:
                    sub.status = SubscriptionStatus.EXPIRED
                    cancelled += 1
                else:
                    sub.status = SubscriptionStatus.CANCELLED
                sub.touch(now)
                self.session.add(sub)
            _project_inactive(tenant)

        logger.info(
            "Cancelled %d subscription(s) for tenant %s (actor=%s)", cancelled, tenant_id, actor
        )
        if cancelled:
            await notify_safely(
                self.notifier,
                tenant,
                "Subscription cancelled",
                "Your subscription has been cancelled.",
                WebhookEvent.SUBSCRIPTION_CANCELLED,
            )
        return CancelResult(
            cancelled_count=cancelled, tenant_status=TenantSubscriptionStatus.INACTIVE
        )

    async def confirm_payment(self, external_transaction_id: str) -> Subscription:
        """Activate the subscription a confirmed payment was for.

        Replays of the same confirmation are no-ops that return the same
        subscription.
        """
        txn = await self._get_transaction(external_transaction_id)
        if txn.status == PaymentStatus.SUCCEEDED:
            return await self._get_subscription(txn.subscription_id)

        activated = False
        async with tenant_lock(self.session, txn.tenant_id) as tenant:
            await self.session.refresh(txn)
            subscription = await self._get_subscription(txn.subscription_id)
            if txn.status == PaymentStatus.SUCCEEDED:
                return subscription

            now = utcnow()
            txn.status = PaymentStatus.SUCCEEDED
            txn.confirmed_at = now
            txn.touch(now)
            self.session.add(txn)

            if subscription.status == SubscriptionStatus.PENDING:
                current = await self._load_current(tenant)
                if current is not None:
                    await self._supersede(current, now)
                subscription.status = SubscriptionStatus.ACTIVE
                subscription.start_date = now
                subscription.end_date = now + timedelta(days=subscription.duration_in_days)
                subscription.touch(now)
                self.session.add(subscription)
                _project_active(tenant, subscription, txn.provider, subscribed_at=now)
                activated = True
            else:
                logger.warning(
                    "Payment %s confirmed for subscription %s in status %s; not activating",
                    external_transaction_id, subscription.id, subscription.status,
                )

        if activated:
            logger.info(
                "Payment %s confirmed; subscription %s active for tenant %s",
                external_transaction_id, subscription.id, tenant.id,
            )
            await notify_safely(
                self.notifier,
                tenant,
                "Payment received",
                f"Your subscription to '{subscription.plan_name}' is now active until "
                f"{subscription.end_date:%Y-%m-%d}.",
                WebhookEvent.PAYMENT_CONFIRMED,
                {"subscription_id": str(subscription.id), "transaction_id": external_transaction_id},
            )
        return subscription

    async def set_entitlement_override(
        self, tenant_id: uuid.UUID, value: int | None, actor: Actor | None
    ) -> Subscription:
        """Set (or clear with ``None``) a custom employee limit on the active subscription."""
        if actor is None:
            raise PolicyViolationError("Only staff can change a tenant's entitlement")
        if value is not None and value < 1:
            raise PolicyViolationError("Custom entitlement must be at least 1")

        async with tenant_lock(self.session, tenant_id) as tenant:
            current = await self._load_current(tenant)
            if current is None:
                raise NotFoundError(f"Tenant {tenant_id} has no active subscription")
            if value is not None:
                usage = await self.employees.count(tenant_id)
                if value < usage:
                    raise PolicyViolationError(
                        f"Custom entitlement {value} is below the tenant's {usage} employees"
                    )
            current.custom_entitlement_override = value
            current.touch()
            self.session.add(current)

        logger.info(
            "Entitlement override for tenant %s set to %s by %s:%s",
            tenant_id, value, actor.kind.value, actor.id,
        )
        return current

    # ── Internals ─────────────────────────────────────────────

    async def _start_checkout(self, tenant_id: uuid.UUID, plan_id: uuid.UUID) -> SubscribeResult:
        """Paid, brand-new subscription: checkout first, then a PENDING row."""
        plan = await self.catalog.get(plan_id, active_only=True)
        if not plan.payment_provider:
            raise PolicyViolationError(f"Plan '{plan.name}' has no payment provider configured")
        provider = PaymentProvider(plan.payment_provider)

        # Outside any transaction: a failure here leaves nothing behind
        checkout = await self.payments.create_checkout(provider, plan, tenant_id)

        async with tenant_lock(self.session, tenant_id) as tenant:
            plan = await self.catalog.get(plan_id, active_only=True)
            current = await self._load_current(tenant)
            if current is not None:
                raise ConflictError(
                    "The tenant gained an active subscription while checkout was being "
                    "prepared; review the subscription and retry"
                )
            await self._evaluate(tenant_id, None, plan, override=False, custom=None)

            now = utcnow()
            await self._cancel_pending(tenant_id, now)
            pending = _snapshot(tenant_id, plan, SubscriptionStatus.PENDING, now, None, None)
            self.session.add(pending)
            await self.session.flush()
            self.session.add(
                PaymentTransaction(
                    tenant_id=tenant_id,
                    subscription_id=pending.id,
                    plan_id=plan.id,
                    amount=plan.price,
                    currency=plan.currency,
                    provider=provider.value,
                    external_transaction_id=checkout.external_transaction_id,
                )
            )
            _project_pending(tenant, plan)

        logger.info(
            "Subscription %s pending payment %s for tenant %s",
            pending.id, checkout.external_transaction_id, tenant_id,
        )
        await notify_safely(
            self.notifier,
            tenant,
            "Payment required",
            f"Complete the payment for '{plan.name}' to activate your subscription.",
            WebhookEvent.SUBSCRIPTION_PAYMENT_REQUIRED,
            {"subscription_id": str(pending.id), "checkout_url": checkout.checkout_url},
        )
        return SubscribeResult(
            message="Payment required",
            requires_payment=True,
            action=PlanChangeAction.NEW,
            checkout_url=checkout.checkout_url,
            subscription=pending,
        )

    async def _evaluate(
        self,
        tenant_id: uuid.UUID,
        current: Subscription | None,
        plan: Plan,
        *,
        override: bool,
        custom: int | None,
    ) -> PlanChangeDecision:
        usage = await self.employees.count(tenant_id)
        current_terms = PlanTerms.of_subscription(current) if current else None
        decision = decide(current_terms, usage, PlanTerms.of_plan(plan))

        if not override:
            if plan.is_trial and await self._has_used_trial(tenant_id):
                logger.info("Rejected second trial for tenant %s", tenant_id)
                raise PolicyViolationError("Trial plans can only be used once per tenant")
            if not decision.allowed:
                logger.info(
                    "Rejected %s for tenant %s: %s", decision.action.value, tenant_id, decision.reason
                )
                raise PolicyViolationError(decision.reason)
            return decision

        ceiling = custom if custom is not None else plan.max_entitlement
        if usage > ceiling:
            raise PolicyViolationError(
                f"Override cannot exceed the entitlement ceiling: {ceiling} employees allowed "
                f"but the tenant currently has {usage}"
            )
        if not decision.allowed:
            logger.info(
                "Override applied to %s for tenant %s: %s",
                decision.action.value, tenant_id, decision.reason,
            )
        return decision

    async def _apply(
        self,
        tenant: Tenant,
        current: Subscription | None,
        plan: Plan,
        action: PlanChangeAction,
        actor: Actor | None,
        custom: int | None,
        *,
        manual: bool = False,
    ) -> _Applied:
        now = utcnow()
        # A direct activation wins over any checkout still awaiting payment
        await self._cancel_pending(tenant.id, now)

        if current is not None and action == PlanChangeAction.RENEW:
            previous_name = current.plan_name
            switched = current.plan_id != plan.id
            if switched:
                # Equal terms on another plan: the row takes the new plan's snapshot
                _restamp(current, plan)
            # Stack onto the existing end date, never reset from now
            current.end_date = current.end_date + timedelta(days=plan.duration_in_days)
            if custom is not None:
                current.custom_entitlement_override = custom
            current.touch(now)
            self.session.add(current)
            _project_active(tenant, current, plan.payment_provider, subscribed_at=tenant.subscribed_at)
            logger.info(
                "Renewed subscription %s for tenant %s on plan %s until %s",
                current.id, tenant.id, plan.id, current.end_date,
            )
            if switched:
                message = (
                    f"Plan changed from '{previous_name}' to '{plan.name}' and renewed "
                    f"until {current.end_date:%Y-%m-%d}"
                )
            else:
                message = f"Subscription renewed until {current.end_date:%Y-%m-%d}"
            return _Applied(
                subscription=current,
                action=action,
                event=WebhookEvent.SUBSCRIPTION_RENEWED,
                message=message,
            )

        if current is not None:
            # Plan switch: the old row is superseded and dates restart
            await self._supersede(current, now)

        subscription = _snapshot(tenant.id, plan, SubscriptionStatus.ACTIVE, now, actor, custom)
        self.session.add(subscription)
        await self.session.flush()
        _project_active(tenant, subscription, plan.payment_provider, subscribed_at=now)

        logger.info(
            "Subscription %s (%s) active for tenant %s on plan %s until %s",
            subscription.id, action.value, tenant.id, plan.id, subscription.end_date,
        )
        if current is None:
            if manual:
                message = f"Subscription to '{plan.name}' activated manually"
            elif plan.is_trial:
                message = f"Trial of '{plan.name}' started"
            else:
                message = f"Subscribed to free plan '{plan.name}'"
            event = WebhookEvent.SUBSCRIPTION_ACTIVATED
        else:
            message = f"Plan changed from '{current.plan_name}' to '{plan.name}'"
            event = WebhookEvent.SUBSCRIPTION_UPGRADED
        return _Applied(subscription=subscription, action=action, event=event, message=message)

    async def _notify_applied(self, tenant: Tenant, applied: _Applied) -> None:
        sub = applied.subscription
        await notify_safely(
            self.notifier,
            tenant,
            applied.message,
            f"Plan '{sub.plan_name}' is active until {sub.end_date:%Y-%m-%d}.",
            applied.event,
            {"subscription_id": str(sub.id), "action": applied.action.value},
        )

    async def _load_current(self, tenant: Tenant) -> Subscription | None:
        """Current subscription, expiring lapsed ACTIVE rows on the way.

        Must be called under ``tenant_lock``.
        """
        now = utcnow()
        stmt = (
            select(Subscription)
            .where(
                Subscription.tenant_id == tenant.id,
                Subscription.status == SubscriptionStatus.ACTIVE,
            )
            .order_by(Subscription.end_date.desc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        current: Subscription | None = None
        for sub in result.scalars().all():
            if current is None and sub.is_current(now):
                current = sub
                continue
            sub.status = SubscriptionStatus.EXPIRED
            sub.touch(now)
            self.session.add(sub)
            logger.info("Subscription %s for tenant %s lapsed on %s", sub.id, tenant.id, sub.end_date)

        if current is None and tenant.subscription_status == TenantSubscriptionStatus.ACTIVE:
            logger.info("Resyncing projection for tenant %s: no active subscription", tenant.id)
            _project_inactive(tenant)
        return current

    async def _supersede(self, current: Subscription, now: datetime) -> None:
        current.status = SubscriptionStatus.EXPIRED
        current.touch(now)
        self.session.add(current)
        # Flush before a new ACTIVE row exists, for the one-active index
        await self.session.flush()

    async def _cancel_pending(self, tenant_id: uuid.UUID, now: datetime) -> None:
        stmt = select(Subscription).where(
            Subscription.tenant_id == tenant_id,
            Subscription.status == SubscriptionStatus.PENDING,
        )
        result = await self.session.execute(stmt)
        for sub in result.scalars().all():
            sub.status = SubscriptionStatus.CANCELLED
            sub.touch(now)
            self.session.add(sub)

    async def _has_used_trial(self, tenant_id: uuid.UUID) -> bool:
        stmt = select(Subscription.id).where(
            Subscription.tenant_id == tenant_id,
            Subscription.is_trial.is_(True),  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt.limit(1))
        return result.first() is not None

    async def _get_tenant(self, tenant_id: uuid.UUID) -> Tenant:
        tenant = await self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def _get_subscription(self, subscription_id: uuid.UUID) -> Subscription:
        subscription = await self.session.get(Subscription, subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        return subscription

    async def _get_transaction(self, external_transaction_id: str) -> PaymentTransaction:
        result = await self.session.execute(
            select(PaymentTransaction).where(
                PaymentTransaction.external_transaction_id == external_transaction_id
            )
        )
        txn = result.scalar_one_or_none()
        if txn is None:
            raise NotFoundError(f"Payment transaction {external_transaction_id} not found")
        return txn


# ── Row builders ──────────────────────────────────────────────

def _snapshot(
    tenant_id: uuid.UUID,
    plan: Plan,
    status: SubscriptionStatus,
    start: datetime,
    actor: Actor | None,
    custom: int | None,
) -> Subscription:
    """Copy the plan's terms into a new subscription row."""
    subscription = Subscription(
        tenant_id=tenant_id,
        plan_id=plan.id,
        plan_name=plan.name,
        price=plan.price,
        currency=plan.currency,
        max_entitlement=plan.max_entitlement,
        duration_in_days=plan.duration_in_days,
        is_trial=plan.is_trial,
        start_date=start,
        end_date=start + timedelta(days=plan.duration_in_days),
        status=status,
        custom_entitlement_override=custom,
    )
    subscription.set_activated_by(actor)
    return subscription


def _restamp(subscription: Subscription, plan: Plan) -> None:
    """Point an existing row at ``plan`` without touching its dates.

    Only valid between plans with equal entitlement and price.
    """
    subscription.plan_id = plan.id
    subscription.plan_name = plan.name
    subscription.currency = plan.currency
    subscription.duration_in_days = plan.duration_in_days
    subscription.is_trial = plan.is_trial


def _project_active(
    tenant: Tenant,
    subscription: Subscription,
    provider: str | None,
    *,
    subscribed_at: datetime | None,
) -> None:
    tenant.subscription_status = TenantSubscriptionStatus.ACTIVE
    tenant.current_plan_id = subscription.plan_id
    tenant.subscribed_at = subscribed_at or subscription.start_date
    tenant.payment_provider = provider
    tenant.touch()


def _project_pending(tenant: Tenant, plan: Plan) -> None:
    tenant.subscription_status = TenantSubscriptionStatus.PENDING
    tenant.current_plan_id = plan.id
    tenant.subscribed_at = None
    tenant.payment_provider = plan.payment_provider
    tenant.touch()


def _project_inactive(tenant: Tenant) -> None:
    tenant.subscription_status = TenantSubscriptionStatus.INACTIVE
    tenant.current_plan_id = None
    tenant.subscribed_at = None
    tenant.payment_provider = None
    tenant.touch()
