"""Subscription lifecycle endpoints, nested under a tenant, plus the staff-wide expiring view."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from tenantplans.api.deps import (
    Auth,
    Lifecycle,
    Session,
    actor_for,
    require_staff,
    require_tenant_access,
)
from tenantplans.core.errors import NotFoundError
from tenantplans.models.subscription import ActorRead, Subscription, SubscriptionRead
from tenantplans.models.tenant import Tenant, TenantSubscriptionStatus
from tenantplans.services.employees import SqlEmployeeCounter
from tenantplans.services.entitlements import EntitlementTracker
from tenantplans.services.plan_policy import PlanChangeAction, PlanTerms

router = APIRouter(prefix="/tenants/{tenant_id}/subscription", tags=["subscriptions"])
# Cross-tenant reads for staff
staff_router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


# ── Request / response schemas ────────────────────────────────

class SubscribeRequest(BaseModel):
    plan_id: uuid.UUID
    override: bool = False
    custom_entitlement_override: int | None = Field(default=None, ge=1)


class SubscribeResponse(BaseModel):
    message: str
    requires_payment: bool
    action: PlanChangeAction
    checkout_url: str | None = None
    subscription: SubscriptionRead | None = None


class CancelResponse(BaseModel):
    cancelled_count: int
    tenant_status: TenantSubscriptionStatus


class ExtendRequest(BaseModel):
    days: int = Field(ge=1, le=3650)


class ExtendResponse(BaseModel):
    subscription: SubscriptionRead
    days_remaining_before: int
    days_remaining_after: int


class ChangePlanRequest(BaseModel):
    plan_id: uuid.UUID


class PlanTermsRead(BaseModel):
    name: str
    price: Decimal
    max_entitlement: int


class PlanChangeResponse(BaseModel):
    subscription: SubscriptionRead
    action: PlanChangeAction
    old_plan: PlanTermsRead
    new_plan: PlanTermsRead


class PlanChangeValidationResponse(BaseModel):
    can_change: bool
    action: PlanChangeAction
    reason: str
    current_usage: int
    requires_payment: bool
    current_plan: PlanTermsRead | None
    new_plan: PlanTermsRead


class UsageResponse(BaseModel):
    max_allowed: int
    current: int
    remaining: int
    can_add: bool
    has_active_subscription: bool


class EntitlementOverrideRequest(BaseModel):
    # null clears the override
    value: int | None = Field(default=None, ge=1)


def subscription_read(sub: Subscription) -> SubscriptionRead:
    actor = sub.activated_by
    return SubscriptionRead(
        id=sub.id,
        tenant_id=sub.tenant_id,
        plan_id=sub.plan_id,
        plan_name=sub.plan_name,
        price=sub.price,
        currency=sub.currency,
        max_entitlement=sub.max_entitlement,
        duration_in_days=sub.duration_in_days,
        is_trial=sub.is_trial,
        start_date=sub.start_date,
        end_date=sub.end_date,
        status=sub.status,
        custom_entitlement_override=sub.custom_entitlement_override,
        activated_by=ActorRead(kind=actor.kind, id=actor.id) if actor else None,
        days_remaining=sub.days_remaining(),
        created_at=sub.created_at,
        updated_at=sub.updated_at,
    )


def _terms(terms: PlanTerms) -> PlanTermsRead:
    return PlanTermsRead(name=terms.name, price=terms.price, max_entitlement=terms.max_entitlement)


# ── Routes ────────────────────────────────────────────────────

@router.post("", response_model=SubscribeResponse)
async def subscribe(
    tenant_id: uuid.UUID,
    body: SubscribeRequest,
    auth: Auth,
    lifecycle: Lifecycle,
) -> SubscribeResponse:
    """Subscribe, renew or switch plans.

    Paid plans without an override answer with ``requires_payment`` and a
    checkout URL; the subscription activates on payment confirmation.
    """
    require_tenant_access(auth, tenant_id)
    if body.override or body.custom_entitlement_override is not None:
        require_staff(auth)

    result = await lifecycle.subscribe(
        tenant_id,
        body.plan_id,
        actor=actor_for(auth),
        override=body.override,
        custom_entitlement_override=body.custom_entitlement_override,
    )
    return SubscribeResponse(
        message=result.message,
        requires_payment=result.requires_payment,
        action=result.action,
        checkout_url=result.checkout_url,
        subscription=subscription_read(result.subscription) if result.subscription else None,
    )


@router.get("", response_model=SubscriptionRead | None)
async def get_current_subscription(
    tenant_id: uuid.UUID,
    auth: Auth,
    lifecycle: Lifecycle,
) -> SubscriptionRead | None:
    require_tenant_access(auth, tenant_id)
    sub = await lifecycle.get_current_subscription(tenant_id)
    return subscription_read(sub) if sub else None


@router.delete("", response_model=CancelResponse)
async def cancel_subscription(
    tenant_id: uuid.UUID,
    auth: Auth,
    lifecycle: Lifecycle,
) -> CancelResponse:
    require_tenant_access(auth, tenant_id)
    result = await lifecycle.cancel(tenant_id, actor=actor_for(auth))
    return CancelResponse(
        cancelled_count=result.cancelled_count, tenant_status=result.tenant_status
    )


@router.post("/extend", response_model=ExtendResponse)
async def extend_subscription(
    tenant_id: uuid.UUID,
    body: ExtendRequest,
    auth: Auth,
    lifecycle: Lifecycle,
) -> ExtendResponse:
    require_tenant_access(auth, tenant_id)
    require_staff(auth)
    result = await lifecycle.extend(tenant_id, body.days, actor=actor_for(auth))
    return ExtendResponse(
        subscription=subscription_read(result.subscription),
        days_remaining_before=result.days_remaining_before,
        days_remaining_after=result.days_remaining_after,
    )


@router.post("/change-plan", response_model=PlanChangeResponse)
async def change_plan(
    tenant_id: uuid.UUID,
    body: ChangePlanRequest,
    auth: Auth,
    lifecycle: Lifecycle,
) -> PlanChangeResponse:
    require_tenant_access(auth, tenant_id)
    result = await lifecycle.change_plan(tenant_id, body.plan_id, actor=actor_for(auth))
    return PlanChangeResponse(
        subscription=subscription_read(result.subscription),
        action=result.action,
        old_plan=_terms(result.old_plan),
        new_plan=_terms(result.new_plan),
    )


@router.get("/validate-plan-change/{plan_id}", response_model=PlanChangeValidationResponse)
async def validate_plan_change(
    tenant_id: uuid.UUID,
    plan_id: uuid.UUID,
    auth: Auth,
    lifecycle: Lifecycle,
) -> PlanChangeValidationResponse:
    require_tenant_access(auth, tenant_id)
    result = await lifecycle.validate_plan_change(tenant_id, plan_id)
    return PlanChangeValidationResponse(
        can_change=result.can_change,
        action=result.action,
        reason=result.reason,
        current_usage=result.current_usage,
        requires_payment=result.requires_payment,
        current_plan=_terms(result.current_plan) if result.current_plan else None,
        new_plan=_terms(result.new_plan),
    )


@router.get("/history", response_model=list[SubscriptionRead])
async def subscription_history(
    tenant_id: uuid.UUID,
    auth: Auth,
    lifecycle: Lifecycle,
) -> list[SubscriptionRead]:
    require_tenant_access(auth, tenant_id)
    return [subscription_read(sub) for sub in await lifecycle.get_history(tenant_id)]


@router.get("/usage", response_model=UsageResponse)
async def entitlement_usage(
    tenant_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> UsageResponse:
    require_tenant_access(auth, tenant_id)
    if await session.get(Tenant, tenant_id) is None:
        raise NotFoundError(f"Tenant {tenant_id} not found")
    usage = await EntitlementTracker(session, SqlEmployeeCounter(session)).compute_allowed(tenant_id)
    return UsageResponse(
        max_allowed=usage.max_allowed,
        current=usage.current,
        remaining=usage.remaining,
        can_add=usage.can_add,
        has_active_subscription=usage.has_active_subscription,
    )


@router.put(
    "/entitlement-override",
    response_model=SubscriptionRead,
    status_code=status.HTTP_200_OK,
)
async def set_entitlement_override(
    tenant_id: uuid.UUID,
    body: EntitlementOverrideRequest,
    auth: Auth,
    lifecycle: Lifecycle,
) -> SubscriptionRead:
    require_staff(auth)
    sub = await lifecycle.set_entitlement_override(tenant_id, body.value, actor_for(auth))
    return subscription_read(sub)


@staff_router.get("/expiring", response_model=list[SubscriptionRead])
async def expiring_subscriptions(
    auth: Auth,
    lifecycle: Lifecycle,
    days: int = Query(default=30, ge=1, le=3650),
) -> list[SubscriptionRead]:
    """Active subscriptions across all tenants that end within ``days``."""
    require_staff(auth)
    return [subscription_read(sub) for sub in await lifecycle.get_expiring(days)]
