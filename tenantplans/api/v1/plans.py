"""Plan catalog endpoints — read for everyone, write for staff."""

import uuid

from fastapi import APIRouter, status

from tenantplans.api.deps import Auth, Session, require_staff
from tenantplans.models.plan import PlanCreate, PlanRead, PlanUpdate
from tenantplans.services.plan_catalog import PlanCatalog

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("", response_model=list[PlanRead])
async def list_plans(
    auth: Auth,
    session: Session,
    include_inactive: bool = False,
) -> list[PlanRead]:
    # Retired plans are only visible to staff
    if include_inactive:
        require_staff(auth)
    plans = await PlanCatalog(session).list_plans(include_inactive=include_inactive)
    return [PlanRead.model_validate(p) for p in plans]


@router.get("/{plan_id}", response_model=PlanRead)
async def get_plan(
    plan_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> PlanRead:
    plan = await PlanCatalog(session).get(plan_id, active_only=not auth.is_staff)
    return PlanRead.model_validate(plan)


@router.post("", response_model=PlanRead, status_code=status.HTTP_201_CREATED)
async def create_plan(
    body: PlanCreate,
    auth: Auth,
    session: Session,
) -> PlanRead:
    require_staff(auth)
    plan = await PlanCatalog(session).create(body)
    return PlanRead.model_validate(plan)


@router.patch("/{plan_id}", response_model=PlanRead)
async def update_plan(
    plan_id: uuid.UUID,
    body: PlanUpdate,
    auth: Auth,
    session: Session,
) -> PlanRead:
    """Edit or deactivate (``is_active: false``) a plan.

    Existing subscriptions keep the terms they were bought at.
    """
    require_staff(auth)
    plan = await PlanCatalog(session).update(plan_id, body)
    return PlanRead.model_validate(plan)
