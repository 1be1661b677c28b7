"""Employee records — the usage counted against a tenant's entitlement."""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from tenantplans.api.deps import Auth, Session, require_tenant_access
from tenantplans.core.locks import tenant_lock
from tenantplans.models.employee import Employee, EmployeeCreate, EmployeeRead
from tenantplans.services.employees import SqlEmployeeCounter
from tenantplans.services.entitlements import EntitlementTracker

router = APIRouter(prefix="/tenants/{tenant_id}/employees", tags=["employees"])


@router.post("", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
async def create_employee(
    tenant_id: uuid.UUID,
    body: EmployeeCreate,
    auth: Auth,
    session: Session,
) -> EmployeeRead:
    """Add an employee if the active subscription leaves room for one."""
    require_tenant_access(auth, tenant_id)
    tracker = EntitlementTracker(session, SqlEmployeeCounter(session))

    # Same lock as subscription changes: the count cannot move under us
    async with tenant_lock(session, tenant_id):
        await tracker.ensure_can_add(tenant_id)
        employee = Employee(tenant_id=tenant_id, full_name=body.full_name, email=body.email)
        session.add(employee)

    return EmployeeRead.model_validate(employee)


@router.get("", response_model=list[EmployeeRead])
async def list_employees(
    tenant_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> list[EmployeeRead]:
    require_tenant_access(auth, tenant_id)
    stmt = (
        select(Employee)
        .where(Employee.tenant_id == tenant_id)
        .order_by(Employee.created_at)  # type: ignore[arg-type]
    )
    result = await session.execute(stmt)
    return [EmployeeRead.model_validate(e) for e in result.scalars().all()]


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> None:
    require_tenant_access(auth, tenant_id)
    employee = await session.get(Employee, employee_id)
    if employee is None or employee.tenant_id != tenant_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    await session.delete(employee)
    await session.commit()
