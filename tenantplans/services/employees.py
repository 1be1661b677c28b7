"""Employee counting — the live usage figure checked against entitlements."""

import uuid
from typing import Protocol

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenantplans.models.employee import Employee


class EmployeeCounter(Protocol):
    async def count(self, tenant_id: uuid.UUID) -> int: ...


class SqlEmployeeCounter:
    """Counts employee rows on every call; the figure is never cached."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count(self, tenant_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Employee).where(Employee.tenant_id == tenant_id)
        )
        return result.scalar_one() or 0
