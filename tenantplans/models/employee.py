"""Employee model — the managed record counted against a tenant's entitlement."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from tenantplans.models.base import TimestampMixin, new_uuid


class Employee(TimestampMixin, SQLModel, table=True):
    __tablename__ = "employees"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    full_name: str = Field(max_length=255, nullable=False)
    email: str | None = Field(default=None, max_length=320)


# ── Pydantic schemas ─────────────────────────────────────────

class EmployeeCreate(SQLModel):
    full_name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=320)


class EmployeeRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    full_name: str
    email: str | None
    created_at: datetime
