"""Tenant model — the subscribing organization."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from tenantplans.models.base import TimestampMixin, new_uuid


class TenantSubscriptionStatus(StrEnum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    slug: str = Field(max_length=100, unique=True, nullable=False, index=True)
    email: str = Field(max_length=320, nullable=False)
    is_active: bool = Field(default=True)

    # Denormalized projection of the authoritative subscription row.
    # Written only by SubscriptionLifecycle, in the same transaction.
    subscription_status: str = Field(
        default=TenantSubscriptionStatus.INACTIVE, max_length=20, nullable=False
    )
    current_plan_id: uuid.UUID | None = Field(default=None, foreign_key="plans.id")
    subscribed_at: datetime | None = Field(default=None)
    payment_provider: str | None = Field(default=None, max_length=30)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    email: str
    is_active: bool
    subscription_status: TenantSubscriptionStatus
    current_plan_id: uuid.UUID | None
    subscribed_at: datetime | None
    payment_provider: str | None
