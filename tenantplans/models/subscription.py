"""Subscription model — a tenant's time-bounded binding to a plan snapshot."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import CheckConstraint, Index, String, text
from sqlmodel import Column, Field, SQLModel

from tenantplans.models.base import TimestampMixin, days_until, new_uuid, utcnow


class SubscriptionStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class ActorKind(StrEnum):
    SELLER = "seller"
    ADMIN = "admin"
    SUPADMIN = "supadmin"


@dataclass(frozen=True, slots=True)
class Actor:
    """Who performed an administrative change: exactly one kind, or nobody."""

    kind: ActorKind
    id: uuid.UUID


class Subscription(TimestampMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index(
            "uq_subscriptions_one_active_per_tenant",
            "tenant_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        CheckConstraint(
            "(activated_by_kind IS NULL) = (activated_by_id IS NULL)",
            name="ck_subscriptions_activated_by_pair",
        ),
    )

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    # Reporting reference only; terms below are the source of truth.
    plan_id: uuid.UUID = Field(foreign_key="plans.id", nullable=False, index=True)

    # Plan snapshot taken at transition time
    plan_name: str = Field(max_length=100, nullable=False)
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    currency: str = Field(default="SAR", max_length=10)
    max_entitlement: int = Field(nullable=False)
    duration_in_days: int = Field(nullable=False)
    is_trial: bool = Field(default=False)

    start_date: datetime = Field(default_factory=utcnow, nullable=False)
    end_date: datetime = Field(nullable=False, index=True)
    status: str = Field(
        default=SubscriptionStatus.PENDING,
        sa_column=Column(String(20), nullable=False, index=True),
    )

    custom_entitlement_override: int | None = Field(default=None)
    activated_by_kind: str | None = Field(default=None, max_length=20)
    activated_by_id: uuid.UUID | None = Field(default=None)

    @property
    def activated_by(self) -> Actor | None:
        if self.activated_by_kind is None or self.activated_by_id is None:
            return None
        return Actor(kind=ActorKind(self.activated_by_kind), id=self.activated_by_id)

    def set_activated_by(self, actor: Actor | None) -> None:
        self.activated_by_kind = actor.kind.value if actor else None
        self.activated_by_id = actor.id if actor else None

    @property
    def effective_entitlement(self) -> int:
        if self.custom_entitlement_override is not None:
            return self.custom_entitlement_override
        return self.max_entitlement

    def is_current(self, now: datetime | None = None) -> bool:
        """ACTIVE and not past its end date."""
        return self.status == SubscriptionStatus.ACTIVE and self.end_date > (now or utcnow())

    def days_remaining(self, now: datetime | None = None) -> int:
        if self.status != SubscriptionStatus.ACTIVE:
            return 0
        return days_until(self.end_date, now)


# ── Pydantic schemas ─────────────────────────────────────────

class ActorRead(SQLModel):
    kind: ActorKind
    id: uuid.UUID


class SubscriptionRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    plan_id: uuid.UUID
    plan_name: str
    price: Decimal
    currency: str
    max_entitlement: int
    duration_in_days: int
    is_trial: bool
    start_date: datetime
    end_date: datetime
    status: SubscriptionStatus
    custom_entitlement_override: int | None
    activated_by: ActorRead | None
    days_remaining: int
    created_at: datetime
    updated_at: datetime
