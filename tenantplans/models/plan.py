"""Plan model — a priced tier granting a capped employee entitlement."""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import String, Text
from sqlmodel import Column, Field, SQLModel

from tenantplans.models.base import TimestampMixin, new_uuid


class PaymentProvider(StrEnum):
    STRIPE = "stripe"
    HYPERPAY = "hyperpay"
    PAYTABS = "paytabs"
    TAP = "tap"
    STCPAY = "stcpay"
    GEIDEA = "geidea"
    MANUAL_TRANSFER = "manual_transfer"


class Plan(TimestampMixin, SQLModel, table=True):
    __tablename__ = "plans"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=100, unique=True, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(Text))

    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    currency: str = Field(default="SAR", max_length=10)
    max_entitlement: int = Field(nullable=False)
    duration_in_days: int = Field(nullable=False)

    is_trial: bool = Field(default=False)
    is_active: bool = Field(default=True)
    payment_provider: PaymentProvider | None = Field(
        default=None, sa_column=Column(String(30), nullable=True)
    )

    @property
    def is_paid(self) -> bool:
        return self.price > 0


# ── Pydantic schemas ─────────────────────────────────────────

class PlanCreate(SQLModel):
    name: str = Field(max_length=100)
    description: str | None = None
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="SAR", max_length=10)
    max_entitlement: int = Field(ge=1)
    duration_in_days: int = Field(ge=1)
    is_trial: bool = False
    payment_provider: PaymentProvider | None = None


class PlanUpdate(SQLModel):
    name: str | None = Field(default=None, max_length=100)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(default=None, max_length=10)
    max_entitlement: int | None = Field(default=None, ge=1)
    duration_in_days: int | None = Field(default=None, ge=1)
    is_trial: bool | None = None
    is_active: bool | None = None
    payment_provider: PaymentProvider | None = None


class PlanRead(SQLModel):
    id: uuid.UUID
    name: str
    description: str | None
    price: Decimal
    currency: str
    max_entitlement: int
    duration_in_days: int
    is_trial: bool
    is_active: bool
    payment_provider: PaymentProvider | None
    created_at: datetime
    updated_at: datetime
