"""PaymentTransaction model — one checkout awaiting (or past) confirmation."""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from sqlmodel import Field, SQLModel

from tenantplans.models.base import TimestampMixin, new_uuid


class PaymentStatus(StrEnum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentTransaction(TimestampMixin, SQLModel, table=True):
    __tablename__ = "payment_transactions"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    subscription_id: uuid.UUID = Field(foreign_key="subscriptions.id", nullable=False, index=True)
    plan_id: uuid.UUID = Field(foreign_key="plans.id", nullable=False)

    amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(max_length=10)
    provider: str = Field(max_length=30)
    status: str = Field(default=PaymentStatus.PENDING, max_length=20)

    # Idempotency key for confirmations replayed by the gateway
    external_transaction_id: str = Field(max_length=255, unique=True, index=True)
    confirmed_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class PaymentConfirmation(SQLModel):
    external_transaction_id: str = Field(min_length=1, max_length=255)
