"""Tenant-registered webhooks that receive subscription notifications."""

import json
import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import field_validator
from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from tenantplans.models.base import TimestampMixin, new_uuid


class WebhookEvent(StrEnum):
    SUBSCRIPTION_ACTIVATED = "subscription.activated"
    SUBSCRIPTION_PAYMENT_REQUIRED = "subscription.payment_required"
    SUBSCRIPTION_RENEWED = "subscription.renewed"
    SUBSCRIPTION_UPGRADED = "subscription.upgraded"
    SUBSCRIPTION_EXTENDED = "subscription.extended"
    SUBSCRIPTION_CANCELLED = "subscription.cancelled"
    SUBSCRIPTION_EXPIRING = "subscription.expiring"
    PAYMENT_CONFIRMED = "payment.confirmed"


class Webhook(TimestampMixin, SQLModel, table=True):
    __tablename__ = "webhooks"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    url: str = Field(max_length=2048)
    secret: str = Field(max_length=256)  # HMAC key, shown once
    # JSON array of WebhookEvent values
    events: str = Field(sa_column=Column(Text, nullable=False))
    is_active: bool = Field(default=True)
    description: str = Field(default="", max_length=500)

    @property
    def event_list(self) -> list[str]:
        return json.loads(self.events)

    def subscribes_to(self, kind: WebhookEvent) -> bool:
        return self.is_active and kind.value in self.event_list


# ── Pydantic schemas ─────────────────────────────────────────

class WebhookCreate(SQLModel):
    url: str = Field(max_length=2048)
    events: list[str]
    description: str = Field(default="", max_length=500)
    secret: str | None = Field(default=None, max_length=256)

    @field_validator("events")
    @classmethod
    def _known_events(cls, events: list[str]) -> list[str]:
        valid = {e.value for e in WebhookEvent}
        if not events:
            raise ValueError("At least one event type is required")
        unknown = sorted(set(events) - valid)
        if unknown:
            raise ValueError(f"Unknown event type(s) {unknown}; valid: {sorted(valid)}")
        # Keep first-seen order, drop duplicates
        return list(dict.fromkeys(events))


class WebhookRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    url: str
    events: list[str]
    is_active: bool
    description: str
    has_secret: bool
    created_at: datetime
    updated_at: datetime


class WebhookCreated(WebhookRead):
    """Returned once at creation time, with the signing secret."""
    secret: str
