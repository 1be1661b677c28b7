"""Notification webhooks — registered by tenant owners, scoped to their tenant."""

import json
import secrets
import uuid

import httpx
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenantplans.api.deps import Auth, Session, require_tenant_scope
from tenantplans.core.config import get_settings
from tenantplans.core.security import sign_payload
from tenantplans.models.webhook import (
    Webhook,
    WebhookCreate,
    WebhookCreated,
    WebhookRead,
)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _to_read(wh: Webhook) -> WebhookRead:
    return WebhookRead(
        id=wh.id,
        tenant_id=wh.tenant_id,
        url=wh.url,
        events=wh.event_list,
        is_active=wh.is_active,
        description=wh.description,
        has_secret=bool(wh.secret),
        created_at=wh.created_at,
        updated_at=wh.updated_at,
    )


class TestPingResponse(BaseModel):
    success: bool
    status_code: int | None = None


@router.post("", response_model=WebhookCreated, status_code=status.HTTP_201_CREATED)
async def create_webhook(
    body: WebhookCreate,
    auth: Auth,
    session: Session,
) -> WebhookCreated:
    tenant_id = require_tenant_scope(auth)

    raw_secret = body.secret or secrets.token_urlsafe(32)
    wh = Webhook(
        tenant_id=tenant_id,
        url=body.url,
        secret=raw_secret,
        events=json.dumps(body.events),
        description=body.description,
    )
    session.add(wh)
    await session.commit()
    await session.refresh(wh)

    return WebhookCreated(**_to_read(wh).model_dump(), secret=raw_secret)


@router.get("", response_model=list[WebhookRead])
async def list_webhooks(
    auth: Auth,
    session: Session,
) -> list[WebhookRead]:
    tenant_id = require_tenant_scope(auth)
    stmt = (
        select(Webhook)
        .where(Webhook.tenant_id == tenant_id)
        .order_by(Webhook.created_at.desc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    return [_to_read(wh) for wh in result.scalars().all()]


@router.get("/{webhook_id}", response_model=WebhookRead)
async def get_webhook(
    webhook_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> WebhookRead:
    wh = await _get_or_404(webhook_id, require_tenant_scope(auth), session)
    return _to_read(wh)


@router.delete("/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_webhook(
    webhook_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> None:
    wh = await _get_or_404(webhook_id, require_tenant_scope(auth), session)
    await session.delete(wh)
    await session.commit()


@router.post("/{webhook_id}/test", response_model=TestPingResponse)
async def test_webhook(
    webhook_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> TestPingResponse:
    """Send a signed test ping to the webhook URL."""
    wh = await _get_or_404(webhook_id, require_tenant_scope(auth), session)

    body = json.dumps({"event": "test.ping", "webhook_id": str(wh.id)}).encode()
    try:
        async with httpx.AsyncClient(timeout=get_settings().webhook_timeout_seconds) as client:
            resp = await client.post(
                wh.url,
                content=body,
                headers={
                    "Content-Type": "application/json",
                    "X-Tenantplans-Signature": sign_payload(wh.secret, body),
                    "X-Tenantplans-Event": "test.ping",
                },
            )
        return TestPingResponse(success=resp.is_success, status_code=resp.status_code)
    except httpx.HTTPError:
        return TestPingResponse(success=False, status_code=None)


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(
    webhook_id: uuid.UUID,
    tenant_id: uuid.UUID,
    session: AsyncSession,
) -> Webhook:
    stmt = select(Webhook).where(
        Webhook.id == webhook_id,
        Webhook.tenant_id == tenant_id,
    )
    result = await session.execute(stmt)
    wh = result.scalar_one_or_none()
    if wh is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Webhook not found"
        )
    return wh
