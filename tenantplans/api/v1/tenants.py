"""Tenant registration (bootstrap) and lookup."""

import uuid

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from sqlmodel import select

from tenantplans.api.deps import OWNER_ROLE, Auth, Session, require_tenant_access
from tenantplans.core.security import create_jwt
from tenantplans.models.tenant import Tenant, TenantRead

router = APIRouter(prefix="/tenants", tags=["tenants"])


# ── Bootstrap request / response schemas ──────────────────────

class TenantBootstrapRequest(BaseModel):
    tenant_name: str = Field(max_length=255)
    tenant_slug: str = Field(max_length=100, pattern=r"^[a-z0-9\-]+$")
    owner_email: EmailStr


class TenantBootstrapResponse(BaseModel):
    tenant: TenantRead
    access_token: str = Field(description="Owner JWT, shown once")
    token_type: str = "bearer"


# ── Routes ────────────────────────────────────────────────────

@router.post(
    "",
    response_model=TenantBootstrapResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new tenant (bootstrap)",
)
async def bootstrap_tenant(
    body: TenantBootstrapRequest,
    session: Session,
) -> TenantBootstrapResponse:
    """Create a tenant with no subscription and hand back an owner token.

    This is the only unauthenticated write endpoint.
    """
    existing = await session.execute(
        select(Tenant).where(Tenant.slug == body.tenant_slug)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Slug '{body.tenant_slug}' is already taken",
        )

    tenant = Tenant(
        name=body.tenant_name,
        slug=body.tenant_slug,
        email=body.owner_email,
    )
    session.add(tenant)
    await session.commit()
    await session.refresh(tenant)

    token = create_jwt(
        subject=str(uuid.uuid4()),
        role=OWNER_ROLE,
        tenant_id=str(tenant.id),
    )
    return TenantBootstrapResponse(
        tenant=TenantRead.model_validate(tenant),
        access_token=token,
    )


@router.get(
    "/{tenant_id}",
    response_model=TenantRead,
    summary="Get a tenant and its subscription projection",
)
async def get_tenant(
    tenant_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> TenantRead:
    require_tenant_access(auth, tenant_id)
    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    return TenantRead.model_validate(tenant)
