"""FastAPI dependencies for authentication, tenant access and collaborators."""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from tenantplans.core.database import get_session
from tenantplans.core.security import decode_jwt
from tenantplans.models.subscription import Actor, ActorKind
from tenantplans.services.notifications import NotificationPort, WebhookNotifier
from tenantplans.services.payments import HttpPaymentGateway, PaymentGateway
from tenantplans.services.subscriptions import SubscriptionLifecycle

bearer_scheme = HTTPBearer()

OWNER_ROLE = "owner"
STAFF_ROLES = frozenset(kind.value for kind in ActorKind)


class AuthContext:
    """Resolved identity carried through a request."""

    __slots__ = ("subject_id", "role", "tenant_id")

    def __init__(
        self,
        subject_id: uuid.UUID,
        role: str,
        tenant_id: uuid.UUID | None = None,
    ) -> None:
        self.subject_id = subject_id
        self.role = role
        self.tenant_id = tenant_id

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> AuthContext:
    """Decode the bearer JWT into an AuthContext.

    Owners carry ``tid``; staff tokens have no tenant and reach any tenant.
    """
    try:
        payload = decode_jwt(credentials.credentials)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired JWT",
        ) from exc

    try:
        role = payload["role"]
        ctx = AuthContext(
            subject_id=uuid.UUID(payload["sub"]),
            role=role,
            tenant_id=uuid.UUID(payload["tid"]) if payload.get("tid") else None,
        )
    except (KeyError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed JWT payload",
        ) from exc

    if role == OWNER_ROLE and ctx.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Owner token is missing its tenant",
        )
    if role != OWNER_ROLE and role not in STAFF_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role '{role}'",
        )
    return ctx


# Typed shorthand for use in route signatures
Auth = Annotated[AuthContext, Depends(get_auth_context)]
Session = Annotated[AsyncSession, Depends(get_session)]


# ── Collaborators (overridden in tests) ───────────────────────

def get_payment_gateway() -> PaymentGateway:
    return HttpPaymentGateway()


def get_notifier() -> NotificationPort:
    return WebhookNotifier()


async def get_lifecycle(
    session: Session,
    payments: Annotated[PaymentGateway, Depends(get_payment_gateway)],
    notifier: Annotated[NotificationPort, Depends(get_notifier)],
) -> SubscriptionLifecycle:
    return SubscriptionLifecycle(session, payments=payments, notifier=notifier)


Lifecycle = Annotated[SubscriptionLifecycle, Depends(get_lifecycle)]


# ── Access helpers ────────────────────────────────────────────

def require_tenant_access(auth: AuthContext, tenant_id: uuid.UUID) -> None:
    """Owners may only touch their own tenant; staff may touch any."""
    if auth.is_staff:
        return
    if auth.tenant_id != tenant_id:
        # 404 rather than 403 so other tenant ids stay hidden
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")


def require_staff(auth: AuthContext) -> None:
    if not auth.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff role required",
        )


def require_tenant_scope(auth: AuthContext) -> uuid.UUID:
    """The caller's own tenant, for routes that are not keyed by tenant id."""
    if auth.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="A tenant-scoped token is required",
        )
    return auth.tenant_id


def actor_for(auth: AuthContext) -> Actor | None:
    """Staff identity recorded as ``activated_by``; owners act as themselves."""
    if not auth.is_staff:
        return None
    return Actor(kind=ActorKind(auth.role), id=auth.subject_id)
