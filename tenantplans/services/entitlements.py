"""Entitlement tracking — live usage vs. allowed capacity per tenant."""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenantplans.core.errors import PolicyViolationError
from tenantplans.models.base import utcnow
from tenantplans.models.subscription import Subscription, SubscriptionStatus
from tenantplans.services.employees import EmployeeCounter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EntitlementUsage:
    max_allowed: int
    current: int
    remaining: int
    can_add: bool
    has_active_subscription: bool


async def load_current_subscription(
    session: AsyncSession, tenant_id: uuid.UUID
) -> Subscription | None:
    """The tenant's ACTIVE subscription whose end date is still ahead, if any."""
    stmt = (
        select(Subscription)
        .where(
            Subscription.tenant_id == tenant_id,
            Subscription.status == SubscriptionStatus.ACTIVE,
            Subscription.end_date > utcnow(),
        )
        .order_by(Subscription.end_date.desc())  # type: ignore[attr-defined]
    )
    result = await session.execute(stmt)
    return result.scalars().first()


class EntitlementTracker:
    """Recomputes everything on each call: usage and subscription state
    change independently of each other."""

    def __init__(self, session: AsyncSession, employees: EmployeeCounter) -> None:
        self.session = session
        self.employees = employees

    async def compute_allowed(self, tenant_id: uuid.UUID) -> EntitlementUsage:
        subscription = await load_current_subscription(self.session, tenant_id)
        max_allowed = subscription.effective_entitlement if subscription else 0
        current = await self.employees.count(tenant_id)
        remaining = max(0, max_allowed - current)
        return EntitlementUsage(
            max_allowed=max_allowed,
            current=current,
            remaining=remaining,
            can_add=subscription is not None and remaining > 0,
            has_active_subscription=subscription is not None,
        )

    async def ensure_can_add(self, tenant_id: uuid.UUID) -> EntitlementUsage:
        usage = await self.compute_allowed(tenant_id)
        if not usage.has_active_subscription:
            raise PolicyViolationError("No active subscription; employees cannot be added")
        if not usage.can_add:
            logger.info(
                "Employee limit reached for tenant %s (%d/%d)",
                tenant_id, usage.current, usage.max_allowed,
            )
            raise PolicyViolationError(
                f"Employee limit reached: {usage.current} of {usage.max_allowed} allowed"
            )
        return usage
