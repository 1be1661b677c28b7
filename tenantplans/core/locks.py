"""Per-tenant serialization for subscription mutations.

Two layers:
- an in-process ``asyncio.Lock`` per tenant, so concurrent requests handled
  by the same worker process never interleave (kept only while in use);
- ``SELECT ... FOR UPDATE`` on the tenant row, so requests handled by other
  processes wait on PostgreSQL (a no-op on SQLite).

The partial unique index on ``subscriptions(tenant_id) WHERE status='active'``
is the storage-level backstop behind both.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenantplans.core.errors import ConflictError, NotFoundError, SubscriptionError
from tenantplans.models.tenant import Tenant


class _TenantMutex:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        # Holder plus waiters; the entry is dropped when this reaches zero
        self.users = 0


_locks: dict[uuid.UUID, _TenantMutex] = {}


@asynccontextmanager
async def _hold(tenant_id: uuid.UUID) -> AsyncIterator[None]:
    mutex = _locks.get(tenant_id)
    if mutex is None:
        mutex = _locks[tenant_id] = _TenantMutex()
    mutex.users += 1
    try:
        async with mutex.lock:
            yield
    finally:
        mutex.users -= 1
        if mutex.users == 0 and _locks.get(tenant_id) is mutex:
            del _locks[tenant_id]


@asynccontextmanager
async def tenant_lock(session: AsyncSession, tenant_id: uuid.UUID) -> AsyncIterator[Tenant]:
    """Hold the tenant's lock and yield its row, locked for update.

    Everything done inside the block is committed as one unit when the
    block exits. Domain errors must be raised before anything that should
    not persist is added to the session; any other exception rolls back.
    """
    async with _hold(tenant_id):
        try:
            result = await session.execute(
                select(Tenant).where(Tenant.id == tenant_id).with_for_update()
            )
            tenant = result.scalar_one_or_none()
            if tenant is None:
                raise NotFoundError(f"Tenant {tenant_id} not found")
            yield tenant
        except SubscriptionError:
            # Ends the transaction (releasing the row lock) without expiring
            # objects the caller still holds.
            await session.commit()
            raise
        except BaseException:
            await session.rollback()
            raise
        else:
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ConflictError(
                    f"Concurrent subscription change for tenant {tenant_id}; retry the request"
                ) from exc


def clear() -> None:
    """Drop all lock objects (tests only)."""
    _locks.clear()
