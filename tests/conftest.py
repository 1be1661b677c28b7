"""Shared test fixtures — async SQLite in-memory DB, fakes and test client."""

import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# Import all models so metadata is populated
import tenantplans.models  # noqa: F401
from tenantplans.api.deps import get_notifier, get_payment_gateway
from tenantplans.core import locks
from tenantplans.core.database import get_session
from tenantplans.core.errors import ExternalServiceError
from tenantplans.core.security import create_jwt
from tenantplans.main import app
from tenantplans.models.employee import Employee
from tenantplans.models.plan import PaymentProvider, Plan
from tenantplans.models.tenant import Tenant
from tenantplans.services.payments import CheckoutSession
from tenantplans.services.subscriptions import SubscriptionLifecycle


# ── Fakes ─────────────────────────────────────────────────────

class RecordingNotifier:
    """NotificationPort that keeps every call in memory."""

    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def notify(self, tenant, title, message, kind, data=None) -> None:
        self.sent.append({
            "tenant_id": tenant.id,
            "title": title,
            "message": message,
            "kind": kind,
            "data": data or {},
        })

    def kinds(self, tenant_id: uuid.UUID | None = None) -> list[str]:
        return [
            n["kind"].value for n in self.sent
            if tenant_id is None or n["tenant_id"] == tenant_id
        ]


class FakePaymentGateway:
    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.issued: list[CheckoutSession] = []
        self.fail = False

    async def create_checkout(self, provider, plan, tenant_id) -> CheckoutSession:
        self.calls.append({"provider": provider, "plan_id": plan.id, "tenant_id": tenant_id})
        if self.fail:
            raise ExternalServiceError(f"Could not start a {provider.value} checkout; try again later")
        ref = f"txn-{uuid.uuid4().hex[:12]}"
        checkout = CheckoutSession(
            checkout_url=f"https://pay.example.com/checkout/{ref}",
            external_transaction_id=ref,
        )
        self.issued.append(checkout)
        return checkout


class FakeEmployeeCounter:
    """EmployeeCounter with usage set directly by the test."""

    def __init__(self) -> None:
        self.counts: dict[uuid.UUID, int] = {}

    async def count(self, tenant_id: uuid.UUID) -> int:
        return self.counts.get(tenant_id, 0)


# ── Database ──────────────────────────────────────────────────

@pytest.fixture(scope="session")
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture(scope="session")
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture(autouse=True)
def _reset_tenant_locks():
    locks.clear()
    yield
    locks.clear()


# ── Collaborators ─────────────────────────────────────────────

@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def employees() -> FakeEmployeeCounter:
    return FakeEmployeeCounter()


@pytest.fixture
def lifecycle(session, gateway, notifier, employees) -> SubscriptionLifecycle:
    return SubscriptionLifecycle(session, payments=gateway, notifier=notifier, employees=employees)


# ── Builders ──────────────────────────────────────────────────

@pytest.fixture
def make_tenant(session):
    async def _make(name: str = "Acme") -> Tenant:
        slug = f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:8]}"
        tenant = Tenant(name=name, slug=slug, email=f"{slug}@example.com")
        session.add(tenant)
        await session.commit()
        return tenant

    return _make


@pytest.fixture
def make_plan(session):
    async def _make(
        *,
        max_entitlement: int = 10,
        price: str | Decimal = "0",
        duration_in_days: int = 30,
        is_trial: bool = False,
        is_active: bool = True,
        payment_provider: PaymentProvider | None = None,
        name: str | None = None,
    ) -> Plan:
        price = Decimal(price)
        if price > 0 and payment_provider is None:
            payment_provider = PaymentProvider.STRIPE
        plan = Plan(
            name=name or f"Plan {uuid.uuid4().hex[:8]}",
            price=price,
            max_entitlement=max_entitlement,
            duration_in_days=duration_in_days,
            is_trial=is_trial,
            is_active=is_active,
            payment_provider=payment_provider,
        )
        session.add(plan)
        await session.commit()
        return plan

    return _make


@pytest.fixture
def add_employees(session):
    async def _add(tenant_id: uuid.UUID, n: int) -> None:
        for i in range(n):
            session.add(Employee(tenant_id=tenant_id, full_name=f"Employee {i}"))
        await session.commit()

    return _add


# ── HTTP ──────────────────────────────────────────────────────

@pytest.fixture
def staff_headers() -> dict:
    token = create_jwt(subject=str(uuid.uuid4()), role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session, gateway, notifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session and collaborator overrides."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
