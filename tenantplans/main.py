"""FastAPI application entrypoint."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tenantplans.api.v1 import v1_router
from tenantplans.core.config import get_settings
from tenantplans.core.database import init_db
from tenantplans.core.errors import SubscriptionError, subscription_error_handler
from tenantplans.core.logging import configure_logging


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    yield


app = FastAPI(
    title="tenantplans",
    version="0.1.0",
    description="Subscription lifecycle and plan-change policy for tenant organizations",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Errors ───────────────────────────────────────────────────
app.add_exception_handler(SubscriptionError, subscription_error_handler)  # type: ignore[arg-type]

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
