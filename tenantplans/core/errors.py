"""Domain error taxonomy and its HTTP rendering.

Services raise these; the API layer turns them into JSON responses with
the same ``{"detail": ...}`` shape FastAPI uses for ``HTTPException``.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SubscriptionError(Exception):
    code = "subscription_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SubscriptionError):
    """Missing tenant, plan, subscription or payment transaction."""

    code = "not_found"
    status_code = 404


class PolicyViolationError(SubscriptionError):
    """Blocked downgrade, entitlement ceiling exceeded, trial reused."""

    code = "policy_violation"
    status_code = 400


class ConflictError(SubscriptionError):
    """Concurrent mutation of the same tenant's subscription."""

    code = "conflict"
    status_code = 409


class ExternalServiceError(SubscriptionError):
    """Payment or notification collaborator failure."""

    code = "external_failure"
    status_code = 502


async def subscription_error_handler(request: Request, exc: SubscriptionError) -> JSONResponse:
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        "%s %s failed: %s (%s)",
        request.method,
        request.url.path,
        exc.message,
        exc.code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )
