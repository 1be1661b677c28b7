"""Payment confirmation callback from the payment service."""

import logging

from fastapi import APIRouter, Header, HTTPException, Request, status
from pydantic import ValidationError

from tenantplans.api.deps import Lifecycle
from tenantplans.api.v1.subscriptions import subscription_read
from tenantplans.core.config import get_settings
from tenantplans.core.security import verify_signature
from tenantplans.models.payment import PaymentConfirmation
from tenantplans.models.subscription import SubscriptionRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/confirm", response_model=SubscriptionRead)
async def confirm_payment(
    request: Request,
    lifecycle: Lifecycle,
    x_payment_signature: str = Header(default=""),
) -> SubscriptionRead:
    """Activate the pending subscription a payment was made for.

    Authenticated by an HMAC-SHA256 of the raw body. Safe to replay.
    """
    body = await request.body()
    if not verify_signature(get_settings().payment_webhook_secret, body, x_payment_signature):
        logger.warning("Rejected payment confirmation with a bad signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid payment signature",
        )

    try:
        confirmation = PaymentConfirmation.model_validate_json(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False),
        ) from exc

    sub = await lifecycle.confirm_payment(confirmation.external_transaction_id)
    return subscription_read(sub)
