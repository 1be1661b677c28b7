"""Security utilities: JWTs and HMAC signatures."""

import hashlib
import hmac
from datetime import datetime, timedelta, timezone

from jose import jwt

from tenantplans.core.config import get_settings

settings = get_settings()


# ── JWT ───────────────────────────────────────────────────────

def create_jwt(
    subject: str,
    role: str,
    tenant_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload: dict = {
        "sub": subject,
        "role": role,
        "exp": expire,
    }
    if tenant_id is not None:
        payload["tid"] = tenant_id
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jose.JWTError on failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


# ── HMAC (webhooks in both directions) ────────────────────────

def sign_payload(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str) -> bool:
    """Constant-time comparison of an HMAC-SHA256 hex digest."""
    if not secret or not signature:
        return False
    return hmac.compare_digest(sign_payload(secret, body), signature)
