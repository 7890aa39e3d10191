"""Locally minted claims tokens (AUTH_TOKEN_MODE=local).

HS256 tokens carrying the same claims a Firebase ID token carries (sub,
email, auth_time, tenantId, isPlatformAdmin, isTenantAdmin). Used in
development, tests and service-to-service calls.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from app.application.dtos.claims import Caller, Claims
from app.core.config import get_settings
from app.shared.utils.datetime import from_timestamp_utc


def create_claims_token(
    uid: str,
    claims: Claims,
    email: str | None = None,
    auth_time: datetime | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed token for a principal.

    Args:
        uid: Principal id (becomes sub).
        claims: Claims bag to embed.
        email: Optional email claim.
        auth_time: Sign-in time; defaults to now.
        expires_delta: Optional TTL; else uses settings.access_token_expire_minutes.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode: dict[str, Any] = {
        "sub": uid,
        "email": email,
        "auth_time": int((auth_time or now).timestamp()),
        "exp": now + expires_delta,
        **claims.to_custom_attributes(),
    }
    encoded = jwt.encode(
        to_encode,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_token(token: str) -> Caller:
    """Verify and decode a claims token.

    Enforces presence of exp and sub.

    Raises:
        ValueError: If token is invalid, expired, or missing required claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if "sub" not in payload:
        raise ValueError("Token missing required claim: sub")
    return caller_from_claims(payload)


def caller_from_claims(payload: dict[str, Any]) -> Caller:
    """Build a Caller from decoded token claims (local or Firebase)."""
    uid = payload.get("sub") or payload.get("user_id")
    if not uid:
        raise ValueError("Token missing required claim: sub")
    auth_time = payload.get("auth_time")
    return Caller(
        uid=uid,
        email=payload.get("email"),
        claims=Claims.from_mapping(payload),
        auth_time=from_timestamp_utc(auth_time) if auth_time is not None else None,
    )
