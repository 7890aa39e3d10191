"""Firebase ID token verification (AUTH_TOKEN_MODE=firebase)."""

from __future__ import annotations

import asyncio

from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from app.application.dtos.claims import Caller
from app.infrastructure.security.jwt import caller_from_claims


def _verify(token: str, project_id: str | None) -> dict:
    return id_token.verify_firebase_token(
        token, google_requests.Request(), audience=project_id
    )


async def verify_firebase_id_token(token: str, project_id: str | None) -> Caller:
    """Verify signature, audience and expiry; custom claims become the Caller's claims.

    Raises:
        ValueError: If the token is invalid or expired.
    """
    try:
        payload = await asyncio.to_thread(_verify, token, project_id)
    except google_auth_exceptions.GoogleAuthError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if not payload:
        raise ValueError("Invalid token")
    return caller_from_claims(payload)
