"""Security: caller token minting and verification."""

from app.infrastructure.security.firebase_tokens import verify_firebase_id_token
from app.infrastructure.security.jwt import (
    caller_from_claims,
    create_claims_token,
    verify_token,
)

__all__ = [
    "caller_from_claims",
    "create_claims_token",
    "verify_firebase_id_token",
    "verify_token",
]
