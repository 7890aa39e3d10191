"""Firebase (Firestore + Firebase Auth) integration over REST."""

from app.infrastructure.firebase.client import (
    close_firebase,
    get_firestore_client,
    get_identity_client,
    init_firebase,
)

__all__ = [
    "close_firebase",
    "get_firestore_client",
    "get_identity_client",
    "init_firebase",
]
