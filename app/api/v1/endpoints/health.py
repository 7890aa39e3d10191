"""Health check endpoint. No authentication; used for liveness probes."""

from fastapi import APIRouter

from app.infrastructure.firebase.client import get_firestore_client, get_identity_client
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return ok, and whether the Firebase clients are configured."""
    configured = get_firestore_client() is not None and get_identity_client() is not None
    return HealthResponse(firebase=configured)
