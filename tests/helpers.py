"""Small helpers shared by unit and API tests."""

from datetime import datetime

from app.application.dtos.claims import Claims
from app.core.tenant_context import TenantContext
from app.infrastructure.security.jwt import create_claims_token
from tests.fakes import FakeFirestore


def tenant_ctx(
    tenant_id: str, caller_id: str = "member", is_tenant_admin: bool = False
) -> TenantContext:
    """Context of a tenant-bound caller."""
    return TenantContext(caller_id=caller_id, tenant_id=tenant_id, is_tenant_admin=is_tenant_admin)


def role_id_by_name(firestore: FakeFirestore, tenant_id: str, name: str) -> str:
    for doc_id, doc in firestore.docs("roles").items():
        if doc["tenantId"] == tenant_id and doc["name"] == name:
            return doc_id
    raise KeyError(name)


def tenant_docs(firestore: FakeFirestore, collection: str, tenant_id: str) -> list[dict]:
    return [d for d in firestore.docs(collection).values() if d.get("tenantId") == tenant_id]


def bearer(
    uid: str,
    claims: Claims,
    email: str | None = None,
    auth_time: datetime | None = None,
) -> dict[str, str]:
    """Authorization header carrying a locally minted claims token."""
    token = create_claims_token(uid, claims, email=email, auth_time=auth_time)
    return {"Authorization": f"Bearer {token}"}
