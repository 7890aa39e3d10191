"""Tests for the platform-admin tenant API."""

from httpx import AsyncClient

from app.application.dtos.claims import Claims
from app.application.dtos.tenant import TenantCreationResult
from tests.fakes import FakeFirestore, FakeIdentity
from tests.helpers import bearer

CREATE_BODY = {
    "companyName": "Globex",
    "plan": "Starter",
    "adminEmail": "g@globex.com",
    "adminPassword": "secret123",
    "adminName": "Gus",
}


async def test_create_tenant_without_token_returns_401(client: AsyncClient) -> None:
    response = await client.post("/api/v1/tenants", json=CREATE_BODY)
    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHENTICATED"


async def test_create_tenant_with_invalid_token_returns_401(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/tenants", json=CREATE_BODY, headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


async def test_create_tenant_as_tenant_admin_returns_403(client: AsyncClient) -> None:
    headers = bearer("u1", Claims(tenant_id="tenant_acme", is_tenant_admin=True))
    response = await client.post("/api/v1/tenants", json=CREATE_BODY, headers=headers)
    assert response.status_code == 403
    assert response.json()["error"] == "PERMISSION_DENIED"


async def test_platform_admin_claim_without_profile_flag_is_accepted(
    client: AsyncClient, identity: FakeIdentity
) -> None:
    """Flag drift is logged, not fatal: either source grants platform admin."""
    uid = identity.add_account("ops@syncly.io", claims=Claims(is_platform_admin=True))
    headers = bearer(uid, Claims(is_platform_admin=True))
    response = await client.post("/api/v1/tenants", json=CREATE_BODY, headers=headers)
    assert response.status_code == 201


async def test_create_tenant_returns_201(
    client: AsyncClient,
    platform_admin_headers: dict[str, str],
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    response = await client.post("/api/v1/tenants", json=CREATE_BODY, headers=platform_admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["rolesCreated"] == 3
    assert data["businessUnitsCreated"] == 5
    assert data["message"] == "Tenant Globex created successfully"
    tenant = firestore.docs("tenants")[data["tenantId"]]
    assert tenant["adminEmail"] == "g@globex.com"
    assert identity.claims_of(data["adminUserId"]) == Claims(
        tenant_id=data["tenantId"], is_tenant_admin=True
    )
    assert "adminPassword" not in response.text


async def test_create_tenant_invalid_email_returns_422(
    client: AsyncClient, platform_admin_headers: dict[str, str]
) -> None:
    body = {**CREATE_BODY, "adminEmail": "not-an-email"}
    response = await client.post("/api/v1/tenants", json=body, headers=platform_admin_headers)
    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "INVALID_ARGUMENT"
    assert "input" not in data["details"][0]


async def test_create_tenant_short_password_returns_400(
    client: AsyncClient, platform_admin_headers: dict[str, str]
) -> None:
    body = {**CREATE_BODY, "adminPassword": "abc"}
    response = await client.post("/api/v1/tenants", json=body, headers=platform_admin_headers)
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "password"}


async def test_create_tenant_duplicate_admin_email_returns_409(
    client: AsyncClient, platform_admin_headers: dict[str, str], acme: TenantCreationResult
) -> None:
    body = {**CREATE_BODY, "adminEmail": "A@acme.com"}
    response = await client.post("/api/v1/tenants", json=body, headers=platform_admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "ALREADY_EXISTS"


async def test_update_plan_moves_user_limit(
    client: AsyncClient, platform_admin_headers: dict[str, str], acme: TenantCreationResult
) -> None:
    response = await client.patch(
        f"/api/v1/tenants/{acme.tenant_id}/plan",
        json={"plan": "Professional"},
        headers=platform_admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["plan"] == "Professional"
    assert data["userLimit"] == 50
    assert data["currentUsers"] == 1


async def test_update_status_suspends_tenant(
    client: AsyncClient, platform_admin_headers: dict[str, str], acme: TenantCreationResult
) -> None:
    response = await client.patch(
        f"/api/v1/tenants/{acme.tenant_id}/status",
        json={"status": "Suspended"},
        headers=platform_admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "Suspended"


async def test_update_status_unknown_tenant_returns_404(
    client: AsyncClient, platform_admin_headers: dict[str, str]
) -> None:
    response = await client.patch(
        "/api/v1/tenants/tenant_missing/status",
        json={"status": "Active"},
        headers=platform_admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


async def test_update_status_rejects_unknown_value(
    client: AsyncClient, platform_admin_headers: dict[str, str], acme: TenantCreationResult
) -> None:
    response = await client.patch(
        f"/api/v1/tenants/{acme.tenant_id}/status",
        json={"status": "Frozen"},
        headers=platform_admin_headers,
    )
    assert response.status_code == 422


async def test_delete_orphan_with_users_returns_412(
    client: AsyncClient, platform_admin_headers: dict[str, str], acme: TenantCreationResult
) -> None:
    response = await client.delete(
        f"/api/v1/tenants/{acme.tenant_id}/orphan", headers=platform_admin_headers
    )
    assert response.status_code == 412
    assert response.json()["error"] == "FAILED_PRECONDITION"


async def test_delete_orphan_removes_tenant(
    client: AsyncClient,
    platform_admin_headers: dict[str, str],
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    firestore.docs("users").pop(acme.admin_user_id)

    response = await client.delete(
        f"/api/v1/tenants/{acme.tenant_id}/orphan", headers=platform_admin_headers
    )

    assert response.status_code == 204
    assert acme.tenant_id not in firestore.docs("tenants")


async def test_operations_log_is_camel_case_and_filterable(
    client: AsyncClient, platform_admin_headers: dict[str, str], acme: TenantCreationResult
) -> None:
    response = await client.get(
        "/api/v1/tenants/operations-log",
        params={"tenantId": acme.tenant_id, "limit": 10},
        headers=platform_admin_headers,
    )
    assert response.status_code == 200
    logs = response.json()["logs"]
    assert len(logs) == 1
    entry = logs[0]
    assert entry["operation"] == "create"
    assert entry["tenantId"] == acme.tenant_id
    assert entry["performedBy"] == "platform-admin"
    assert entry["performedByEmail"] == "root@syncly.io"


async def test_backfill_admin_info(
    client: AsyncClient,
    platform_admin_headers: dict[str, str],
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    tenant = firestore.docs("tenants")[acme.tenant_id]
    for key in ("adminEmail", "adminUid", "adminName"):
        tenant.pop(key, None)

    response = await client.post("/api/v1/tenants/backfill-admin-info", headers=platform_admin_headers)

    assert response.status_code == 200
    assert response.json()["updated"] == 1
    assert firestore.docs("tenants")[acme.tenant_id]["adminEmail"] == "a@acme.com"


async def test_reset_admin_password(
    client: AsyncClient,
    platform_admin_headers: dict[str, str],
    acme: TenantCreationResult,
    identity: FakeIdentity,
) -> None:
    response = await client.post(
        f"/api/v1/tenants/{acme.tenant_id}/admin-password",
        json={"newPassword": "fresh-pass-1"},
        headers=platform_admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["adminEmail"] == "a@acme.com"
    assert identity.accounts[acme.admin_user_id]["password"] == "fresh-pass-1"


async def test_delete_tenant_admin(
    client: AsyncClient,
    platform_admin_headers: dict[str, str],
    acme: TenantCreationResult,
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    response = await client.delete(
        f"/api/v1/tenants/{acme.tenant_id}/admin",
        params={"adminEmail": "a@acme.com"},
        headers=platform_admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["userId"] == acme.admin_user_id
    assert acme.admin_user_id not in identity.accounts
    assert acme.admin_user_id not in firestore.docs("users")


async def test_delete_tenant_admin_unknown_email_returns_404(
    client: AsyncClient, platform_admin_headers: dict[str, str], acme: TenantCreationResult
) -> None:
    response = await client.delete(
        f"/api/v1/tenants/{acme.tenant_id}/admin",
        params={"adminEmail": "ghost@acme.com"},
        headers=platform_admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


async def test_delete_tenant_admin_as_tenant_admin_returns_403(
    client: AsyncClient, acme: TenantCreationResult
) -> None:
    headers = bearer(acme.admin_user_id, Claims(tenant_id=acme.tenant_id, is_tenant_admin=True))
    response = await client.delete(
        f"/api/v1/tenants/{acme.tenant_id}/admin",
        params={"adminEmail": "a@acme.com"},
        headers=headers,
    )
    assert response.status_code == 403
