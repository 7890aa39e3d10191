"""Tests for the user API (tenant-bound callers and platform admins)."""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient

from app.application.dtos.claims import Claims
from app.application.dtos.tenant import TenantCreationResult
from tests.fakes import FakeFirestore, FakeIdentity
from tests.helpers import bearer, role_id_by_name


@pytest.fixture
def acme_admin_headers(acme: TenantCreationResult) -> dict[str, str]:
    return bearer(
        acme.admin_user_id,
        Claims(tenant_id=acme.tenant_id, is_tenant_admin=True),
        email="a@acme.com",
    )


def user_body(role_id: str, **overrides) -> dict:
    body = {"email": "e@acme.com", "password": "secret123", "name": "Eve", "roleId": role_id}
    body.update(overrides)
    return body


async def test_create_user_as_tenant_admin_returns_201(
    client: AsyncClient,
    acme: TenantCreationResult,
    acme_admin_headers: dict[str, str],
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    role_id = role_id_by_name(firestore, acme.tenant_id, "Employee")

    response = await client.post("/api/v1/users", json=user_body(role_id), headers=acme_admin_headers)

    assert response.status_code == 201
    user_id = response.json()["userId"]
    assert firestore.docs("users")[user_id]["tenantId"] == acme.tenant_id
    assert identity.claims_of(user_id) == Claims(tenant_id=acme.tenant_id)
    assert firestore.docs("tenants")[acme.tenant_id]["currentUsers"] == 2


async def test_create_user_for_another_tenant_returns_403(
    client: AsyncClient,
    acme: TenantCreationResult,
    acme_admin_headers: dict[str, str],
    firestore: FakeFirestore,
) -> None:
    role_id = role_id_by_name(firestore, acme.tenant_id, "Employee")
    body = user_body(role_id, tenantId="tenant_other")

    response = await client.post("/api/v1/users", json=body, headers=acme_admin_headers)

    assert response.status_code == 403
    assert firestore.docs("tenants")[acme.tenant_id]["currentUsers"] == 1


async def test_platform_admin_must_name_tenant(
    client: AsyncClient,
    acme: TenantCreationResult,
    platform_admin_headers: dict[str, str],
    firestore: FakeFirestore,
) -> None:
    role_id = role_id_by_name(firestore, acme.tenant_id, "Employee")

    missing = await client.post("/api/v1/users", json=user_body(role_id), headers=platform_admin_headers)
    named = await client.post(
        "/api/v1/users",
        json=user_body(role_id, tenantId=acme.tenant_id),
        headers=platform_admin_headers,
    )

    assert missing.status_code == 400
    assert missing.json()["details"] == {"field": "tenantId"}
    assert named.status_code == 201


async def test_create_user_with_unknown_role_returns_400(
    client: AsyncClient, acme: TenantCreationResult, acme_admin_headers: dict[str, str]
) -> None:
    response = await client.post(
        "/api/v1/users", json=user_body("role_missing"), headers=acme_admin_headers
    )
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "roleId"}


async def test_list_users_returns_own_tenant_only(
    client: AsyncClient,
    acme: TenantCreationResult,
    acme_admin_headers: dict[str, str],
) -> None:
    response = await client.get(
        "/api/v1/users", params={"tenantId": "tenant_other"}, headers=acme_admin_headers
    )

    assert response.status_code == 200
    users = response.json()["users"]
    assert [u["email"] for u in users] == ["a@acme.com"]
    assert users[0]["tenantId"] == acme.tenant_id
    assert users[0]["roleName"] == "Admin"
    assert "password" not in users[0]


async def test_list_users_as_platform_admin(
    client: AsyncClient, acme: TenantCreationResult, platform_admin_headers: dict[str, str]
) -> None:
    response = await client.get(
        "/api/v1/users", params={"tenantId": acme.tenant_id}, headers=platform_admin_headers
    )
    assert response.status_code == 200
    assert len(response.json()["users"]) == 1


async def test_update_own_password_after_recent_sign_in(
    client: AsyncClient, acme: TenantCreationResult, identity: FakeIdentity
) -> None:
    headers = bearer(
        acme.admin_user_id,
        Claims(tenant_id=acme.tenant_id, is_tenant_admin=True),
        auth_time=datetime.now(UTC),
    )

    response = await client.put(
        f"/api/v1/users/{acme.admin_user_id}/password",
        json={"newPassword": "n3w-secret"},
        headers=headers,
    )

    assert response.status_code == 200
    assert identity.accounts[acme.admin_user_id]["password"] == "n3w-secret"


async def test_update_own_password_with_stale_sign_in_returns_403(
    client: AsyncClient, acme: TenantCreationResult, identity: FakeIdentity
) -> None:
    headers = bearer(
        acme.admin_user_id,
        Claims(tenant_id=acme.tenant_id, is_tenant_admin=True),
        auth_time=datetime.now(UTC) - timedelta(hours=1),
    )

    response = await client.put(
        f"/api/v1/users/{acme.admin_user_id}/password",
        json={"newPassword": "n3w-secret"},
        headers=headers,
    )

    assert response.status_code == 403
    assert identity.accounts[acme.admin_user_id]["password"] == "secret123"


async def test_update_someone_elses_password_returns_403(
    client: AsyncClient, acme: TenantCreationResult, acme_admin_headers: dict[str, str]
) -> None:
    response = await client.put(
        "/api/v1/users/someone-else/password",
        json={"newPassword": "n3w-secret"},
        headers=acme_admin_headers,
    )
    assert response.status_code == 403
