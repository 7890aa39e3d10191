"""Unit tests for TenantAdminService (status, plan, orphan cleanup, admin repair, data backfill)."""

import pytest

from app.application.dtos.tenant import TenantCreationResult
from app.application.dtos.user import UserProfile
from app.application.services.tenant_admin_service import TenantAdminService, pick_admin_candidate
from app.core.tenant_context import TenantContext
from app.domain.enums import OperationKind, TenantPlan, TenantStatus
from app.domain.exceptions import (
    PreconditionFailedException,
    ResourceNotFoundException,
    TenantNotFoundException,
    ValidationException,
)
from tests.fakes import FakeFirestore, FakeIdentity
from tests.helpers import tenant_docs


def log_entries(firestore: FakeFirestore, tenant_id: str) -> list[dict]:
    return tenant_docs(firestore, "tenantOperationsLog", tenant_id)


def profile(user_id: str, role_name: str | None) -> UserProfile:
    return UserProfile(
        id=user_id, tenant_id="t1", name=user_id, email=f"{user_id}@acme.com", role_name=role_name
    )


async def test_update_plan_sets_user_limit_and_logs_once(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    tenant = await admin_service.update_plan(platform_ctx, acme.tenant_id, TenantPlan.PROFESSIONAL)

    assert tenant.plan is TenantPlan.PROFESSIONAL
    assert tenant.user_limit == 50
    stored = firestore.docs("tenants")[acme.tenant_id]
    assert stored["plan"] == "Professional"
    assert stored["userLimit"] == 50
    updates = [e for e in log_entries(firestore, acme.tenant_id) if e["operation"] == "update"]
    assert len(updates) == 1
    assert updates[0]["details"] == {"plan": "Professional", "userLimit": 50}
    assert updates[0]["performedByEmail"] == platform_ctx.caller_email


@pytest.mark.parametrize(
    "status, operation",
    [
        (TenantStatus.SUSPENDED, "suspend"),
        (TenantStatus.ACTIVE, "activate"),
        (TenantStatus.INACTIVE, "update"),
    ],
)
async def test_update_status_logs_matching_operation(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
    status: TenantStatus,
    operation: str,
) -> None:
    tenant = await admin_service.update_status(platform_ctx, acme.tenant_id, status)

    assert tenant.status is status
    last = [e for e in log_entries(firestore, acme.tenant_id) if e["operation"] != "create"]
    assert [e["operation"] for e in last] == [operation]
    assert last[0]["details"] == {"status": status.value}


async def test_update_unknown_tenant_is_not_found(
    admin_service: TenantAdminService, platform_ctx: TenantContext, firestore: FakeFirestore
) -> None:
    with pytest.raises(TenantNotFoundException):
        await admin_service.update_status(platform_ctx, "tenant_missing", TenantStatus.SUSPENDED)
    assert firestore.docs("tenantOperationsLog") == {}


async def test_update_with_malformed_tenant_id_is_invalid(
    admin_service: TenantAdminService, platform_ctx: TenantContext
) -> None:
    with pytest.raises(ValidationException):
        await admin_service.update_plan(platform_ctx, "a/b", TenantPlan.ENTERPRISE)


async def test_orphan_delete_refuses_tenant_with_users(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    with pytest.raises(PreconditionFailedException):
        await admin_service.delete_orphaned_tenant(platform_ctx, acme.tenant_id)

    assert acme.tenant_id in firestore.docs("tenants")
    assert len(tenant_docs(firestore, "roles", acme.tenant_id)) == 3
    assert [e["operation"] for e in log_entries(firestore, acme.tenant_id)] == ["create"]


async def test_orphan_delete_removes_tenant_roles_and_units(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    firestore.data["users"] = {}

    await admin_service.delete_orphaned_tenant(platform_ctx, acme.tenant_id)

    assert firestore.docs("tenants") == {}
    assert tenant_docs(firestore, "roles", acme.tenant_id) == []
    assert tenant_docs(firestore, "businessUnits", acme.tenant_id) == []
    delete = next(e for e in log_entries(firestore, acme.tenant_id) if e["operation"] == "delete")
    assert delete["details"]["rolesDeleted"] == 3
    assert delete["details"]["businessUnitsDeleted"] == 5


async def test_backfill_populates_missing_admin_info(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    firestore.data["tenants"]["tenant_legacy"] = {"companyName": "Legacy", "plan": "Starter"}
    firestore.data["tenants"]["tenant_empty"] = {"companyName": "Empty", "plan": "Starter"}
    firestore.data["users"]["u_emp"] = {
        "tenantId": "tenant_legacy", "name": "Emp", "email": "emp@legacy.com", "roleName": "Employee",
    }
    firestore.data["users"]["u_owner"] = {
        "tenantId": "tenant_legacy", "name": "Olga", "email": "olga@legacy.com", "roleName": "Owner",
    }

    result = await admin_service.backfill_admin_info(platform_ctx)

    assert (result.total, result.updated, result.skipped, result.errors) == (3, 1, 1, 1)
    legacy = firestore.docs("tenants")["tenant_legacy"]
    assert legacy["adminUid"] == "u_owner"
    assert legacy["adminEmail"] == "olga@legacy.com"
    assert legacy["adminName"] == "Olga"


def test_pick_admin_candidate_prefers_admin_role() -> None:
    users = [profile("u1", "Employee"), profile("u2", "administrator"), profile("u3", "Admin")]
    assert pick_admin_candidate(users).id == "u3"
    assert pick_admin_candidate(users[:2]).id == "u2"
    assert pick_admin_candidate(users[:1]).id == "u1"
    assert pick_admin_candidate([]) is None


async def test_reset_admin_password(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    email = await admin_service.reset_admin_password(platform_ctx, acme.tenant_id, "n3w-pass")

    assert email == "a@acme.com"
    assert identity.accounts[acme.admin_user_id]["password"] == "n3w-pass"
    reset = next(e for e in log_entries(firestore, acme.tenant_id) if e["operation"] == "update")
    assert reset["details"] == {"action": "password_reset", "adminEmail": "a@acme.com"}


async def test_reset_admin_password_validates_length(
    admin_service: TenantAdminService, platform_ctx: TenantContext, acme: TenantCreationResult
) -> None:
    with pytest.raises(ValidationException):
        await admin_service.reset_admin_password(platform_ctx, acme.tenant_id, "abc")


async def test_reset_admin_password_needs_admin_email(
    admin_service: TenantAdminService, platform_ctx: TenantContext, firestore: FakeFirestore
) -> None:
    firestore.data["tenants"] = {"tenant_old": {"companyName": "Old", "plan": "Starter"}}
    with pytest.raises(PreconditionFailedException):
        await admin_service.reset_admin_password(platform_ctx, "tenant_old", "n3w-pass")


async def test_reset_admin_password_missing_principal(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    identity: FakeIdentity,
) -> None:
    identity.accounts.clear()
    with pytest.raises(ResourceNotFoundException):
        await admin_service.reset_admin_password(platform_ctx, acme.tenant_id, "n3w-pass")


async def test_operations_log_is_newest_first_and_filterable(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
) -> None:
    await admin_service.update_status(platform_ctx, acme.tenant_id, TenantStatus.SUSPENDED)
    await admin_service.update_status(platform_ctx, acme.tenant_id, TenantStatus.ACTIVE)

    entries = await admin_service.get_operations_log(acme.tenant_id)
    assert [e.operation for e in entries] == [
        OperationKind.ACTIVATE,
        OperationKind.SUSPEND,
        OperationKind.CREATE,
    ]
    assert len(await admin_service.get_operations_log(limit=1)) == 1
    assert await admin_service.get_operations_log("tenant_other") == []


async def test_delete_tenant_admin_removes_principal_profile_and_admin_fields(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    user_id = await admin_service.delete_tenant_admin(platform_ctx, acme.tenant_id, "A@Acme.com")

    assert user_id == acme.admin_user_id
    assert identity.accounts == {}
    assert acme.admin_user_id not in firestore.docs("users")
    tenant = firestore.docs("tenants")[acme.tenant_id]
    assert tenant["currentUsers"] == 0
    assert tenant["adminEmail"] is None
    assert tenant["adminUid"] is None
    delete = next(e for e in log_entries(firestore, acme.tenant_id) if e["operation"] == "delete")
    assert delete["details"]["adminEmail"] == "a@acme.com"

    # With no users left the tenant is now an orphan.
    await admin_service.delete_orphaned_tenant(platform_ctx, acme.tenant_id)
    assert acme.tenant_id not in firestore.docs("tenants")


async def test_delete_tenant_admin_with_missing_principal_still_removes_profile(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    identity.accounts.clear()

    await admin_service.delete_tenant_admin(platform_ctx, acme.tenant_id, "a@acme.com")

    assert acme.admin_user_id not in firestore.docs("users")


async def test_delete_tenant_admin_unknown_email_is_not_found(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    identity: FakeIdentity,
) -> None:
    with pytest.raises(ResourceNotFoundException):
        await admin_service.delete_tenant_admin(platform_ctx, acme.tenant_id, "nobody@acme.com")
    with pytest.raises(TenantNotFoundException):
        await admin_service.delete_tenant_admin(platform_ctx, "tenant_missing", "a@acme.com")
    with pytest.raises(ValidationException):
        await admin_service.delete_tenant_admin(platform_ctx, acme.tenant_id, "")
    assert acme.admin_user_id in identity.accounts


async def test_migrate_existing_data_fills_only_missing_fields(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    firestore.data["users"]["u_old"] = {
        "id": "u_old", "tenantId": acme.tenant_id, "email": "old@acme.com", "status": "suspended",
    }
    unit_id, unit = next(
        (k, d) for k, d in firestore.docs("businessUnits").items() if d["tenantId"] == acme.tenant_id
    )
    unit.pop("status")

    result = await admin_service.migrate_existing_data(platform_ctx)

    assert (result.users_fixed, result.business_units_fixed, result.errors) == (1, 1, 0)
    old = firestore.docs("users")["u_old"]
    assert old["isDeleted"] is False
    assert old["status"] == "suspended"
    assert firestore.docs("businessUnits")[unit_id]["status"] == "active"
    detail = {"type": "user", "tenantId": acme.tenant_id, "id": "u_old", "updates": ["isDeleted"]}
    assert detail in result.details

    again = await admin_service.migrate_existing_data(platform_ctx)
    assert (again.users_fixed, again.business_units_fixed) == (0, 0)


async def test_migrate_existing_data_reports_unreadable_tenant(
    admin_service: TenantAdminService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    firestore.fail("query:users")

    result = await admin_service.migrate_existing_data(platform_ctx)

    assert result.errors == 1
    assert result.details[0]["tenantId"] == acme.tenant_id
