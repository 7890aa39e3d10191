"""Unit tests for the role permission migration engine."""

from app.application.dtos.role import RoleResult
from app.application.dtos.tenant import TenantCreationResult
from app.application.services.permission_migration_service import (
    MigrationState,
    PermissionMigrationService,
    missing_permissions,
    system_template_id,
)
from app.core.tenant_context import TenantContext
from app.domain.enums import Permission
from app.domain.role_templates import ROLE_TEMPLATE_VERSION, template_permission_values
from tests.fakes import FakeFirestore
from tests.helpers import role_id_by_name


def role(role_id: str, permissions: list[str], template_id: str | None = None) -> RoleResult:
    return RoleResult(
        id=role_id, tenant_id="t1", name=role_id, permissions=permissions, template_id=template_id
    )


def test_system_template_id_uses_template_or_legacy_id() -> None:
    assert system_template_id(role("role_x", [], template_id="manager")) == "manager"
    assert system_template_id(role("employee", [])) == "employee"
    assert system_template_id(role("role_custom", [])) is None


def test_missing_permissions_translates_legacy_strings() -> None:
    legacy = role("employee", ["submit_eod", "view_own_eod"])
    missing = missing_permissions(legacy, "employee")
    assert Permission.CAN_SUBMIT_OWN_EOD.value not in missing
    assert Permission.CAN_VIEW_OWN_REPORTS.value not in missing
    assert Permission.CAN_VIEW_LEADERBOARD.value in missing


async def test_fresh_tenant_needs_no_migration(
    migration_service: PermissionMigrationService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
) -> None:
    status = await migration_service.check_status(platform_ctx)
    assert status.needs_migration is False
    assert status.template_version == ROLE_TEMPLATE_VERSION

    result = await migration_service.run(platform_ctx)
    assert result.success is True
    assert result.roles_updated == 0
    assert result.roles_skipped == 3
    assert result.message == "All roles are up to date"


async def test_outdated_system_role_is_overwritten_with_template(
    migration_service: PermissionMigrationService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    employee = role_id_by_name(firestore, acme.tenant_id, "Employee")
    firestore.docs("roles")[employee]["permissions"] = ["submit_eod", "view_own_eod", "bogus"]
    firestore.docs("roles")[employee]["description"] = "old"

    status = await migration_service.check_status(platform_ctx)
    assert [r.role_id for r in status.outdated_roles] == [employee]

    result = await migration_service.run(platform_ctx)

    assert result.roles_updated == 1
    assert result.roles_skipped == 2
    assert result.details[0].role_id == employee
    stored = firestore.docs("roles")[employee]
    assert stored["permissions"] == template_permission_values("employee")
    assert stored["description"] == "Standard employee with basic access"
    assert stored["templateVersion"] == ROLE_TEMPLATE_VERSION
    assert stored["tenantId"] == acme.tenant_id


async def test_second_run_is_a_noop(
    migration_service: PermissionMigrationService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    manager = role_id_by_name(firestore, acme.tenant_id, "Manager")
    firestore.docs("roles")[manager]["permissions"] = []

    first = await migration_service.run(platform_ctx)
    second = await migration_service.run(platform_ctx)

    assert first.roles_updated == 1
    assert first.total_permissions_added == len(template_permission_values("manager"))
    assert second.roles_updated == 0
    assert second.total_permissions_added == 0


async def test_legacy_role_without_template_id_is_bound_by_id(
    migration_service: PermissionMigrationService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    firestore.docs("roles")["admin"] = {
        "id": "admin", "tenantId": acme.tenant_id, "name": "Admin", "permissions": ["manage_users"],
    }

    await migration_service.run(platform_ctx)

    stored = firestore.docs("roles")["admin"]
    assert stored["templateId"] == "admin"
    assert stored["permissions"] == template_permission_values("admin")


async def test_canonical_custom_role_is_left_alone(
    migration_service: PermissionMigrationService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    custom = {
        "id": "role_custom",
        "tenantId": acme.tenant_id,
        "name": "Auditor",
        "permissions": [Permission.CAN_VIEW_ALL_REPORTS.value],
    }
    firestore.docs("roles")["role_custom"] = dict(custom)

    result = await migration_service.run(platform_ctx)

    assert result.roles_updated == 0
    assert firestore.docs("roles")["role_custom"] == custom


async def test_custom_role_legacy_strings_are_translated(
    migration_service: PermissionMigrationService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    firestore.docs("roles")["role_custom"] = {
        "id": "role_custom",
        "tenantId": acme.tenant_id,
        "name": "Auditor",
        "permissions": [
            Permission.CAN_MANAGE_ROLES.value, "submit_eod", "view_all_eod", "bogus", "submit_eod",
        ],
    }

    status = await migration_service.check_status(platform_ctx)
    assert [r.role_id for r in status.outdated_roles] == ["role_custom"]

    result = await migration_service.run(platform_ctx)

    assert result.roles_updated == 1
    assert result.roles_skipped == 3
    stored = firestore.docs("roles")["role_custom"]
    assert stored["permissions"] == [
        Permission.CAN_MANAGE_ROLES.value,
        Permission.CAN_SUBMIT_OWN_EOD.value,
        Permission.CAN_VIEW_ALL_REPORTS.value,
    ]
    assert set(stored["permissions"]) <= set(Permission.values())
    # Custom roles are never bound to a system template.
    assert "templateId" not in stored
    assert (await migration_service.run(platform_ctx)).roles_updated == 0


async def test_startup_run_happens_once_per_state(
    migration_service: PermissionMigrationService,
    migration_state: MigrationState,
    acme: TenantCreationResult,
) -> None:
    assert await migration_service.run_on_startup() is not None
    assert migration_state.attempted is True
    assert await migration_service.run_on_startup() is None

    migration_state.reset()
    assert await migration_service.run_on_startup() is not None


async def test_unreadable_tenant_is_reported_not_fatal(
    migration_service: PermissionMigrationService,
    platform_ctx: TenantContext,
    acme: TenantCreationResult,
    firestore: FakeFirestore,
) -> None:
    firestore.fail("query:roles")

    result = await migration_service.run(platform_ctx)

    assert result.success is False
    assert len(result.errors) == 1
