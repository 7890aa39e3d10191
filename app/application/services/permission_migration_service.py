"""Permission migration engine for system roles.

System roles (employee, manager, admin) are template-driven: when the
stored permission list lacks any permission of the current template, the
list is overwritten with the template (not unioned) and the description
refreshed. Custom roles keep their own permission set; only strings outside
the canonical enum are rewritten through the legacy translation table.
Running twice in a row is a no-op the second time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.application.dtos.migration import MigrationResult, MigrationStatus, RoleMigrationDetail
from app.application.dtos.role import RoleResult
from app.application.interfaces.repositories import IRoleRepository, ITenantRepository
from app.core.tenant_context import TenantContext
from app.domain.enums import Permission
from app.domain.role_templates import (
    DEFAULT_ROLES,
    ROLE_TEMPLATE_VERSION,
    SYSTEM_ROLE_IDS,
    template_permission_values,
    translate_legacy_permissions,
)
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class MigrationState:
    """Process-level guard for the opportunistic startup run.

    Injected rather than global so tests can reset it between cases.
    """

    attempted: bool = False

    def reset(self) -> None:
        self.attempted = False


def system_template_id(role: RoleResult) -> str | None:
    """Template a role is bound to: templateId, or the document id for legacy roles."""
    if role.template_id in SYSTEM_ROLE_IDS:
        return role.template_id
    if role.id in SYSTEM_ROLE_IDS:
        return role.id
    return None


def missing_permissions(role: RoleResult, template_id: str) -> list[str]:
    """Template permissions absent from the role, after legacy translation."""
    present = set(translate_legacy_permissions(role.permissions))
    return [p for p in template_permission_values(template_id) if p not in present]


def _has_foreign_strings(role: RoleResult) -> bool:
    canonical = set(Permission.values())
    return any(p not in canonical for p in role.permissions)


def translated_custom_permissions(role: RoleResult) -> list[str]:
    """Canonical permissions of a custom role with its legacy strings translated."""
    return translate_legacy_permissions(role.permissions)


class PermissionMigrationService:
    def __init__(
        self,
        tenant_repo: ITenantRepository,
        role_repo: IRoleRepository,
        state: MigrationState,
    ) -> None:
        self.tenant_repo = tenant_repo
        self.role_repo = role_repo
        self.state = state

    async def _outdated_roles(
        self, ctx: TenantContext, errors: list[str]
    ) -> tuple[list[tuple[RoleResult, str | None, list[str]]], int]:
        """Return (outdated roles, number of roles examined).

        Custom roles appear with template None when they hold legacy strings.
        """
        outdated: list[tuple[RoleResult, str | None, list[str]]] = []
        examined = 0
        for tenant in await self.tenant_repo.list_all():
            try:
                roles = await self.role_repo.list_for_tenant(ctx, tenant.id)
            except Exception as exc:
                logger.exception("Could not read roles of tenant %s", tenant.id)
                errors.append(f"{tenant.id}: {exc}")
                continue
            examined += len(roles)
            for role in roles:
                template_id = system_template_id(role)
                if template_id is None:
                    if _has_foreign_strings(role):
                        present = set(role.permissions)
                        added = [p for p in translated_custom_permissions(role) if p not in present]
                        outdated.append((role, None, added))
                    continue
                missing = missing_permissions(role, template_id)
                if missing or _has_foreign_strings(role):
                    outdated.append((role, template_id, missing))
        return outdated, examined

    async def run(self, ctx: TenantContext) -> MigrationResult:
        """Bring every system role up to its template and translate custom roles. Always runs."""
        self.state.attempted = True
        errors: list[str] = []
        details: list[RoleMigrationDetail] = []
        outdated, examined = await self._outdated_roles(ctx, errors)
        total_added = 0
        for role, template_id, missing in outdated:
            updates: dict[str, Any]
            if template_id is None:
                updates = {
                    "permissions": translated_custom_permissions(role),
                    "updatedAt": utc_now(),
                }
            else:
                updates = {
                    "permissions": template_permission_values(template_id),
                    "description": DEFAULT_ROLES[template_id]["description"],
                    "templateId": template_id,
                    "templateVersion": ROLE_TEMPLATE_VERSION,
                    "updatedAt": utc_now(),
                }
            try:
                await self.role_repo.update(ctx, role.id, updates, role.tenant_id)
            except Exception as exc:
                logger.exception("Could not migrate role %s of tenant %s", role.id, role.tenant_id)
                errors.append(f"{role.tenant_id}/{role.id}: {exc}")
                continue
            total_added += len(missing)
            details.append(
                RoleMigrationDetail(
                    tenant_id=role.tenant_id,
                    role_id=role.id,
                    role_name=role.name,
                    permissions_added=missing,
                )
            )
        updated = len(details)
        message = (
            f"Updated {updated} roles ({total_added} permissions added)"
            if updated
            else "All roles are up to date"
        )
        logger.info("Permission migration: %s; %s errors", message, len(errors))
        return MigrationResult(
            success=not errors,
            roles_updated=updated,
            roles_skipped=examined - len(outdated),
            total_permissions_added=total_added,
            errors=errors,
            details=details,
            message=message,
        )

    async def run_on_startup(self) -> MigrationResult | None:
        """Run once per process; later calls return None until state.reset()."""
        if self.state.attempted:
            return None
        return await self.run(TenantContext.system())

    async def check_status(self, ctx: TenantContext) -> MigrationStatus:
        """Report outdated roles without writing."""
        errors: list[str] = []
        outdated, _examined = await self._outdated_roles(ctx, errors)
        return MigrationStatus(
            needs_migration=bool(outdated),
            outdated_roles=[
                RoleMigrationDetail(
                    tenant_id=role.tenant_id,
                    role_id=role.id,
                    role_name=role.name,
                    permissions_added=missing,
                )
                for role, _template_id, missing in outdated
            ],
            template_version=ROLE_TEMPLATE_VERSION,
        )
