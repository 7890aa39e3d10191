"""Platform-admin tenant management: status, plan, orphan cleanup, admin repair, data backfill.

Every method expects a TenantContext already verified as platform admin
(see AuthorizationService.require_platform_admin). Each completed
privileged operation appends exactly one operations-log entry.
"""

from __future__ import annotations

import logging

from app.application.dtos.operation_log import OperationLogEntry
from app.application.dtos.tenant import BackfillResult, DataMigrationResult, TenantResult
from app.application.dtos.user import UserProfile
from app.application.interfaces.repositories import (
    IBusinessUnitRepository,
    IRoleRepository,
    ITenantRepository,
    IUserRepository,
)
from app.application.interfaces.services import IClaimsDirectory, IDocumentStore
from app.application.services.operation_log_service import OperationLogService
from app.application.services.tenant_provisioning_service import validate_password
from app.core.tenant_context import TenantContext
from app.core.tenant_validation import is_valid_tenant_id_format
from app.domain.enums import OperationKind, TenantPlan, TenantStatus
from app.domain.exceptions import (
    PreconditionFailedException,
    ResourceNotFoundException,
    TenantNotFoundException,
    ValidationException,
)
from app.domain.role_templates import ADMIN_ROLE_NAME
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import normalize_email

logger = logging.getLogger(__name__)

_ADMIN_LIKE_ROLES = ("admin", "administrator", "owner")

# Fields older documents may lack, with the value a new document gets.
USER_DEFAULTS = {"isDeleted": False, "status": "active"}
BUSINESS_UNIT_DEFAULTS = {"status": "active"}

_STATUS_OPERATION: dict[TenantStatus, OperationKind] = {
    TenantStatus.SUSPENDED: OperationKind.SUSPEND,
    TenantStatus.ACTIVE: OperationKind.ACTIVATE,
}


def _require_tenant_id(tenant_id: str | None) -> str:
    if not tenant_id:
        raise ValidationException("tenantId is required", field="tenantId")
    if not is_valid_tenant_id_format(tenant_id):
        raise ValidationException("Invalid tenantId format", field="tenantId")
    return tenant_id


def pick_admin_candidate(users: list[UserProfile]) -> UserProfile | None:
    """Admin role first, then an admin-like role name, then the first user."""
    if not users:
        return None
    for user in users:
        if user.role_name == ADMIN_ROLE_NAME:
            return user
    for user in users:
        if (user.role_name or "").lower() in _ADMIN_LIKE_ROLES:
            return user
    return users[0]


class TenantAdminService:
    def __init__(
        self,
        tenant_repo: ITenantRepository,
        user_repo: IUserRepository,
        role_repo: IRoleRepository,
        unit_repo: IBusinessUnitRepository,
        claims: IClaimsDirectory,
        op_log: OperationLogService,
        store: IDocumentStore,
        min_password_length: int = 6,
    ) -> None:
        self.tenant_repo = tenant_repo
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.unit_repo = unit_repo
        self.claims = claims
        self.op_log = op_log
        self.store = store
        self.min_password_length = min_password_length

    async def update_status(
        self, ctx: TenantContext, tenant_id: str, status: TenantStatus
    ) -> TenantResult:
        """Soft-mutate the tenant's status and log suspend/activate/update."""
        tenant_id = _require_tenant_id(tenant_id)
        updated = await self.tenant_repo.update_tenant(
            tenant_id, {"status": status.value, "updatedAt": utc_now()}
        )
        if updated is None:
            raise TenantNotFoundException(tenant_id)
        await self.op_log.record(
            ctx,
            tenant_id,
            _STATUS_OPERATION.get(status, OperationKind.UPDATE),
            {"status": status.value},
        )
        logger.info("Tenant %s status set to %s by %s", tenant_id, status.value, ctx.caller_id)
        return updated

    async def update_plan(
        self, ctx: TenantContext, tenant_id: str, plan: TenantPlan
    ) -> TenantResult:
        """Change plan; userLimit follows the plan."""
        tenant_id = _require_tenant_id(tenant_id)
        updated = await self.tenant_repo.update_tenant(
            tenant_id,
            {"plan": plan.value, "userLimit": plan.user_limit, "updatedAt": utc_now()},
        )
        if updated is None:
            raise TenantNotFoundException(tenant_id)
        await self.op_log.record(
            ctx,
            tenant_id,
            OperationKind.UPDATE,
            {"plan": plan.value, "userLimit": plan.user_limit},
        )
        logger.info("Tenant %s plan set to %s by %s", tenant_id, plan.value, ctx.caller_id)
        return updated

    async def get_operations_log(
        self, tenant_id: str | None = None, limit: int | None = None
    ) -> list[OperationLogEntry]:
        if tenant_id is not None:
            _require_tenant_id(tenant_id)
        if limit is not None and limit < 1:
            raise ValidationException("limit must be positive", field="limit")
        return await self.op_log.list_entries(tenant_id, limit)

    async def delete_orphaned_tenant(self, ctx: TenantContext, tenant_id: str) -> None:
        """Hard-delete a tenant that has no users, with its roles and business units.

        Raises:
            PreconditionFailedException: The tenant still has at least one user
                (nothing is changed).
        """
        tenant_id = _require_tenant_id(tenant_id)
        if await self.user_repo.has_any(ctx, tenant_id):
            raise PreconditionFailedException(
                "Cannot delete tenant with existing users. "
                "This operation is only for orphaned tenants.",
                {"tenant_id": tenant_id},
            )
        roles = await self.role_repo.delete_all_for_tenant(ctx, tenant_id)
        units = await self.unit_repo.delete_all_for_tenant(ctx, tenant_id)
        await self.tenant_repo.delete(tenant_id)
        await self.op_log.record(
            ctx,
            tenant_id,
            OperationKind.DELETE,
            {
                "reason": "Orphaned tenant cleanup (no users)",
                "rolesDeleted": roles,
                "businessUnitsDeleted": units,
            },
        )
        logger.warning("Orphaned tenant %s deleted by %s", tenant_id, ctx.caller_id)

    async def backfill_admin_info(self, ctx: TenantContext) -> BackfillResult:
        """Populate adminEmail/adminUid/adminName on tenants that lack them."""
        tenants = await self.tenant_repo.list_all()
        updated = skipped = errors = 0
        details: list[dict] = []
        for tenant in tenants:
            if tenant.admin_email and tenant.admin_uid:
                skipped += 1
                continue
            try:
                users = await self.user_repo.list_for_tenant(ctx, tenant.id)
                admin = pick_admin_candidate(users)
                if admin is None:
                    errors += 1
                    details.append(
                        {"tenantId": tenant.id, "error": f"No users found for tenant {tenant.company_name}"}
                    )
                    continue
                await self.tenant_repo.update_tenant(
                    tenant.id,
                    {"adminEmail": admin.email, "adminUid": admin.id, "adminName": admin.name},
                )
                updated += 1
                details.append({"tenantId": tenant.id, "adminUid": admin.id})
            except Exception as exc:
                logger.exception("Backfill failed for tenant %s", tenant.id)
                errors += 1
                details.append({"tenantId": tenant.id, "error": str(exc)})
        logger.info(
            "Admin backfill: %s tenants, %s updated, %s skipped, %s errors",
            len(tenants),
            updated,
            skipped,
            errors,
        )
        return BackfillResult(
            total=len(tenants), updated=updated, skipped=skipped, errors=errors, details=details
        )

    async def reset_admin_password(
        self, ctx: TenantContext, tenant_id: str, new_password: str
    ) -> str:
        """Set a new password on the tenant administrator; return the admin email.

        Raises:
            ValidationException: Bad tenant id or password.
            TenantNotFoundException: Unknown tenant.
            PreconditionFailedException: Tenant has no admin identity recorded.
            ResourceNotFoundException: The admin principal no longer exists.
        """
        tenant_id = _require_tenant_id(tenant_id)
        validate_password(new_password, self.min_password_length)
        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFoundException(tenant_id)
        if not tenant.admin_email:
            raise PreconditionFailedException(
                "Tenant admin email not found. Run the admin backfill first.",
                {"tenant_id": tenant_id},
            )
        principal = await self.claims.get_principal_by_email(tenant.admin_email)
        if principal is None:
            raise ResourceNotFoundException("principal", tenant.admin_email)
        await self.claims.update_password(principal.uid, new_password)
        await self.op_log.record(
            ctx,
            tenant_id,
            OperationKind.UPDATE,
            {"action": "password_reset", "adminEmail": tenant.admin_email},
        )
        logger.info("Admin password reset for tenant %s by %s", tenant_id, ctx.caller_id)
        return tenant.admin_email

    async def delete_tenant_admin(
        self, ctx: TenantContext, tenant_id: str, admin_email: str
    ) -> str:
        """Delete a tenant user's principal and profile by email; return the user id.

        The tenant's denormalized admin fields are cleared when they name this
        user, and currentUsers drops with the profile.

        Raises:
            ValidationException: Bad tenant id or missing email.
            TenantNotFoundException: Unknown tenant.
            ResourceNotFoundException: No profile with that email in the tenant.
        """
        tenant_id = _require_tenant_id(tenant_id)
        if not admin_email:
            raise ValidationException("adminEmail is required", field="adminEmail")
        email = normalize_email(admin_email)
        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFoundException(tenant_id)
        profile = await self.user_repo.get_by_email(ctx, email, tenant_id)
        if profile is None:
            raise ResourceNotFoundException("user", f"{email} in tenant {tenant_id}")

        if not await self.claims.delete_principal(profile.id):
            logger.warning("Principal %s was already gone", profile.id)
        await self.store.commit(
            [
                self.user_repo.delete_write(ctx, profile.id, tenant_id),
                self.tenant_repo.increment_users_write(tenant_id, -1),
            ]
        )
        if normalize_email(tenant.admin_email or "") == email:
            await self.tenant_repo.update_tenant(
                tenant_id,
                {"adminEmail": None, "adminUid": None, "adminName": None, "updatedAt": utc_now()},
            )
        await self.op_log.record(
            ctx,
            tenant_id,
            OperationKind.DELETE,
            {"action": "delete_admin", "adminEmail": email, "userId": profile.id},
        )
        logger.warning(
            "User %s (%s) deleted from tenant %s by %s", profile.id, email, tenant_id, ctx.caller_id
        )
        return profile.id

    async def migrate_existing_data(self, ctx: TenantContext) -> DataMigrationResult:
        """Backfill isDeleted/status on profiles and status on business units.

        A tenant whose documents cannot be read or written is counted as an
        error; the others still run. Safe to re-run.
        """
        users_fixed = units_fixed = errors = 0
        details: list[dict] = []
        for tenant in await self.tenant_repo.list_all():
            try:
                filled = await self.user_repo.fill_missing_defaults(ctx, USER_DEFAULTS, tenant.id)
                users_fixed += len(filled)
                details.extend(
                    {"type": "user", "tenantId": tenant.id, "id": doc_id, "updates": fields}
                    for doc_id, fields in filled.items()
                )
                filled = await self.unit_repo.fill_missing_defaults(
                    ctx, BUSINESS_UNIT_DEFAULTS, tenant.id
                )
                units_fixed += len(filled)
                details.extend(
                    {"type": "businessUnit", "tenantId": tenant.id, "id": doc_id, "updates": fields}
                    for doc_id, fields in filled.items()
                )
            except Exception as exc:
                logger.exception("Data migration failed for tenant %s", tenant.id)
                errors += 1
                details.append({"tenantId": tenant.id, "error": str(exc)})
        logger.info(
            "Data migration: %s users and %s business units fixed, %s errors",
            users_fixed,
            units_fixed,
            errors,
        )
        return DataMigrationResult(
            users_fixed=users_fixed,
            business_units_fixed=units_fixed,
            errors=errors,
            details=details,
        )
