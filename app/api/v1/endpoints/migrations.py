"""Migrations API: role permission migration, data backfill and provisioning recovery."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import (
    get_permission_migration_service,
    get_recovery_service,
    get_tenant_admin_service,
    require_platform_admin,
)
from app.application.services.permission_migration_service import PermissionMigrationService
from app.application.services.provisioning_recovery_service import ProvisioningRecoveryService
from app.application.services.tenant_admin_service import TenantAdminService
from app.core.limiter import limit_writes
from app.core.tenant_context import TenantContext
from app.schemas.migration import (
    DataMigrationResponse,
    MigrationResponse,
    MigrationStatusResponse,
    RecoveryResponse,
    RoleMigrationDetailResponse,
)

router = APIRouter()

PlatformAdmin = Annotated[TenantContext, Depends(require_platform_admin)]
MigrationService = Annotated[PermissionMigrationService, Depends(get_permission_migration_service)]


@router.post("/role-permissions", response_model=MigrationResponse)
@limit_writes
async def fix_role_permissions(request: Request, ctx: PlatformAdmin, migration_svc: MigrationService):
    """Bring every system role up to its template. Idempotent."""
    result = await migration_svc.run(ctx)
    return MigrationResponse(
        success=result.success,
        message=result.message,
        roles_updated=result.roles_updated,
        roles_skipped=result.roles_skipped,
        total_permissions_added=result.total_permissions_added,
        errors=result.errors,
        details=[RoleMigrationDetailResponse.model_validate(d) for d in result.details],
    )


@router.get("/role-permissions/status", response_model=MigrationStatusResponse)
async def check_migration_status(ctx: PlatformAdmin, migration_svc: MigrationService):
    status = await migration_svc.check_status(ctx)
    return MigrationStatusResponse(
        needs_migration=status.needs_migration,
        template_version=status.template_version,
        outdated_roles=[RoleMigrationDetailResponse.model_validate(d) for d in status.outdated_roles],
    )


@router.post("/provisioning-recovery", response_model=RecoveryResponse)
@limit_writes
async def recover_provisioning(
    request: Request,
    ctx: PlatformAdmin,
    recovery_svc: Annotated[ProvisioningRecoveryService, Depends(get_recovery_service)],
):
    """Replay compensation for abandoned or partially rolled-back provisioning attempts."""
    result = await recovery_svc.recover()
    return RecoveryResponse.model_validate(result)


@router.post("/existing-data", response_model=DataMigrationResponse)
@limit_writes
async def migrate_existing_data(
    request: Request,
    ctx: PlatformAdmin,
    admin_svc: Annotated[TenantAdminService, Depends(get_tenant_admin_service)],
):
    """Backfill isDeleted/status on user profiles and status on business units. Idempotent."""
    result = await admin_svc.migrate_existing_data(ctx)
    return DataMigrationResponse(
        success=not result.errors,
        users_fixed=result.users_fixed,
        business_units_fixed=result.business_units_fixed,
        errors=result.errors,
        details=result.details,
    )
