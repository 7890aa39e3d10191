"""Tenant API: thin routes delegating to the provisioning saga and TenantAdminService.

Every route here is platform-admin-only.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from app.api.v1.dependencies import (
    get_tenant_admin_service,
    get_tenant_provisioning_service,
    require_platform_admin,
)
from app.application.dtos.tenant import CreateTenantCommand
from app.application.services.tenant_admin_service import TenantAdminService
from app.application.services.tenant_provisioning_service import TenantProvisioningService
from app.core.limiter import limit_create_tenant, limit_writes
from app.core.tenant_context import TenantContext
from app.schemas.tenant import (
    AdminPasswordResetRequest,
    AdminPasswordResetResponse,
    BackfillResponse,
    OperationLogEntryResponse,
    OperationsLogResponse,
    TenantAdminDeleteResponse,
    TenantCreateRequest,
    TenantCreateResponse,
    TenantPlanUpdate,
    TenantResponse,
    TenantStatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

PlatformAdmin = Annotated[TenantContext, Depends(require_platform_admin)]
AdminService = Annotated[TenantAdminService, Depends(get_tenant_admin_service)]


@router.post("", response_model=TenantCreateResponse, status_code=201)
@limit_create_tenant
async def create_tenant(
    request: Request,
    body: TenantCreateRequest,
    ctx: PlatformAdmin,
    tenant_svc: Annotated[TenantProvisioningService, Depends(get_tenant_provisioning_service)],
):
    """Create a tenant with default roles, business units and its first administrator."""
    result = await tenant_svc.create_tenant(
        ctx,
        CreateTenantCommand(
            company_name=body.company_name,
            plan=body.plan,
            admin_email=str(body.admin_email),
            admin_password=body.admin_password.get_secret_value(),
            admin_name=body.admin_name,
        ),
    )
    return TenantCreateResponse(
        tenant_id=result.tenant_id,
        admin_user_id=result.admin_user_id,
        roles_created=result.roles_created,
        business_units_created=result.business_units_created,
        message=f"Tenant {body.company_name} created successfully",
    )


@router.get("/operations-log", response_model=OperationsLogResponse)
async def get_operations_log(
    ctx: PlatformAdmin,
    admin_svc: AdminService,
    tenant_id: Annotated[str | None, Query(alias="tenantId")] = None,
    limit: Annotated[int | None, Query(ge=1)] = None,
):
    """Newest-first operations log, optionally filtered by tenant."""
    entries = await admin_svc.get_operations_log(tenant_id, limit)
    return OperationsLogResponse(
        logs=[OperationLogEntryResponse.model_validate(e) for e in entries]
    )


@router.post("/backfill-admin-info", response_model=BackfillResponse)
@limit_writes
async def backfill_admin_info(request: Request, ctx: PlatformAdmin, admin_svc: AdminService):
    """Populate adminEmail/adminUid/adminName on tenants created before they were stored."""
    result = await admin_svc.backfill_admin_info(ctx)
    return BackfillResponse(
        total=result.total,
        updated=result.updated,
        skipped=result.skipped,
        errors=result.errors,
        details=result.details,
    )


@router.patch("/{tenant_id}/status", response_model=TenantResponse)
@limit_writes
async def update_tenant_status(
    request: Request,
    tenant_id: str,
    body: TenantStatusUpdate,
    ctx: PlatformAdmin,
    admin_svc: AdminService,
):
    tenant = await admin_svc.update_status(ctx, tenant_id, body.status)
    return TenantResponse.model_validate(tenant)


@router.patch("/{tenant_id}/plan", response_model=TenantResponse)
@limit_writes
async def update_tenant_plan(
    request: Request,
    tenant_id: str,
    body: TenantPlanUpdate,
    ctx: PlatformAdmin,
    admin_svc: AdminService,
):
    """Change the plan; the user ceiling follows the plan."""
    tenant = await admin_svc.update_plan(ctx, tenant_id, body.plan)
    return TenantResponse.model_validate(tenant)


@router.delete("/{tenant_id}/orphan", status_code=204)
@limit_writes
async def delete_orphaned_tenant(
    request: Request,
    tenant_id: str,
    ctx: PlatformAdmin,
    admin_svc: AdminService,
) -> None:
    """Hard-delete a tenant with no users (412 if it has any)."""
    await admin_svc.delete_orphaned_tenant(ctx, tenant_id)


@router.post("/{tenant_id}/admin-password", response_model=AdminPasswordResetResponse)
@limit_writes
async def reset_admin_password(
    request: Request,
    tenant_id: str,
    body: AdminPasswordResetRequest,
    ctx: PlatformAdmin,
    admin_svc: AdminService,
):
    admin_email = await admin_svc.reset_admin_password(
        ctx, tenant_id, body.new_password.get_secret_value()
    )
    return AdminPasswordResetResponse(
        message=f"Password reset for tenant admin {admin_email}",
        admin_email=admin_email,
    )


@router.delete("/{tenant_id}/admin", response_model=TenantAdminDeleteResponse)
@limit_writes
async def delete_tenant_admin(
    request: Request,
    tenant_id: str,
    admin_email: Annotated[str, Query(alias="adminEmail", min_length=1)],
    ctx: PlatformAdmin,
    admin_svc: AdminService,
):
    """Delete a tenant user's principal and profile, found by email (404 if absent)."""
    user_id = await admin_svc.delete_tenant_admin(ctx, tenant_id, admin_email)
    return TenantAdminDeleteResponse(
        message=f"Deleted {admin_email} from tenant {tenant_id}",
        user_id=user_id,
    )
