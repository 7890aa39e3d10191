"""Claims API: platform-admin claim assignment and bulk repair."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import get_claims_service, require_platform_admin
from app.application.services.claims_service import ClaimsService
from app.core.limiter import limit_writes
from app.core.tenant_context import TenantContext
from app.schemas.claims import ClaimsRepairResponse, SetClaimsRequest, SetClaimsResponse

router = APIRouter()

PlatformAdmin = Annotated[TenantContext, Depends(require_platform_admin)]
Service = Annotated[ClaimsService, Depends(get_claims_service)]


@router.post("/users/{user_id}", response_model=SetClaimsResponse)
@limit_writes
async def set_user_claims(
    request: Request,
    user_id: str,
    body: SetClaimsRequest,
    ctx: PlatformAdmin,
    claims_svc: Service,
):
    claims = await claims_svc.set_user_claims(
        ctx,
        user_id,
        tenant_id=body.tenant_id,
        is_platform_admin=body.is_platform_admin,
        is_tenant_admin=body.is_tenant_admin,
    )
    return SetClaimsResponse(
        message=f"Custom claims set successfully for user {user_id}",
        tenant_id=claims.tenant_id,
        is_platform_admin=claims.is_platform_admin,
        is_tenant_admin=claims.is_tenant_admin,
    )


@router.post("/repair", response_model=ClaimsRepairResponse)
@limit_writes
async def fix_all_user_claims(request: Request, ctx: PlatformAdmin, claims_svc: Service):
    """Re-derive claims for every tenant user from their profile."""
    result = await claims_svc.fix_all_user_claims(ctx)
    return ClaimsRepairResponse(
        message="User claims migration completed",
        total=result.total,
        updated=result.updated,
        skipped=result.skipped,
        errors=result.errors,
        details=result.details,
    )
