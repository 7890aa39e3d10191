"""User API: thin routes delegating to UserProvisioningService and ClaimsService."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from app.api.v1.dependencies import (
    get_claims_service,
    get_current_caller,
    get_tenant_context,
    get_user_provisioning_service,
)
from app.application.dtos.claims import Caller
from app.application.dtos.user import CreateUserCommand
from app.application.services.claims_service import ClaimsService
from app.application.services.user_provisioning_service import UserProvisioningService
from app.core.limiter import limit_writes
from app.core.tenant_context import TenantContext
from app.schemas.user import (
    PasswordUpdateRequest,
    PasswordUpdateResponse,
    UserCreateRequest,
    UserCreateResponse,
    UserListResponse,
    UserResponse,
)

router = APIRouter()

Context = Annotated[TenantContext, Depends(get_tenant_context)]
UserService = Annotated[UserProvisioningService, Depends(get_user_provisioning_service)]


@router.post("", response_model=UserCreateResponse, status_code=201)
@limit_writes
async def create_user(request: Request, body: UserCreateRequest, ctx: Context, user_svc: UserService):
    """Create a user (principal + claims + profile) under the caller's tenant."""
    result = await user_svc.create_user(
        ctx,
        CreateUserCommand(
            email=str(body.email),
            password=body.password.get_secret_value(),
            name=body.name,
            role_id=body.role_id,
            tenant_id=body.tenant_id,
            business_unit_id=body.business_unit_id,
            designation=body.designation,
        ),
    )
    return UserCreateResponse(user_id=result.user_id, message=f"User {body.name} created successfully")


@router.get("", response_model=UserListResponse)
async def list_users(
    ctx: Context,
    user_svc: UserService,
    tenant_id: Annotated[str | None, Query(alias="tenantId")] = None,
):
    """Profiles of one tenant. Platform admins must pass tenantId."""
    users = await user_svc.list_users(ctx, tenant_id)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.put("/{user_id}/password", response_model=PasswordUpdateResponse)
@limit_writes
async def update_own_password(
    request: Request,
    user_id: str,
    body: PasswordUpdateRequest,
    caller: Annotated[Caller, Depends(get_current_caller)],
    ctx: Context,
    claims_svc: Annotated[ClaimsService, Depends(get_claims_service)],
):
    """Change the caller's own password (recent sign-in required)."""
    await claims_svc.update_own_password(caller, ctx, user_id, body.new_password.get_secret_value())
    return PasswordUpdateResponse(message="Password updated")
