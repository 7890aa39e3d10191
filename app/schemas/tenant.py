"""Tenant API schemas."""

from datetime import datetime
from typing import Any

from pydantic import EmailStr, Field, SecretStr

from app.domain.enums import OperationKind, TenantPlan, TenantStatus
from app.schemas.base import CamelModel


class TenantCreateRequest(CamelModel):
    """Request body for creating a tenant and its first administrator."""

    company_name: str = Field(..., min_length=1, max_length=255)
    plan: TenantPlan = TenantPlan.STARTER
    admin_email: EmailStr
    admin_password: SecretStr = Field(..., description="Initial admin password; never returned")
    admin_name: str = Field(..., min_length=1, max_length=255)


class TenantCreateResponse(CamelModel):
    success: bool = True
    tenant_id: str
    admin_user_id: str
    roles_created: int
    business_units_created: int
    message: str


class TenantStatusUpdate(CamelModel):
    status: TenantStatus


class TenantPlanUpdate(CamelModel):
    plan: TenantPlan


class TenantResponse(CamelModel):
    """Tenant read-model as returned by status and plan updates."""

    id: str
    company_name: str
    plan: TenantPlan
    status: TenantStatus
    user_limit: int
    current_users: int
    created_at: datetime | None = None
    admin_uid: str | None = None
    admin_email: str | None = None
    admin_name: str | None = None


class OperationLogEntryResponse(CamelModel):
    id: str
    tenant_id: str
    operation: OperationKind
    performed_by: str
    performed_by_email: str | None = None
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict)


class OperationsLogResponse(CamelModel):
    logs: list[OperationLogEntryResponse]


class AdminPasswordResetRequest(CamelModel):
    new_password: SecretStr


class AdminPasswordResetResponse(CamelModel):
    success: bool = True
    message: str
    admin_email: str


class TenantAdminDeleteResponse(CamelModel):
    success: bool = True
    message: str
    user_id: str


class BackfillResponse(CamelModel):
    """Outcome of the tenant admin-info backfill."""

    success: bool = True
    total: int
    updated: int
    skipped: int
    errors: int
    details: list[dict[str, Any]] = Field(default_factory=list)
