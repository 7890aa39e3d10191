"""User API schemas."""

from datetime import datetime

from pydantic import EmailStr, Field, SecretStr

from app.schemas.base import CamelModel


class UserCreateRequest(CamelModel):
    """Request body for creating a user under a tenant.

    tenantId is required for platform admins and ignored-if-equal for
    tenant callers (a different tenant is rejected).
    """

    email: EmailStr
    password: SecretStr
    name: str = Field(..., min_length=1, max_length=255)
    role_id: str = Field(..., min_length=1)
    tenant_id: str | None = None
    business_unit_id: str | None = None
    designation: str | None = Field(default=None, max_length=255)


class UserCreateResponse(CamelModel):
    success: bool = True
    user_id: str
    message: str


class UserResponse(CamelModel):
    """User profile (no credential)."""

    id: str
    tenant_id: str
    name: str
    email: str
    role_id: str | None = None
    role_name: str | None = None
    business_unit_id: str | None = None
    business_unit_name: str | None = None
    designation: str | None = None
    status: str = "active"
    is_active: bool = True
    is_platform_admin: bool = False
    custom_claims_set: bool = False
    created_at: datetime | None = None


class UserListResponse(CamelModel):
    users: list[UserResponse]


class PasswordUpdateRequest(CamelModel):
    new_password: SecretStr


class PasswordUpdateResponse(CamelModel):
    success: bool = True
    message: str
