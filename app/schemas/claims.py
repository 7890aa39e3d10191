"""Claims API schemas."""

from typing import Any

from pydantic import Field

from app.schemas.base import CamelModel


class SetClaimsRequest(CamelModel):
    """Claims bag to assign. Omitted flags are false; omitted tenantId is null."""

    tenant_id: str | None = None
    is_platform_admin: bool = False
    is_tenant_admin: bool = False


class SetClaimsResponse(CamelModel):
    success: bool = True
    message: str
    tenant_id: str | None = None
    is_platform_admin: bool
    is_tenant_admin: bool


class ClaimsRepairResponse(CamelModel):
    success: bool = True
    message: str
    total: int
    updated: int
    skipped: int
    errors: int
    details: list[dict[str, Any]] = Field(default_factory=list)
