"""Migration and recovery API schemas."""

from typing import Any

from pydantic import Field

from app.schemas.base import CamelModel


class RoleMigrationDetailResponse(CamelModel):
    tenant_id: str
    role_id: str
    role_name: str
    permissions_added: list[str]


class MigrationResponse(CamelModel):
    success: bool
    message: str
    roles_updated: int
    roles_skipped: int
    total_permissions_added: int
    errors: list[str] = Field(default_factory=list)
    details: list[RoleMigrationDetailResponse] = Field(default_factory=list)


class MigrationStatusResponse(CamelModel):
    needs_migration: bool
    template_version: int
    outdated_roles: list[RoleMigrationDetailResponse] = Field(default_factory=list)


class RecoveryResponse(CamelModel):
    examined: int
    recovered: int
    completed: int = 0
    still_pending: int
    attempt_ids: list[str] = Field(default_factory=list)


class DataMigrationResponse(CamelModel):
    """Outcome of backfilling default status fields on older documents."""

    success: bool
    users_fixed: int
    business_units_fixed: int
    errors: int
    details: list[dict[str, Any]] = Field(default_factory=list)
