"""DTOs for tenant use cases (no dependency on the document store)."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.enums import TenantPlan, TenantStatus


@dataclass(frozen=True)
class CreateTenantCommand:
    """Input of the tenant provisioning saga. The password never leaves the saga."""

    company_name: str
    plan: TenantPlan
    admin_email: str
    admin_password: str
    admin_name: str


@dataclass(frozen=True)
class TenantCreationResult:
    """Result of tenant creation (tenant + admin principal/profile + defaults)."""

    tenant_id: str
    admin_user_id: str
    roles_created: int
    business_units_created: int
    attempt_id: str | None = None


@dataclass(frozen=True)
class TenantResult:
    """Tenant read-model."""

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


@dataclass(frozen=True)
class BackfillResult:
    """Outcome of backfilling denormalized admin identity onto tenants."""

    total: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    details: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class DataMigrationResult:
    """Outcome of backfilling default status fields on profiles and business units."""

    users_fixed: int = 0
    business_units_fixed: int = 0
    errors: int = 0
    details: list[dict] = field(default_factory=list)
