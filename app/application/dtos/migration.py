"""DTOs for the permission migration engine and claims repair."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RoleMigrationDetail:
    tenant_id: str
    role_id: str
    role_name: str
    permissions_added: list[str]


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of one migration run. A second run right after the first updates nothing."""

    success: bool
    roles_updated: int = 0
    roles_skipped: int = 0
    total_permissions_added: int = 0
    errors: list[str] = field(default_factory=list)
    details: list[RoleMigrationDetail] = field(default_factory=list)
    message: str = ""


@dataclass(frozen=True)
class MigrationStatus:
    """Read-only report: which system roles lag their template."""

    needs_migration: bool
    outdated_roles: list[RoleMigrationDetail] = field(default_factory=list)
    template_version: int = 0


@dataclass(frozen=True)
class ClaimsRepairResult:
    """Outcome of re-deriving claims for every tenant user."""

    total: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    details: list[dict] = field(default_factory=list)
