"""Application DTOs (no document-store dependency)."""

from app.application.dtos.claims import Caller, Claims, PrincipalRecord
from app.application.dtos.migration import (
    ClaimsRepairResult,
    MigrationResult,
    MigrationStatus,
    RoleMigrationDetail,
)
from app.application.dtos.operation_log import OperationLogEntry
from app.application.dtos.provisioning import ProvisioningAttempt, RecoveryResult
from app.application.dtos.role import BusinessUnitResult, RoleResult
from app.application.dtos.tenant import (
    BackfillResult,
    CreateTenantCommand,
    DataMigrationResult,
    TenantCreationResult,
    TenantResult,
)
from app.application.dtos.user import CreateUserCommand, UserCreationResult, UserProfile

__all__ = [
    "BackfillResult",
    "BusinessUnitResult",
    "Caller",
    "Claims",
    "ClaimsRepairResult",
    "CreateTenantCommand",
    "CreateUserCommand",
    "DataMigrationResult",
    "MigrationResult",
    "MigrationStatus",
    "OperationLogEntry",
    "PrincipalRecord",
    "ProvisioningAttempt",
    "RecoveryResult",
    "RoleMigrationDetail",
    "RoleResult",
    "TenantCreationResult",
    "TenantResult",
    "UserCreationResult",
    "UserProfile",
]
