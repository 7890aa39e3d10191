"""Application services: authorization gate, provisioning sagas, tenant admin, migrations."""

from app.application.services.authorization_service import AuthorizationService
from app.application.services.claims_service import ClaimsService
from app.application.services.email_reservation import EmailReservationService
from app.application.services.operation_log_service import OperationLogService
from app.application.services.permission_migration_service import (
    MigrationState,
    PermissionMigrationService,
)
from app.application.services.provisioning_recovery_service import ProvisioningRecoveryService
from app.application.services.provisioning_saga import (
    SagaFailedError,
    SagaRunner,
    SagaState,
    SagaStep,
)
from app.application.services.tenant_admin_service import TenantAdminService
from app.application.services.tenant_provisioning_service import TenantProvisioningService
from app.application.services.user_provisioning_service import UserProvisioningService

__all__ = [
    "AuthorizationService",
    "ClaimsService",
    "EmailReservationService",
    "MigrationState",
    "OperationLogService",
    "PermissionMigrationService",
    "ProvisioningRecoveryService",
    "SagaFailedError",
    "SagaRunner",
    "SagaState",
    "SagaStep",
    "TenantAdminService",
    "TenantProvisioningService",
    "UserProvisioningService",
]
