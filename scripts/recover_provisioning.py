"""Replay compensation for abandoned or partially rolled-back provisioning attempts.

Usage:
    uv run python -m scripts.recover_provisioning
Meant for a scheduler (cron / Cloud Scheduler). Requires Firebase credentials
(FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH).
"""

import asyncio
import sys

from app.application.services.email_reservation import EmailReservationService
from app.application.services.operation_log_service import OperationLogService
from app.application.services.provisioning_recovery_service import ProvisioningRecoveryService
from app.application.services.provisioning_saga import SagaRunner
from app.application.services.tenant_provisioning_service import TenantProvisioningService
from app.application.services.user_provisioning_service import UserProvisioningService
from app.core.config import get_settings
from app.domain.enums import SagaKind
from app.infrastructure.firebase.claims_directory import FirebaseClaimsDirectory
from app.infrastructure.firebase.client import (
    close_firebase,
    get_firestore_client,
    get_identity_client,
    init_firebase,
)
from app.infrastructure.firebase.repositories import (
    FirestoreBusinessUnitRepository,
    FirestoreEmailIndexRepository,
    FirestoreOperationLogRepository,
    FirestoreProvisioningAttemptRepository,
    FirestoreRoleRepository,
    FirestoreTenantRepository,
    FirestoreUserRepository,
)
from app.infrastructure.firebase.tenant_store import TenantScopedStore
from app.shared.telemetry.logging import setup_logging


async def main() -> None:
    """Run one recovery pass and print its outcome."""
    setup_logging()
    settings = get_settings()
    if not init_firebase():
        print("Firebase is not configured", file=sys.stderr)
        sys.exit(1)
    try:
        store = TenantScopedStore(get_firestore_client(), batch_limit=settings.batch_write_limit)
        claims = FirebaseClaimsDirectory(get_identity_client())
        attempts = FirestoreProvisioningAttemptRepository(store)
        runner = SagaRunner(attempts, step_timeout=settings.saga_step_timeout_seconds)
        tenant_repo = FirestoreTenantRepository(store)
        user_repo = FirestoreUserRepository(store)
        role_repo = FirestoreRoleRepository(store)
        unit_repo = FirestoreBusinessUnitRepository(store)
        emails = EmailReservationService(FirestoreEmailIndexRepository(store), claims)
        op_log = OperationLogService(FirestoreOperationLogRepository(store))

        tenant_svc = TenantProvisioningService(
            claims, store, tenant_repo, user_repo, role_repo, unit_repo, emails, op_log, runner
        )
        user_svc = UserProvisioningService(
            claims, store, tenant_repo, user_repo, role_repo, unit_repo, emails, runner
        )
        recovery = ProvisioningRecoveryService(
            attempts,
            runner,
            {SagaKind.TENANT: tenant_svc.compensate, SagaKind.USER: user_svc.compensate},
            stale_after_seconds=settings.saga_stale_after_seconds,
        )
        result = await recovery.recover()
    finally:
        await close_firebase()

    print(
        f"Examined {result.examined} attempt(s): "
        f"{result.recovered} rolled back, {result.completed} completed, "
        f"{result.still_pending} still pending"
    )
    if result.still_pending:
        sys.exit(2)


if __name__ == "__main__":
    asyncio.run(main())
