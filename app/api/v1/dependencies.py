"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the backing clients, repositories and
application services. Everything is built from infrastructure
implementations here; routes depend only on these dependencies.

The Firestore and Identity Toolkit clients are process-wide (initialized in
the lifespan); routes that need them answer 503 until credentials are
configured. Tests override get_firestore / get_identity with fakes.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.application.dtos.claims import Caller
from app.application.services.authorization_service import AuthorizationService
from app.application.services.claims_service import ClaimsService
from app.application.services.email_reservation import EmailReservationService
from app.application.services.operation_log_service import OperationLogService
from app.application.services.permission_migration_service import (
    MigrationState,
    PermissionMigrationService,
)
from app.application.services.provisioning_recovery_service import ProvisioningRecoveryService
from app.application.services.provisioning_saga import SagaRunner
from app.application.services.tenant_admin_service import TenantAdminService
from app.application.services.tenant_provisioning_service import TenantProvisioningService
from app.application.services.user_provisioning_service import UserProvisioningService
from app.core.config import get_settings
from app.core.tenant_context import TenantContext
from app.domain.enums import SagaKind
from app.domain.exceptions import AuthenticationRequiredException
from app.infrastructure.firebase._identity_client import IdentityToolkitRESTClient
from app.infrastructure.firebase._rest_client import FirestoreRESTClient
from app.infrastructure.firebase.claims_directory import FirebaseClaimsDirectory
from app.infrastructure.firebase.client import get_firestore_client, get_identity_client
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
from app.infrastructure.security.firebase_tokens import verify_firebase_id_token
from app.infrastructure.security.jwt import verify_token

_http_bearer = HTTPBearer(auto_error=False)


# ---- Backing clients ----


def get_firestore() -> FirestoreRESTClient:
    """Firestore client; 503 when Firebase is not configured."""
    client = get_firestore_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Firestore is not configured")
    return client


def get_identity() -> IdentityToolkitRESTClient:
    """Identity Toolkit client; 503 when Firebase is not configured."""
    client = get_identity_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Firebase Auth is not configured")
    return client


def get_store(
    client: Annotated[FirestoreRESTClient, Depends(get_firestore)],
) -> TenantScopedStore:
    return TenantScopedStore(client, batch_limit=get_settings().batch_write_limit)


def get_claims_directory(
    client: Annotated[IdentityToolkitRESTClient, Depends(get_identity)],
) -> FirebaseClaimsDirectory:
    return FirebaseClaimsDirectory(client)


# ---- Repositories ----


def get_tenant_repo(
    store: Annotated[TenantScopedStore, Depends(get_store)],
) -> FirestoreTenantRepository:
    return FirestoreTenantRepository(store)


def get_user_repo(
    store: Annotated[TenantScopedStore, Depends(get_store)],
) -> FirestoreUserRepository:
    return FirestoreUserRepository(store)


def get_role_repo(
    store: Annotated[TenantScopedStore, Depends(get_store)],
) -> FirestoreRoleRepository:
    return FirestoreRoleRepository(store)


def get_business_unit_repo(
    store: Annotated[TenantScopedStore, Depends(get_store)],
) -> FirestoreBusinessUnitRepository:
    return FirestoreBusinessUnitRepository(store)


def get_saga_runner(
    store: Annotated[TenantScopedStore, Depends(get_store)],
) -> SagaRunner:
    return SagaRunner(
        FirestoreProvisioningAttemptRepository(store),
        step_timeout=get_settings().saga_step_timeout_seconds,
    )


def get_email_reservation(
    store: Annotated[TenantScopedStore, Depends(get_store)],
    claims: Annotated[FirebaseClaimsDirectory, Depends(get_claims_directory)],
) -> EmailReservationService:
    return EmailReservationService(FirestoreEmailIndexRepository(store), claims)


def get_operation_log_service(
    store: Annotated[TenantScopedStore, Depends(get_store)],
) -> OperationLogService:
    settings = get_settings()
    return OperationLogService(
        FirestoreOperationLogRepository(store),
        default_limit=settings.operations_log_default_limit,
        max_limit=settings.operations_log_max_limit,
    )


# ---- Caller identity and authorization ----


def get_authorization_service(
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
) -> AuthorizationService:
    return AuthorizationService(
        user_repo, reauth_max_age_seconds=get_settings().reauth_max_age_seconds
    )


async def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> Caller:
    """Verified caller from the bearer token; 401 if missing or invalid."""
    if not credentials:
        raise AuthenticationRequiredException()
    settings = get_settings()
    try:
        if settings.auth_token_mode == "local":
            return verify_token(credentials.credentials)
        project_id = settings.firebase_project_id
        firestore = get_firestore_client()
        if project_id is None and firestore is not None:
            project_id = firestore.project_id
        return await verify_firebase_id_token(credentials.credentials, project_id)
    except ValueError:
        raise AuthenticationRequiredException("Invalid or expired token") from None


async def get_tenant_context(
    caller: Annotated[Caller, Depends(get_current_caller)],
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> TenantContext:
    """Explicit TenantContext for the caller (platform admin or tenant-bound)."""
    return await authz.resolve_context(caller)


async def require_platform_admin(
    caller: Annotated[Caller, Depends(get_current_caller)],
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> TenantContext:
    """TenantContext of a verified platform admin; 403 otherwise."""
    return await authz.require_platform_admin(caller)


# ---- Application services ----


def get_tenant_provisioning_service(
    store: Annotated[TenantScopedStore, Depends(get_store)],
    claims: Annotated[FirebaseClaimsDirectory, Depends(get_claims_directory)],
    tenant_repo: Annotated[FirestoreTenantRepository, Depends(get_tenant_repo)],
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
    role_repo: Annotated[FirestoreRoleRepository, Depends(get_role_repo)],
    unit_repo: Annotated[FirestoreBusinessUnitRepository, Depends(get_business_unit_repo)],
    emails: Annotated[EmailReservationService, Depends(get_email_reservation)],
    op_log: Annotated[OperationLogService, Depends(get_operation_log_service)],
    runner: Annotated[SagaRunner, Depends(get_saga_runner)],
) -> TenantProvisioningService:
    return TenantProvisioningService(
        claims,
        store,
        tenant_repo,
        user_repo,
        role_repo,
        unit_repo,
        emails,
        op_log,
        runner,
        min_password_length=get_settings().min_password_length,
    )


def get_user_provisioning_service(
    store: Annotated[TenantScopedStore, Depends(get_store)],
    claims: Annotated[FirebaseClaimsDirectory, Depends(get_claims_directory)],
    tenant_repo: Annotated[FirestoreTenantRepository, Depends(get_tenant_repo)],
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
    role_repo: Annotated[FirestoreRoleRepository, Depends(get_role_repo)],
    unit_repo: Annotated[FirestoreBusinessUnitRepository, Depends(get_business_unit_repo)],
    emails: Annotated[EmailReservationService, Depends(get_email_reservation)],
    runner: Annotated[SagaRunner, Depends(get_saga_runner)],
) -> UserProvisioningService:
    return UserProvisioningService(
        claims,
        store,
        tenant_repo,
        user_repo,
        role_repo,
        unit_repo,
        emails,
        runner,
        min_password_length=get_settings().min_password_length,
    )


def get_tenant_admin_service(
    claims: Annotated[FirebaseClaimsDirectory, Depends(get_claims_directory)],
    store: Annotated[TenantScopedStore, Depends(get_store)],
    tenant_repo: Annotated[FirestoreTenantRepository, Depends(get_tenant_repo)],
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
    role_repo: Annotated[FirestoreRoleRepository, Depends(get_role_repo)],
    unit_repo: Annotated[FirestoreBusinessUnitRepository, Depends(get_business_unit_repo)],
    op_log: Annotated[OperationLogService, Depends(get_operation_log_service)],
) -> TenantAdminService:
    return TenantAdminService(
        tenant_repo,
        user_repo,
        role_repo,
        unit_repo,
        claims,
        op_log,
        store,
        min_password_length=get_settings().min_password_length,
    )


def get_claims_service(
    claims: Annotated[FirebaseClaimsDirectory, Depends(get_claims_directory)],
    tenant_repo: Annotated[FirestoreTenantRepository, Depends(get_tenant_repo)],
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> ClaimsService:
    return ClaimsService(
        claims,
        tenant_repo,
        user_repo,
        authz,
        min_password_length=get_settings().min_password_length,
    )


def get_migration_state(request: Request) -> MigrationState:
    """Process-wide migration guard created in the lifespan."""
    state = getattr(request.app.state, "migration_state", None)
    if state is None:
        state = MigrationState()
        request.app.state.migration_state = state
    return state


def get_permission_migration_service(
    tenant_repo: Annotated[FirestoreTenantRepository, Depends(get_tenant_repo)],
    role_repo: Annotated[FirestoreRoleRepository, Depends(get_role_repo)],
    state: Annotated[MigrationState, Depends(get_migration_state)],
) -> PermissionMigrationService:
    return PermissionMigrationService(tenant_repo, role_repo, state)


def get_recovery_service(
    store: Annotated[TenantScopedStore, Depends(get_store)],
    runner: Annotated[SagaRunner, Depends(get_saga_runner)],
    tenant_svc: Annotated[TenantProvisioningService, Depends(get_tenant_provisioning_service)],
    user_svc: Annotated[UserProvisioningService, Depends(get_user_provisioning_service)],
) -> ProvisioningRecoveryService:
    return ProvisioningRecoveryService(
        FirestoreProvisioningAttemptRepository(store),
        runner,
        {SagaKind.TENANT: tenant_svc.compensate, SagaKind.USER: user_svc.compensate},
        stale_after_seconds=get_settings().saga_stale_after_seconds,
    )
