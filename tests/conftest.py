"""Pytest configuration and fixtures for the tenancy service.

Everything runs against in-memory doubles of the Firestore and Identity
Toolkit clients (tests.fakes), so no Firebase project is needed. The real
store, repositories, claims directory and services run on top of them.
HTTP tests use app.main:create_app with the client dependencies overridden.
"""

import os

# Settings are read on first use; set test env before the app is imported.
os.environ["AUTH_TOKEN_MODE"] = "local"
os.environ["SECRET_KEY"] = "test-secret-key-for-claims-tokens"
os.environ["AUTO_MIGRATE_ROLES_ON_STARTUP"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("FIREBASE_SERVICE_ACCOUNT_KEY", None)
os.environ.pop("FIREBASE_SERVICE_ACCOUNT_PATH", None)

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.api.v1.dependencies import get_firestore, get_identity  # noqa: E402
from app.application.dtos.claims import Claims  # noqa: E402
from app.application.dtos.tenant import CreateTenantCommand, TenantCreationResult  # noqa: E402
from app.application.services.authorization_service import AuthorizationService  # noqa: E402
from app.application.services.claims_service import ClaimsService  # noqa: E402
from app.application.services.email_reservation import EmailReservationService  # noqa: E402
from app.application.services.operation_log_service import OperationLogService  # noqa: E402
from app.application.services.permission_migration_service import (  # noqa: E402
    MigrationState,
    PermissionMigrationService,
)
from app.application.services.provisioning_saga import SagaRunner  # noqa: E402
from app.application.services.tenant_admin_service import TenantAdminService  # noqa: E402
from app.application.services.tenant_provisioning_service import (  # noqa: E402
    TenantProvisioningService,
)
from app.application.services.user_provisioning_service import UserProvisioningService  # noqa: E402
from app.core.config import get_settings  # noqa: E402
from app.core.tenant_context import TenantContext  # noqa: E402
from app.domain.enums import TenantPlan  # noqa: E402
from app.infrastructure.firebase.claims_directory import FirebaseClaimsDirectory  # noqa: E402
from app.infrastructure.firebase.repositories import (  # noqa: E402
    FirestoreBusinessUnitRepository,
    FirestoreEmailIndexRepository,
    FirestoreOperationLogRepository,
    FirestoreProvisioningAttemptRepository,
    FirestoreRoleRepository,
    FirestoreTenantRepository,
    FirestoreUserRepository,
)
from app.infrastructure.firebase.tenant_store import TenantScopedStore  # noqa: E402
from app.main import create_app  # noqa: E402
from tests.fakes import FakeFirestore, FakeIdentity  # noqa: E402
from tests.helpers import bearer  # noqa: E402

get_settings.cache_clear()

PLATFORM_ADMIN_EMAIL = "root@syncly.io"


# ---- Backing doubles and adapters ----


@pytest.fixture
def firestore() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def store(firestore: FakeFirestore) -> TenantScopedStore:
    return TenantScopedStore(firestore)


@pytest.fixture
def claims_directory(identity: FakeIdentity) -> FirebaseClaimsDirectory:
    return FirebaseClaimsDirectory(identity)


@pytest.fixture
def tenant_repo(store: TenantScopedStore) -> FirestoreTenantRepository:
    return FirestoreTenantRepository(store)


@pytest.fixture
def user_repo(store: TenantScopedStore) -> FirestoreUserRepository:
    return FirestoreUserRepository(store)


@pytest.fixture
def role_repo(store: TenantScopedStore) -> FirestoreRoleRepository:
    return FirestoreRoleRepository(store)


@pytest.fixture
def unit_repo(store: TenantScopedStore) -> FirestoreBusinessUnitRepository:
    return FirestoreBusinessUnitRepository(store)


@pytest.fixture
def attempt_repo(store: TenantScopedStore) -> FirestoreProvisioningAttemptRepository:
    return FirestoreProvisioningAttemptRepository(store)


@pytest.fixture
def runner(attempt_repo: FirestoreProvisioningAttemptRepository) -> SagaRunner:
    return SagaRunner(attempt_repo, step_timeout=5.0)


@pytest.fixture
def emails(
    store: TenantScopedStore, claims_directory: FirebaseClaimsDirectory
) -> EmailReservationService:
    return EmailReservationService(FirestoreEmailIndexRepository(store), claims_directory)


@pytest.fixture
def op_log(store: TenantScopedStore) -> OperationLogService:
    return OperationLogService(FirestoreOperationLogRepository(store))


# ---- Services ----


@pytest.fixture
def tenant_service(
    claims_directory,
    store,
    tenant_repo,
    user_repo,
    role_repo,
    unit_repo,
    emails,
    op_log,
    runner,
) -> TenantProvisioningService:
    return TenantProvisioningService(
        claims_directory,
        store,
        tenant_repo,
        user_repo,
        role_repo,
        unit_repo,
        emails,
        op_log,
        runner,
    )


@pytest.fixture
def user_service(
    claims_directory,
    store,
    tenant_repo,
    user_repo,
    role_repo,
    unit_repo,
    emails,
    runner,
) -> UserProvisioningService:
    return UserProvisioningService(
        claims_directory,
        store,
        tenant_repo,
        user_repo,
        role_repo,
        unit_repo,
        emails,
        runner,
    )


@pytest.fixture
def admin_service(
    tenant_repo, user_repo, role_repo, unit_repo, claims_directory, op_log, store
) -> TenantAdminService:
    return TenantAdminService(
        tenant_repo, user_repo, role_repo, unit_repo, claims_directory, op_log, store
    )


@pytest.fixture
def authz(user_repo: FirestoreUserRepository) -> AuthorizationService:
    return AuthorizationService(user_repo)


@pytest.fixture
def claims_service(claims_directory, tenant_repo, user_repo, authz) -> ClaimsService:
    return ClaimsService(claims_directory, tenant_repo, user_repo, authz)


@pytest.fixture
def migration_state() -> MigrationState:
    return MigrationState()


@pytest.fixture
def migration_service(tenant_repo, role_repo, migration_state) -> PermissionMigrationService:
    return PermissionMigrationService(tenant_repo, role_repo, migration_state)


# ---- Contexts and seeded data ----


@pytest.fixture
def platform_ctx() -> TenantContext:
    """Context of a verified platform admin."""
    return TenantContext(
        caller_id="platform-admin",
        tenant_id=None,
        is_platform_admin=True,
        caller_email=PLATFORM_ADMIN_EMAIL,
    )


@pytest.fixture
async def acme(
    tenant_service: TenantProvisioningService, platform_ctx: TenantContext
) -> TenantCreationResult:
    """A provisioned Starter tenant "Acme" with admin a@acme.com."""
    return await tenant_service.create_tenant(
        platform_ctx,
        CreateTenantCommand(
            company_name="Acme",
            plan=TenantPlan.STARTER,
            admin_email="a@acme.com",
            admin_password="secret123",
            admin_name="Ann",
        ),
    )


# ---- HTTP ----


@pytest.fixture
def app(firestore: FakeFirestore, identity: FakeIdentity) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_firestore] = lambda: firestore
    application.dependency_overrides[get_identity] = lambda: identity
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def platform_admin_headers(firestore: FakeFirestore, identity: FakeIdentity) -> dict[str, str]:
    """A platform admin whose claim and profile flag agree."""
    uid = identity.add_account(
        PLATFORM_ADMIN_EMAIL, claims=Claims(is_platform_admin=True), uid="platform-admin"
    )
    firestore.data.setdefault("users", {})[uid] = {
        "id": uid,
        "name": "Root",
        "email": PLATFORM_ADMIN_EMAIL,
        "isPlatformAdmin": True,
    }
    return bearer(uid, Claims(is_platform_admin=True), email=PLATFORM_ADMIN_EMAIL)
