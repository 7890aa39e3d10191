"""Firestore-backed repositories (all access through TenantScopedStore)."""

from app.infrastructure.firebase.repositories.email_index_repo_firestore import (
    FirestoreEmailIndexRepository,
)
from app.infrastructure.firebase.repositories.operation_log_repo_firestore import (
    FirestoreOperationLogRepository,
)
from app.infrastructure.firebase.repositories.provisioning_attempt_repo_firestore import (
    FirestoreProvisioningAttemptRepository,
)
from app.infrastructure.firebase.repositories.role_repo_firestore import (
    FirestoreBusinessUnitRepository,
    FirestoreRoleRepository,
)
from app.infrastructure.firebase.repositories.tenant_repo_firestore import (
    FirestoreTenantRepository,
)
from app.infrastructure.firebase.repositories.user_repo_firestore import (
    FirestoreUserRepository,
)

__all__ = [
    "FirestoreBusinessUnitRepository",
    "FirestoreEmailIndexRepository",
    "FirestoreOperationLogRepository",
    "FirestoreProvisioningAttemptRepository",
    "FirestoreRoleRepository",
    "FirestoreTenantRepository",
    "FirestoreUserRepository",
]
