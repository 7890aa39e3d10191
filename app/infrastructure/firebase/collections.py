"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when you first write a document. Use these constants so collection names
stay consistent and act as the single source of truth for the "schema".

Tenant-scoped collections: every document carries a tenantId field and is
only reachable through TenantScopedStore with a resolved tenant. Global
collections are platform-level and keyed by their own ids.
"""

# Tenant-scoped
COLLECTION_USERS = "users"
COLLECTION_ROLES = "roles"
COLLECTION_BUSINESS_UNITS = "businessUnits"

# Global (platform-level)
COLLECTION_TENANTS = "tenants"
COLLECTION_TENANT_OPERATIONS_LOG = "tenantOperationsLog"
# Unique email index: doc id = sha256(normalized email).
COLLECTION_PRINCIPAL_EMAILS = "principalEmails"
# Saga step cursor per provisioning attempt.
COLLECTION_PROVISIONING_ATTEMPTS = "provisioningAttempts"

TENANT_SCOPED_COLLECTIONS: frozenset[str] = frozenset(
    {COLLECTION_USERS, COLLECTION_ROLES, COLLECTION_BUSINESS_UNITS}
)
GLOBAL_COLLECTIONS: frozenset[str] = frozenset(
    {
        COLLECTION_TENANTS,
        COLLECTION_TENANT_OPERATIONS_LOG,
        COLLECTION_PRINCIPAL_EMAILS,
        COLLECTION_PROVISIONING_ATTEMPTS,
    }
)

TENANT_ID_FIELD = "tenantId"
