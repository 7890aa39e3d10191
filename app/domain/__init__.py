"""Domain layer: enums, role templates, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.enums import (
    AdminFlagCheck,
    OperationKind,
    Permission,
    ProvisioningStatus,
    SagaKind,
    TenantPlan,
    TenantStatus,
)
from app.domain.exceptions import (
    AuthenticationRequiredException,
    AuthorizationException,
    ConflictException,
    DuplicateEmailException,
    InternalFailureException,
    PlatformException,
    PreconditionFailedException,
    ResourceNotFoundException,
    TenantNotFoundException,
    ValidationException,
)

__all__ = [
    # Enums
    "AdminFlagCheck",
    "OperationKind",
    "Permission",
    "ProvisioningStatus",
    "SagaKind",
    "TenantPlan",
    "TenantStatus",
    # Exceptions
    "AuthenticationRequiredException",
    "AuthorizationException",
    "ConflictException",
    "DuplicateEmailException",
    "InternalFailureException",
    "PlatformException",
    "PreconditionFailedException",
    "ResourceNotFoundException",
    "TenantNotFoundException",
    "ValidationException",
]
