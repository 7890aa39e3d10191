"""Application interfaces (ports)."""

from app.application.interfaces.repositories import (
    IBusinessUnitRepository,
    IEmailIndexRepository,
    IOperationLogRepository,
    IProvisioningAttemptRepository,
    IRoleRepository,
    ITenantRepository,
    IUserRepository,
)
from app.application.interfaces.services import IClaimsDirectory, IDocumentStore

__all__ = [
    "IBusinessUnitRepository",
    "IClaimsDirectory",
    "IDocumentStore",
    "IEmailIndexRepository",
    "IOperationLogRepository",
    "IProvisioningAttemptRepository",
    "IRoleRepository",
    "ITenantRepository",
    "IUserRepository",
]
