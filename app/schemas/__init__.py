"""Pydantic request/response schemas for the API."""

from app.schemas.claims import ClaimsRepairResponse, SetClaimsRequest, SetClaimsResponse
from app.schemas.health import HealthResponse
from app.schemas.migration import (
    DataMigrationResponse,
    MigrationResponse,
    MigrationStatusResponse,
    RecoveryResponse,
)
from app.schemas.tenant import (
    OperationsLogResponse,
    TenantAdminDeleteResponse,
    TenantCreateRequest,
    TenantCreateResponse,
    TenantResponse,
)
from app.schemas.user import UserCreateRequest, UserListResponse, UserResponse

__all__ = [
    "ClaimsRepairResponse",
    "DataMigrationResponse",
    "HealthResponse",
    "MigrationResponse",
    "MigrationStatusResponse",
    "OperationsLogResponse",
    "RecoveryResponse",
    "SetClaimsRequest",
    "SetClaimsResponse",
    "TenantAdminDeleteResponse",
    "TenantCreateRequest",
    "TenantCreateResponse",
    "TenantResponse",
    "UserCreateRequest",
    "UserListResponse",
    "UserResponse",
]
