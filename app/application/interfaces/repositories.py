"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
Tenant-scoped repositories take an explicit TenantContext on every call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from app.domain.enums import ProvisioningStatus

if TYPE_CHECKING:
    from app.application.dtos.operation_log import OperationLogEntry
    from app.application.dtos.provisioning import ProvisioningAttempt
    from app.application.dtos.role import BusinessUnitResult, RoleResult
    from app.application.dtos.tenant import TenantResult
    from app.application.dtos.user import UserProfile
    from app.core.tenant_context import TenantContext


# Tenant repository interface
class ITenantRepository(Protocol):
    """Protocol for the global tenant collection."""

    async def get_by_id(self, tenant_id: str) -> TenantResult | None:
        """Return tenant by ID."""

    async def list_all(self) -> list[TenantResult]:
        """Return every tenant."""

    async def create_tenant(self, tenant_id: str, data: dict[str, Any]) -> None:
        """Create tenant document; raise if the id already exists."""

    async def update_tenant(self, tenant_id: str, updates: dict[str, Any]) -> TenantResult | None:
        """Merge fields; return updated tenant or None if not found."""

    async def delete(self, tenant_id: str) -> None:
        """Delete tenant document (idempotent)."""

    def increment_users_write(self, tenant_id: str, amount: int = 1) -> dict[str, Any]:
        """Batch op incrementing currentUsers."""


# User profile repository interface
class IUserRepository(Protocol):
    """Protocol for tenant-scoped user profiles."""

    async def get(
        self, ctx: TenantContext, user_id: str, tenant_id: str | None = None
    ) -> UserProfile | None:
        """Return profile if it belongs to the resolved tenant."""

    async def get_own(self, uid: str) -> UserProfile | None:
        """Return the caller's own profile."""

    async def update_own(self, uid: str, updates: dict[str, Any]) -> bool:
        """Merge fields into a profile by uid; False if it does not exist."""

    async def list_for_tenant(
        self, ctx: TenantContext, tenant_id: str | None = None, *, strict: bool = True
    ) -> list[UserProfile]:
        """Return all profiles of the resolved tenant."""

    async def get_by_email(
        self, ctx: TenantContext, email: str, tenant_id: str | None = None
    ) -> UserProfile | None:
        """Return the resolved tenant's profile with this email."""

    async def has_any(self, ctx: TenantContext, tenant_id: str | None = None) -> bool:
        """Return True if the resolved tenant has at least one profile."""

    def profile_write(
        self, ctx: TenantContext, user_id: str, data: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, Any]:
        """Validated batch op for a profile document."""

    def delete_write(
        self, ctx: TenantContext, user_id: str, tenant_id: str | None = None
    ) -> dict[str, Any]:
        """Batch op deleting a profile."""

    async def fill_missing_defaults(
        self, ctx: TenantContext, defaults: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, list[str]]:
        """Set defaults on profiles lacking those fields; return {user id: fields set}."""

    async def delete_all_for_tenant(self, ctx: TenantContext, tenant_id: str | None = None) -> int:
        """Delete every profile of the resolved tenant; return count."""


# Role repository interface
class IRoleRepository(Protocol):
    async def get(
        self, ctx: TenantContext, role_id: str, tenant_id: str | None = None
    ) -> RoleResult | None:
        """Return role if it belongs to the resolved tenant."""

    async def list_for_tenant(self, ctx: TenantContext, tenant_id: str | None = None) -> list[RoleResult]:
        """Return all roles of the resolved tenant."""

    def role_write(
        self, ctx: TenantContext, role_id: str, data: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, Any]:
        """Validated batch op for a role document."""

    async def update(
        self, ctx: TenantContext, role_id: str, updates: dict[str, Any], tenant_id: str | None = None
    ) -> bool:
        """Merge fields into a role of the resolved tenant."""

    async def delete_all_for_tenant(self, ctx: TenantContext, tenant_id: str | None = None) -> int:
        """Delete every role of the resolved tenant; return count."""


# Business unit repository interface
class IBusinessUnitRepository(Protocol):
    async def get(
        self, ctx: TenantContext, unit_id: str, tenant_id: str | None = None
    ) -> BusinessUnitResult | None:
        """Return business unit if it belongs to the resolved tenant."""

    async def list_for_tenant(
        self, ctx: TenantContext, tenant_id: str | None = None
    ) -> list[BusinessUnitResult]:
        """Return all business units of the resolved tenant."""

    def unit_write(
        self, ctx: TenantContext, unit_id: str, data: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, Any]:
        """Validated batch op for a business unit document."""

    async def fill_missing_defaults(
        self, ctx: TenantContext, defaults: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, list[str]]:
        """Set defaults on units lacking those fields; return {unit id: fields set}."""

    async def delete_all_for_tenant(self, ctx: TenantContext, tenant_id: str | None = None) -> int:
        """Delete every business unit of the resolved tenant; return count."""


# Operations log interface
class IOperationLogRepository(Protocol):
    async def append(self, entry: OperationLogEntry) -> None:
        """Create entry (append-only)."""

    async def list_entries(
        self, tenant_id: str | None = None, limit: int = 100
    ) -> list[OperationLogEntry]:
        """Newest first, optionally filtered by tenant."""


# Saga step cursor interface
class IProvisioningAttemptRepository(Protocol):
    async def create(self, attempt: ProvisioningAttempt) -> None:
        """Persist a new attempt."""

    async def update(self, attempt_id: str, updates: dict[str, Any]) -> None:
        """Merge fields into an attempt."""

    async def get(self, attempt_id: str) -> ProvisioningAttempt | None:
        """Return attempt by id."""

    async def list_by_status(
        self, status: ProvisioningStatus, limit: int = 100
    ) -> list[ProvisioningAttempt]:
        """Return attempts with the given status."""


# Unique email index interface
class IEmailIndexRepository(Protocol):
    async def reserve(self, email: str, attempt_id: str, tenant_id: str | None) -> bool:
        """Reserve email with create-if-absent semantics; False if taken."""

    async def get(self, email: str) -> dict[str, Any] | None:
        """Return the reservation, if any."""

    async def bind_principal(self, email: str, principal_id: str) -> None:
        """Record which principal owns the reservation."""

    async def release(self, email: str) -> None:
        """Delete the reservation (idempotent)."""
