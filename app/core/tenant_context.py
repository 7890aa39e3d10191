"""Explicit tenant context for scoped reads and writes.

A TenantContext is built once per request from the caller's verified
claims and passed explicitly into the store adapter and authorization
gate. There is no ambient/global "current tenant": code that has no
context cannot reach tenant-scoped data.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.tenant_validation import is_valid_tenant_id_format
from app.domain.exceptions import AuthorizationException, ValidationException

SYSTEM_CALLER_ID = "system"


@dataclass(frozen=True)
class TenantContext:
    """Who is acting and which tenant they are bound to.

    Platform admins carry tenant_id=None and must always name a target
    tenant explicitly; tenant users are pinned to their claims tenant.
    """

    caller_id: str
    tenant_id: str | None
    is_platform_admin: bool = False
    is_tenant_admin: bool = False
    caller_email: str | None = None

    @classmethod
    def system(cls) -> TenantContext:
        """Context for background jobs (startup migration, recovery)."""
        return cls(caller_id=SYSTEM_CALLER_ID, tenant_id=None, is_platform_admin=True)

    def resolve(self, explicit_tenant_id: str | None = None, *, strict: bool = True) -> str:
        """Return the tenant id every scoped read/write must use.

        Platform admins: explicit_tenant_id is required (no implicit
        all-tenants access). Tenant users: their own tenant; an explicit id
        naming another tenant raises when strict, and is ignored otherwise.

        Raises:
            ValidationException: Platform admin gave no (or a malformed) tenant id.
            AuthorizationException: Tenant user has no tenant, or strict mismatch.
        """
        if self.is_platform_admin:
            if not explicit_tenant_id:
                raise ValidationException(
                    "Platform admin must specify tenantId", field="tenantId"
                )
            if not is_valid_tenant_id_format(explicit_tenant_id):
                raise ValidationException("Invalid tenantId format", field="tenantId")
            return explicit_tenant_id
        if not self.tenant_id:
            raise AuthorizationException("User has no tenant access")
        if explicit_tenant_id and explicit_tenant_id != self.tenant_id and strict:
            raise AuthorizationException(
                "Cannot access data of another tenant", tenant_id=explicit_tenant_id
            )
        return self.tenant_id
