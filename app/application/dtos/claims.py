"""DTOs for claims and authenticated callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Claims:
    """Signed claims bag attached to a principal.

    tenant_id is None only for platform admins. Claims are the source of
    truth for authorization; profile flags are display-only.
    """

    tenant_id: str | None = None
    is_platform_admin: bool = False
    is_tenant_admin: bool = False

    def to_custom_attributes(self) -> dict[str, Any]:
        """Wire shape stored on the principal (camelCase, as clients read it)."""
        return {
            "tenantId": self.tenant_id,
            "isPlatformAdmin": self.is_platform_admin,
            "isTenantAdmin": self.is_tenant_admin,
        }

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> Claims:
        """Build from a custom-attributes / token-claims mapping (missing keys are falsy)."""
        data = data or {}
        return cls(
            tenant_id=data.get("tenantId") or None,
            is_platform_admin=bool(data.get("isPlatformAdmin", False)),
            is_tenant_admin=bool(data.get("isTenantAdmin", False)),
        )


@dataclass(frozen=True)
class Caller:
    """Verified identity of the caller of an entry point."""

    uid: str
    email: str | None
    claims: Claims
    # Last sign-in time; used by self-only operations (re-authentication window).
    auth_time: datetime | None = None


@dataclass(frozen=True)
class PrincipalRecord:
    """Principal as read back from the identity directory."""

    uid: str
    email: str | None
    display_name: str | None
    claims: Claims
    disabled: bool = False
