"""DTOs for roles and business units."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RoleResult:
    """Role read-model. template_id is set on system roles only."""

    id: str
    tenant_id: str
    name: str
    permissions: list[str]
    description: str | None = None
    is_default: bool = False
    template_id: str | None = None


@dataclass(frozen=True)
class BusinessUnitResult:
    id: str
    tenant_id: str
    name: str
    status: str = "active"
