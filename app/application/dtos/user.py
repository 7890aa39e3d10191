"""DTOs for user use cases (no dependency on the document store)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CreateUserCommand:
    """Input of the user provisioning saga."""

    email: str
    password: str
    name: str
    role_id: str
    tenant_id: str | None = None
    business_unit_id: str | None = None
    designation: str | None = None


@dataclass(frozen=True)
class UserCreationResult:
    user_id: str
    attempt_id: str | None = None


@dataclass(frozen=True)
class UserProfile:
    """User profile read-model (users/{principal uid}). No credential."""

    id: str
    tenant_id: str
    name: str
    email: str
    role_id: str | None = None
    role_name: str | None = None
    business_unit_id: str | None = None
    business_unit_name: str | None = None
    designation: str | None = None
    status: str = "active"
    is_active: bool = True
    is_deleted: bool = False
    is_suspended: bool = False
    # Display-only; claims decide authorization.
    is_platform_admin: bool = False
    custom_claims_set: bool = False
    created_at: datetime | None = None
