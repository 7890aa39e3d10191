"""Service interfaces (ports) for the application layer.

Protocols for the two backing systems the sagas drive: the identity
directory (principals + claims) and the document store's batch surface.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.claims import Claims, PrincipalRecord


# Claims directory interface
class IClaimsDirectory(Protocol):
    """Protocol for the identity provider adapter."""

    async def create_principal(
        self, email: str, password: str, display_name: str | None = None
    ) -> str:
        """Create principal; return uid. Raise DuplicateEmailException on duplicates."""

    async def delete_principal(self, uid: str) -> bool:
        """Delete principal; False if already gone."""

    async def set_claims(self, uid: str, claims: Claims) -> None:
        """Replace the claims bag; ResourceNotFoundException if the uid is unknown."""

    async def get_principal(self, uid: str) -> PrincipalRecord | None:
        """Return principal by uid."""

    async def get_principal_by_email(self, email: str) -> PrincipalRecord | None:
        """Return principal by email."""

    async def update_password(self, uid: str, password: str) -> None:
        """Set a new credential; ResourceNotFoundException if the uid is unknown."""


# Document store batch surface
class IDocumentStore(Protocol):
    """Protocol for multi-document writes (chunked commits)."""

    @property
    def batch_limit(self) -> int:
        """Max writes per commit."""

    async def commit(self, writes: list[dict[str, Any]]) -> int:
        """Commit writes in chunks; return number of commits."""
