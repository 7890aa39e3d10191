"""Enforced unique email across principals.

The identity provider rejects duplicate emails on its own, but only at the
moment the principal is created. The index reservation closes the window
between "email is free" and "principal exists" for concurrent sagas.
"""

from __future__ import annotations

import logging

from app.application.interfaces.repositories import IEmailIndexRepository
from app.application.interfaces.services import IClaimsDirectory
from app.domain.exceptions import DuplicateEmailException

logger = logging.getLogger(__name__)


class EmailReservationService:
    def __init__(self, index: IEmailIndexRepository, claims: IClaimsDirectory) -> None:
        self.index = index
        self.claims = claims

    async def ensure_available(self, email: str) -> None:
        """Raise DuplicateEmailException if a principal already uses this email."""
        if await self.claims.get_principal_by_email(email) is not None:
            raise DuplicateEmailException(email)

    async def reserve(self, email: str, attempt_id: str, tenant_id: str | None) -> None:
        """Reserve the email for an attempt.

        A reservation bound to a principal that no longer exists is stale and
        is reclaimed. An unbound reservation belongs to a saga in flight.
        """
        if await self.index.reserve(email, attempt_id, tenant_id):
            return
        existing = await self.index.get(email) or {}
        principal_id = existing.get("principalId")
        if principal_id and await self.claims.get_principal(principal_id) is None:
            logger.warning("Reclaiming stale email reservation held by %s", principal_id)
            await self.index.release(email)
            if await self.index.reserve(email, attempt_id, tenant_id):
                return
        raise DuplicateEmailException(email)

    async def bind(self, email: str, principal_id: str) -> None:
        await self.index.bind_principal(email, principal_id)

    async def release(self, email: str, attempt_id: str) -> None:
        """Drop the reservation if this attempt holds it (idempotent)."""
        existing = await self.index.get(email)
        if existing and existing.get("attemptId") == attempt_id:
            await self.index.release(email)
