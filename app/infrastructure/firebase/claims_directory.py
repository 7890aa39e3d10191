"""Claims Directory adapter over Firebase Auth (Identity Toolkit REST).

Provider errors with a domain meaning are translated here (duplicate email,
unknown principal); everything else propagates as BackendError.
"""

from __future__ import annotations

import logging

from app.application.dtos.claims import Claims, PrincipalRecord
from app.domain.exceptions import DuplicateEmailException, ResourceNotFoundException
from app.infrastructure.exceptions import EmailAlreadyExistsError, PrincipalNotFoundError
from app.infrastructure.firebase._identity_client import IdentityToolkitRESTClient

logger = logging.getLogger(__name__)


class FirebaseClaimsDirectory:
    """Create/delete principals and read/write their signed claims bag."""

    def __init__(self, client: IdentityToolkitRESTClient) -> None:
        self._client = client

    async def create_principal(
        self, email: str, password: str, display_name: str | None = None
    ) -> str:
        """Create a principal and return its uid (DuplicateEmailException on duplicates)."""
        try:
            uid = await self._client.create_account(email, password, display_name)
        except EmailAlreadyExistsError:
            raise DuplicateEmailException(email) from None
        logger.info("Created principal %s", uid)
        return uid

    async def delete_principal(self, uid: str) -> bool:
        """Delete a principal; returns False if it was already gone."""
        try:
            await self._client.delete_account(uid)
        except PrincipalNotFoundError:
            return False
        logger.info("Deleted principal %s", uid)
        return True

    async def set_claims(self, uid: str, claims: Claims) -> None:
        try:
            await self._client.set_custom_attributes(uid, claims.to_custom_attributes())
        except PrincipalNotFoundError:
            raise ResourceNotFoundException("principal", uid) from None

    async def get_principal(self, uid: str) -> PrincipalRecord | None:
        try:
            return await self._client.get_account(uid)
        except PrincipalNotFoundError:
            return None

    async def get_principal_by_email(self, email: str) -> PrincipalRecord | None:
        try:
            return await self._client.get_account_by_email(email)
        except PrincipalNotFoundError:
            return None

    async def update_password(self, uid: str, password: str) -> None:
        """Set a new password (ResourceNotFoundException if the uid is unknown)."""
        try:
            await self._client.update_password(uid, password)
        except PrincipalNotFoundError:
            raise ResourceNotFoundException("principal", uid) from None
