"""Unique email index (`principalEmails/{sha256(normalized email)}`, global).

A reservation is created with create-if-absent semantics before a principal
is created, so two concurrent sagas for the same email cannot both proceed.
"""

from __future__ import annotations

from typing import Any

from app.infrastructure.exceptions import DocumentExistsError
from app.infrastructure.firebase.collections import COLLECTION_PRINCIPAL_EMAILS
from app.infrastructure.firebase.tenant_store import TenantScopedStore
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import email_index_key, normalize_email


class FirestoreEmailIndexRepository:
    def __init__(self, store: TenantScopedStore) -> None:
        self._coll = store.global_collection(COLLECTION_PRINCIPAL_EMAILS)

    async def reserve(self, email: str, attempt_id: str, tenant_id: str | None) -> bool:
        """Reserve the email; False if it is already reserved."""
        try:
            await self._coll.create(
                email_index_key(email),
                {
                    "email": normalize_email(email),
                    "attemptId": attempt_id,
                    "tenantId": tenant_id,
                    "principalId": None,
                    "createdAt": utc_now(),
                },
            )
        except DocumentExistsError:
            return False
        return True

    async def get(self, email: str) -> dict[str, Any] | None:
        doc = await self._coll.document(email_index_key(email)).get()
        return doc.to_dict() if doc else None

    async def bind_principal(self, email: str, principal_id: str) -> None:
        await self._coll.document(email_index_key(email)).update({"principalId": principal_id})

    async def release(self, email: str) -> None:
        """Drop the reservation (idempotent)."""
        await self._coll.document(email_index_key(email)).delete()
