"""Tenant-scoped access to the Firestore document store.

Every read and write on a tenant-scoped collection (users, roles,
businessUnits) goes through TenantScopedStore with an explicit
TenantContext. The tenant is resolved once per call via
TenantContext.resolve(); documents of other tenants are invisible, and
writes whose tenantId disagrees with the resolved tenant are rejected.

Multi-document writes are chunked at batch_limit (<= 500) writes per
commit. Each chunk is atomic on its own; chunks are not atomic together.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from app.core.tenant_context import TenantContext
from app.infrastructure.exceptions import DocumentNotFoundError, TenantScopeError
from app.infrastructure.firebase._rest_client import (
    MAX_WRITES_PER_COMMIT,
    CollectionReference,
    FirestoreRESTClient,
)
from app.infrastructure.firebase.collections import (
    COLLECTION_USERS,
    GLOBAL_COLLECTIONS,
    TENANT_ID_FIELD,
    TENANT_SCOPED_COLLECTIONS,
)

logger = logging.getLogger(__name__)

Filter = tuple[str, str, Any]


def _require_scoped(collection: str) -> None:
    if collection not in TENANT_SCOPED_COLLECTIONS:
        raise TenantScopeError(f"{collection!r} is not a tenant-scoped collection")


def _with_id(doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
    out = dict(data)
    out.setdefault("id", doc_id)
    return out


class TenantScopedStore:
    """Document store adapter that enforces tenant isolation.

    Args:
        client: Firestore client (or a test double with the same surface).
        batch_limit: Max writes per commit (1..500).
    """

    def __init__(self, client: FirestoreRESTClient, batch_limit: int = MAX_WRITES_PER_COMMIT) -> None:
        if not 1 <= batch_limit <= MAX_WRITES_PER_COMMIT:
            raise ValueError(f"batch_limit must be between 1 and {MAX_WRITES_PER_COMMIT}")
        self._client = client
        self._batch_limit = batch_limit

    @property
    def batch_limit(self) -> int:
        return self._batch_limit

    # -- tenant-scoped -------------------------------------------------------

    def _stamp(self, collection: str, resolved: str, data: dict[str, Any]) -> dict[str, Any]:
        payload_tenant = data.get(TENANT_ID_FIELD)
        if payload_tenant is not None and payload_tenant != resolved:
            raise TenantScopeError(
                f"Write to {collection} carries tenantId {payload_tenant!r}, "
                f"resolved tenant is {resolved!r}"
            )
        return {**data, TENANT_ID_FIELD: resolved}

    async def get(
        self,
        ctx: TenantContext,
        collection: str,
        doc_id: str,
        tenant_id: str | None = None,
    ) -> dict[str, Any] | None:
        """Return the document (with "id") if it exists and belongs to the resolved tenant."""
        _require_scoped(collection)
        resolved = ctx.resolve(tenant_id)
        snapshot = await self._client.collection(collection).document(doc_id).get()
        if snapshot is None:
            return None
        data = snapshot.to_dict()
        if data.get(TENANT_ID_FIELD) != resolved:
            return None
        return _with_id(snapshot.id, data)

    async def query(
        self,
        ctx: TenantContext,
        collection: str,
        filters: Iterable[Filter] = (),
        *,
        tenant_id: str | None = None,
        strict: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Run a query restricted to the resolved tenant.

        With strict=False a tenant user's explicit tenant_id naming another
        tenant is ignored (their own tenant is used) instead of rejected.
        """
        _require_scoped(collection)
        resolved = ctx.resolve(tenant_id, strict=strict)
        q = self._client.collection(collection).where(TENANT_ID_FIELD, "==", resolved)
        for field, op, value in filters:
            q = q.where(field, op, value)
        if limit:
            q = q.limit(limit)
        results: list[dict[str, Any]] = []
        async for snapshot in q.stream():
            data = snapshot.to_dict()
            # Guard against a backend that ignored the tenant filter.
            if data.get(TENANT_ID_FIELD) != resolved:
                continue
            results.append(_with_id(snapshot.id, data))
        return results

    async def set(
        self,
        ctx: TenantContext,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        tenant_id: str | None = None,
    ) -> None:
        """Create or overwrite a document; tenantId is stamped, a mismatch rejected."""
        _require_scoped(collection)
        resolved = ctx.resolve(tenant_id)
        payload = self._stamp(collection, resolved, data)
        await self._client.collection(collection).document(doc_id).set(payload)

    async def update(
        self,
        ctx: TenantContext,
        collection: str,
        doc_id: str,
        updates: dict[str, Any],
        tenant_id: str | None = None,
    ) -> bool:
        """Merge fields into a document of the resolved tenant; False if not found there."""
        _require_scoped(collection)
        resolved = ctx.resolve(tenant_id)
        if TENANT_ID_FIELD in updates and updates[TENANT_ID_FIELD] != resolved:
            raise TenantScopeError(f"Cannot move {collection}/{doc_id} to another tenant")
        ref = self._client.collection(collection).document(doc_id)
        snapshot = await ref.get()
        if snapshot is None or snapshot.to_dict().get(TENANT_ID_FIELD) != resolved:
            return False
        await ref.update(updates)
        return True

    async def delete(
        self,
        ctx: TenantContext,
        collection: str,
        doc_id: str,
        tenant_id: str | None = None,
    ) -> None:
        """Delete a document of the resolved tenant. Missing documents are a no-op."""
        _require_scoped(collection)
        resolved = ctx.resolve(tenant_id)
        ref = self._client.collection(collection).document(doc_id)
        snapshot = await ref.get()
        if snapshot is None:
            return
        if snapshot.to_dict().get(TENANT_ID_FIELD) != resolved:
            raise TenantScopeError(f"{collection}/{doc_id} does not belong to tenant {resolved!r}")
        await ref.delete()

    def write(
        self,
        ctx: TenantContext,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        tenant_id: str | None = None,
    ) -> dict[str, Any]:
        """Build a validated set-write for commit()."""
        _require_scoped(collection)
        resolved = ctx.resolve(tenant_id)
        return {"path": f"{collection}/{doc_id}", "data": self._stamp(collection, resolved, data)}

    def delete_write(
        self,
        ctx: TenantContext,
        collection: str,
        doc_id: str,
        tenant_id: str | None = None,
    ) -> dict[str, Any]:
        """Build a delete op for commit(); caller must have checked ownership."""
        _require_scoped(collection)
        ctx.resolve(tenant_id)
        return {"path": f"{collection}/{doc_id}", "delete": True}

    async def commit(self, writes: list[dict[str, Any]]) -> int:
        """Commit writes in chunks of batch_limit; return the number of commits."""
        if not writes:
            return 0
        return await self._client.batch_write(writes, limit=self._batch_limit)

    async def fill_missing_fields(
        self,
        ctx: TenantContext,
        collection: str,
        defaults: dict[str, Any],
        tenant_id: str | None = None,
    ) -> dict[str, list[str]]:
        """Set defaults on documents of the resolved tenant that lack those fields.

        Present fields are never overwritten. Returns {document id: fields set}.
        """
        writes: list[dict[str, Any]] = []
        filled: dict[str, list[str]] = {}
        for doc in await self.query(ctx, collection, tenant_id=tenant_id):
            missing = {field: value for field, value in defaults.items() if field not in doc}
            if missing:
                writes.append({"path": f"{collection}/{doc['id']}", "update": missing})
                filled[doc["id"]] = list(missing)
        await self.commit(writes)
        return filled

    async def delete_tenant_documents(
        self,
        ctx: TenantContext,
        collections: Iterable[str] = tuple(sorted(TENANT_SCOPED_COLLECTIONS)),
        tenant_id: str | None = None,
    ) -> int:
        """Delete every document tagged with the resolved tenant in the given collections.

        Returns the number of documents deleted. Idempotent.
        """
        resolved = ctx.resolve(tenant_id)
        writes: list[dict[str, Any]] = []
        for collection in collections:
            for doc in await self.query(ctx, collection, tenant_id=resolved):
                writes.append({"path": f"{collection}/{doc['id']}", "delete": True})
        await self.commit(writes)
        return len(writes)

    async def get_self(self, caller_id: str) -> dict[str, Any] | None:
        """Read the caller's own profile (self-only; no tenant resolution needed)."""
        snapshot = await self._client.collection(COLLECTION_USERS).document(caller_id).get()
        if snapshot is None:
            return None
        return _with_id(snapshot.id, snapshot.to_dict())

    async def update_self(self, user_id: str, updates: dict[str, Any]) -> bool:
        """Merge fields into a profile by id; False if it does not exist.

        For platform-level repairs on profiles that may carry no tenantId.
        tenantId itself cannot be changed here.
        """
        if TENANT_ID_FIELD in updates:
            raise TenantScopeError("tenantId cannot be changed through update_self")
        try:
            await self._client.collection(COLLECTION_USERS).document(user_id).update(updates)
        except DocumentNotFoundError:
            return False
        return True

    # -- global (platform-level) --------------------------------------------

    def global_collection(self, collection: str) -> CollectionReference:
        """Return a non-scoped collection (tenants, operations log, email index, attempts)."""
        if collection not in GLOBAL_COLLECTIONS:
            raise TenantScopeError(f"{collection!r} is tenant-scoped; use the scoped methods")
        return self._client.collection(collection)
