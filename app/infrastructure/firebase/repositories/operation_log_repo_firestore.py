"""Firestore-backed tenant operations log (append-only, global collection)."""

from __future__ import annotations

import logging
from typing import Any

from app.application.dtos.operation_log import OperationLogEntry
from app.domain.enums import OperationKind
from app.infrastructure.firebase.collections import COLLECTION_TENANT_OPERATIONS_LOG
from app.infrastructure.firebase.tenant_store import TenantScopedStore
from app.shared.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


def _to_entry(doc_id: str, d: dict[str, Any]) -> OperationLogEntry:
    return OperationLogEntry(
        id=doc_id,
        tenant_id=d.get("tenantId", ""),
        operation=OperationKind(d.get("operation", OperationKind.UPDATE.value)),
        performed_by=d.get("performedBy", ""),
        performed_by_email=d.get("performedByEmail"),
        timestamp=ensure_utc(d.get("timestamp")),
        details=d.get("details") or {},
    )


class FirestoreOperationLogRepository:
    """Entries are created once and never updated or deleted."""

    def __init__(self, store: TenantScopedStore) -> None:
        self._coll = store.global_collection(COLLECTION_TENANT_OPERATIONS_LOG)

    @staticmethod
    def entry_data(entry: OperationLogEntry) -> dict[str, Any]:
        return {
            "id": entry.id,
            "tenantId": entry.tenant_id,
            "operation": entry.operation.value,
            "performedBy": entry.performed_by,
            "performedByEmail": entry.performed_by_email,
            "timestamp": entry.timestamp,
            "details": entry.details,
        }

    async def append(self, entry: OperationLogEntry) -> None:
        """Create the entry; DocumentExistsError if its id was already used."""
        await self._coll.create(entry.id, self.entry_data(entry))

    async def list_entries(
        self, tenant_id: str | None = None, limit: int = 100
    ) -> list[OperationLogEntry]:
        """Newest first, optionally filtered by tenant."""
        q = self._coll.order_by("timestamp", "DESCENDING")
        if tenant_id:
            q = q.where("tenantId", "==", tenant_id)
        entries: list[OperationLogEntry] = []
        async for snapshot in q.limit(limit).stream():
            try:
                entries.append(_to_entry(snapshot.id, snapshot.to_dict()))
            except ValueError:
                logger.warning("Skipping operation log entry %s with unknown kind", snapshot.id)
        return entries
