"""Firestore-backed tenant repository (global `tenants` collection)."""

from __future__ import annotations

import logging
from typing import Any

from app.application.dtos.tenant import TenantResult
from app.domain.enums import TenantPlan, TenantStatus
from app.infrastructure.firebase.collections import COLLECTION_TENANTS
from app.infrastructure.firebase.tenant_store import TenantScopedStore
from app.shared.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


def _to_result(doc_id: str, d: dict[str, Any]) -> TenantResult:
    plan = TenantPlan(d.get("plan", TenantPlan.STARTER.value))
    return TenantResult(
        id=doc_id,
        company_name=d.get("companyName", ""),
        plan=plan,
        status=TenantStatus(d.get("status", TenantStatus.ACTIVE.value)),
        user_limit=int(d.get("userLimit", plan.user_limit)),
        current_users=int(d.get("currentUsers", 0)),
        created_at=ensure_utc(d.get("createdAt")),
        admin_uid=d.get("adminUid"),
        admin_email=d.get("adminEmail"),
        admin_name=d.get("adminName"),
    )


class FirestoreTenantRepository:
    """Tenant documents keyed by tenant id."""

    def __init__(self, store: TenantScopedStore) -> None:
        self._coll = store.global_collection(COLLECTION_TENANTS)

    async def get_by_id(self, tenant_id: str) -> TenantResult | None:
        doc = await self._coll.document(tenant_id).get()
        if not doc:
            return None
        return _to_result(doc.id, doc.to_dict())

    async def list_all(self) -> list[TenantResult]:
        """Return every tenant (platform-level maintenance jobs only)."""
        results: list[TenantResult] = []
        async for snapshot in self._coll.stream():
            try:
                results.append(_to_result(snapshot.id, snapshot.to_dict()))
            except ValueError:
                logger.warning("Skipping tenant %s with unreadable plan/status", snapshot.id)
        return results

    async def create_tenant(self, tenant_id: str, data: dict[str, Any]) -> None:
        """Create the tenant document; DocumentExistsError if the id is taken."""
        await self._coll.create(tenant_id, {"id": tenant_id, **data})

    async def update_tenant(self, tenant_id: str, updates: dict[str, Any]) -> TenantResult | None:
        """Merge fields; return the updated tenant, or None if not found."""
        doc_ref = self._coll.document(tenant_id)
        doc = await doc_ref.get()
        if not doc:
            return None
        await doc_ref.update(updates)
        data = doc.to_dict()
        data.update(updates)
        return _to_result(tenant_id, data)

    async def delete(self, tenant_id: str) -> None:
        """Delete the tenant document (idempotent)."""
        await self._coll.document(tenant_id).delete()

    @staticmethod
    def increment_users_write(tenant_id: str, amount: int = 1) -> dict[str, Any]:
        """Batch op that atomically bumps currentUsers."""
        return {
            "path": f"{COLLECTION_TENANTS}/{tenant_id}",
            "increment": {"currentUsers": amount},
        }
