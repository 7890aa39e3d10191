"""Firestore-backed saga step cursor (`provisioningAttempts`, global)."""

from __future__ import annotations

from typing import Any

from app.application.dtos.provisioning import ProvisioningAttempt
from app.domain.enums import ProvisioningStatus, SagaKind
from app.infrastructure.firebase.collections import COLLECTION_PROVISIONING_ATTEMPTS
from app.infrastructure.firebase.tenant_store import TenantScopedStore
from app.shared.utils.datetime import ensure_utc, utc_now


def _to_attempt(doc_id: str, d: dict[str, Any]) -> ProvisioningAttempt:
    return ProvisioningAttempt(
        id=doc_id,
        kind=SagaKind(d.get("kind", SagaKind.TENANT.value)),
        status=ProvisioningStatus(d.get("status", ProvisioningStatus.IN_PROGRESS.value)),
        tenant_id=d.get("tenantId"),
        email=d.get("email", ""),
        principal_id=d.get("principalId"),
        user_id=d.get("userId"),
        current_step=d.get("currentStep"),
        completed_steps=list(d.get("completedSteps") or []),
        planned_steps=list(d.get("plannedSteps") or []),
        error=d.get("error"),
        created_at=ensure_utc(d.get("createdAt")),
        updated_at=ensure_utc(d.get("updatedAt")),
    )


class FirestoreProvisioningAttemptRepository:
    def __init__(self, store: TenantScopedStore) -> None:
        self._coll = store.global_collection(COLLECTION_PROVISIONING_ATTEMPTS)

    async def create(self, attempt: ProvisioningAttempt) -> None:
        now = utc_now()
        await self._coll.create(
            attempt.id,
            {
                "id": attempt.id,
                "kind": attempt.kind.value,
                "status": attempt.status.value,
                "tenantId": attempt.tenant_id,
                "email": attempt.email,
                "principalId": attempt.principal_id,
                "userId": attempt.user_id,
                "currentStep": attempt.current_step,
                "completedSteps": list(attempt.completed_steps),
                "plannedSteps": list(attempt.planned_steps),
                "error": attempt.error,
                "createdAt": now,
                "updatedAt": now,
            },
        )

    async def update(self, attempt_id: str, updates: dict[str, Any]) -> None:
        await self._coll.document(attempt_id).update({**updates, "updatedAt": utc_now()})

    async def get(self, attempt_id: str) -> ProvisioningAttempt | None:
        doc = await self._coll.document(attempt_id).get()
        return _to_attempt(doc.id, doc.to_dict()) if doc else None

    async def list_by_status(self, status: ProvisioningStatus, limit: int = 100) -> list[ProvisioningAttempt]:
        q = self._coll.where("status", "==", status.value).limit(limit)
        return [_to_attempt(s.id, s.to_dict()) async for s in q.stream()]
