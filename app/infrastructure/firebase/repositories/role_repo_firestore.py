"""Firestore-backed role and business-unit repositories (tenant-scoped)."""

from __future__ import annotations

from typing import Any

from app.application.dtos.role import BusinessUnitResult, RoleResult
from app.core.tenant_context import TenantContext
from app.infrastructure.firebase.collections import (
    COLLECTION_BUSINESS_UNITS,
    COLLECTION_ROLES,
)
from app.infrastructure.firebase.tenant_store import TenantScopedStore


def _to_role(d: dict[str, Any]) -> RoleResult:
    return RoleResult(
        id=d["id"],
        tenant_id=d.get("tenantId", ""),
        name=d.get("name", ""),
        permissions=list(d.get("permissions") or []),
        description=d.get("description"),
        is_default=bool(d.get("isDefault", False)),
        template_id=d.get("templateId"),
    )


def _to_business_unit(d: dict[str, Any]) -> BusinessUnitResult:
    return BusinessUnitResult(
        id=d["id"],
        tenant_id=d.get("tenantId", ""),
        name=d.get("name", ""),
        status=d.get("status", "active"),
    )


class FirestoreRoleRepository:
    def __init__(self, store: TenantScopedStore) -> None:
        self._store = store

    async def get(
        self, ctx: TenantContext, role_id: str, tenant_id: str | None = None
    ) -> RoleResult | None:
        d = await self._store.get(ctx, COLLECTION_ROLES, role_id, tenant_id)
        return _to_role(d) if d else None

    async def list_for_tenant(
        self, ctx: TenantContext, tenant_id: str | None = None
    ) -> list[RoleResult]:
        return [_to_role(d) for d in await self._store.query(ctx, COLLECTION_ROLES, tenant_id=tenant_id)]

    def role_write(
        self, ctx: TenantContext, role_id: str, data: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, Any]:
        return self._store.write(ctx, COLLECTION_ROLES, role_id, {"id": role_id, **data}, tenant_id)

    async def update(
        self,
        ctx: TenantContext,
        role_id: str,
        updates: dict[str, Any],
        tenant_id: str | None = None,
    ) -> bool:
        return await self._store.update(ctx, COLLECTION_ROLES, role_id, updates, tenant_id)

    async def delete_all_for_tenant(self, ctx: TenantContext, tenant_id: str | None = None) -> int:
        return await self._store.delete_tenant_documents(ctx, [COLLECTION_ROLES], tenant_id)


class FirestoreBusinessUnitRepository:
    def __init__(self, store: TenantScopedStore) -> None:
        self._store = store

    async def get(
        self, ctx: TenantContext, unit_id: str, tenant_id: str | None = None
    ) -> BusinessUnitResult | None:
        d = await self._store.get(ctx, COLLECTION_BUSINESS_UNITS, unit_id, tenant_id)
        return _to_business_unit(d) if d else None

    async def list_for_tenant(
        self, ctx: TenantContext, tenant_id: str | None = None
    ) -> list[BusinessUnitResult]:
        docs = await self._store.query(ctx, COLLECTION_BUSINESS_UNITS, tenant_id=tenant_id)
        return [_to_business_unit(d) for d in docs]

    def unit_write(
        self, ctx: TenantContext, unit_id: str, data: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, Any]:
        return self._store.write(
            ctx, COLLECTION_BUSINESS_UNITS, unit_id, {"id": unit_id, **data}, tenant_id
        )

    async def fill_missing_defaults(
        self, ctx: TenantContext, defaults: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, list[str]]:
        return await self._store.fill_missing_fields(
            ctx, COLLECTION_BUSINESS_UNITS, defaults, tenant_id
        )

    async def delete_all_for_tenant(self, ctx: TenantContext, tenant_id: str | None = None) -> int:
        return await self._store.delete_tenant_documents(
            ctx, [COLLECTION_BUSINESS_UNITS], tenant_id
        )
