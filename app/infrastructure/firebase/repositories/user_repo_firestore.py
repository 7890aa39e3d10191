"""Firestore-backed user profile repository (tenant-scoped `users` collection)."""

from __future__ import annotations

from typing import Any

from app.application.dtos.user import UserProfile
from app.core.tenant_context import TenantContext
from app.infrastructure.firebase.collections import COLLECTION_USERS
from app.infrastructure.firebase.tenant_store import TenantScopedStore
from app.shared.utils.datetime import ensure_utc


def _to_profile(d: dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=d["id"],
        tenant_id=d.get("tenantId", ""),
        name=d.get("name", ""),
        email=d.get("email", ""),
        role_id=d.get("roleId"),
        role_name=d.get("roleName"),
        business_unit_id=d.get("businessUnitId"),
        business_unit_name=d.get("businessUnitName"),
        designation=d.get("designation"),
        status=d.get("status", "active"),
        is_active=bool(d.get("isActive", True)),
        is_deleted=bool(d.get("isDeleted", False)),
        is_suspended=bool(d.get("isSuspended", False)),
        is_platform_admin=bool(d.get("isPlatformAdmin", False)),
        custom_claims_set=bool(d.get("customClaimsSet", False)),
        created_at=ensure_utc(d.get("createdAt")),
    )


class FirestoreUserRepository:
    """User profiles; id == principal uid. All access is tenant-resolved."""

    def __init__(self, store: TenantScopedStore) -> None:
        self._store = store

    async def get(
        self, ctx: TenantContext, user_id: str, tenant_id: str | None = None
    ) -> UserProfile | None:
        d = await self._store.get(ctx, COLLECTION_USERS, user_id, tenant_id)
        return _to_profile(d) if d else None

    async def get_own(self, uid: str) -> UserProfile | None:
        """Caller's own profile, read without tenant resolution (self-only)."""
        # Platform-admin profiles may carry no tenantId.
        d = await self._store.get_self(uid)
        return _to_profile(d) if d else None

    async def update_own(self, uid: str, updates: dict[str, Any]) -> bool:
        """Merge fields into a profile by uid without tenant resolution."""
        return await self._store.update_self(uid, updates)

    async def list_for_tenant(
        self,
        ctx: TenantContext,
        tenant_id: str | None = None,
        *,
        strict: bool = True,
    ) -> list[UserProfile]:
        docs = await self._store.query(ctx, COLLECTION_USERS, tenant_id=tenant_id, strict=strict)
        return [_to_profile(d) for d in docs]

    async def get_by_email(
        self, ctx: TenantContext, email: str, tenant_id: str | None = None
    ) -> UserProfile | None:
        docs = await self._store.query(
            ctx, COLLECTION_USERS, [("email", "==", email)], tenant_id=tenant_id, limit=1
        )
        return _to_profile(docs[0]) if docs else None

    async def has_any(self, ctx: TenantContext, tenant_id: str | None = None) -> bool:
        docs = await self._store.query(ctx, COLLECTION_USERS, tenant_id=tenant_id, limit=1)
        return bool(docs)

    def profile_write(
        self, ctx: TenantContext, user_id: str, data: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, Any]:
        """Validated batch op writing a full profile document."""
        return self._store.write(ctx, COLLECTION_USERS, user_id, {"id": user_id, **data}, tenant_id)

    def delete_write(
        self, ctx: TenantContext, user_id: str, tenant_id: str | None = None
    ) -> dict[str, Any]:
        return self._store.delete_write(ctx, COLLECTION_USERS, user_id, tenant_id)

    async def fill_missing_defaults(
        self, ctx: TenantContext, defaults: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, list[str]]:
        return await self._store.fill_missing_fields(ctx, COLLECTION_USERS, defaults, tenant_id)

    async def delete_all_for_tenant(self, ctx: TenantContext, tenant_id: str | None = None) -> int:
        return await self._store.delete_tenant_documents(ctx, [COLLECTION_USERS], tenant_id)
