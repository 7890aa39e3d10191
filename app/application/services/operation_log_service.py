"""Append-only log of privileged tenant operations."""

from __future__ import annotations

from typing import Any

from app.application.dtos.operation_log import OperationLogEntry
from app.application.interfaces.repositories import IOperationLogRepository
from app.core.tenant_context import TenantContext
from app.domain.enums import OperationKind
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_prefixed_id


class OperationLogService:
    def __init__(
        self,
        repo: IOperationLogRepository,
        default_limit: int = 100,
        max_limit: int = 1000,
    ) -> None:
        self.repo = repo
        self.default_limit = default_limit
        self.max_limit = max_limit

    async def record(
        self,
        ctx: TenantContext,
        tenant_id: str,
        operation: OperationKind,
        details: dict[str, Any] | None = None,
    ) -> OperationLogEntry:
        """Append one entry for a completed operation performed by ctx's caller."""
        entry = OperationLogEntry(
            id=generate_prefixed_id("tenantop"),
            tenant_id=tenant_id,
            operation=operation,
            performed_by=ctx.caller_id,
            performed_by_email=ctx.caller_email,
            timestamp=utc_now(),
            details=details or {},
        )
        await self.repo.append(entry)
        return entry

    async def list_entries(
        self, tenant_id: str | None = None, limit: int | None = None
    ) -> list[OperationLogEntry]:
        """Newest first; limit defaults to default_limit and is capped at max_limit."""
        effective = min(limit or self.default_limit, self.max_limit)
        return await self.repo.list_entries(tenant_id=tenant_id, limit=effective)
