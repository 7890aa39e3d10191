"""DTOs for the append-only tenant operations log."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.enums import OperationKind


@dataclass(frozen=True)
class OperationLogEntry:
    id: str
    tenant_id: str
    operation: OperationKind
    performed_by: str
    performed_by_email: str | None
    timestamp: datetime
    details: dict[str, Any] = field(default_factory=dict)
