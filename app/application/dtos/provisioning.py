"""DTOs for persisted provisioning attempts (saga step cursor) and recovery."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.enums import ProvisioningStatus, SagaKind


@dataclass(frozen=True)
class ProvisioningAttempt:
    """One saga run: which steps completed and what compensation must undo.

    current_step is the step that was started last (it may have partially
    applied); completed_steps lists steps that finished and planned_steps
    the full run, so an attempt whose completed_steps cover it is done.
    """

    id: str
    kind: SagaKind
    status: ProvisioningStatus
    tenant_id: str | None
    email: str
    principal_id: str | None = None
    user_id: str | None = None
    current_step: str | None = None
    completed_steps: list[str] = field(default_factory=list)
    planned_steps: list[str] = field(default_factory=list)
    error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RecoveryResult:
    """Outcome of replaying compensation for abandoned attempts."""

    examined: int = 0
    recovered: int = 0
    completed: int = 0
    still_pending: int = 0
    attempt_ids: list[str] = field(default_factory=list)
