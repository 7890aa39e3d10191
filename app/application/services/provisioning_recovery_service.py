"""Replays compensation for provisioning attempts a crash or failed rollback left behind."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from app.application.dtos.provisioning import ProvisioningAttempt, RecoveryResult
from app.application.interfaces.repositories import IProvisioningAttemptRepository
from app.application.services.provisioning_saga import Compensator, SagaRunner, SagaState
from app.domain.enums import ProvisioningStatus, SagaKind
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ProvisioningRecoveryService:
    """Rolls back attempts left in_progress (stale) or cleanup_pending.

    Compensators are the same callables the sagas use on inline failure,
    keyed by saga kind.
    """

    def __init__(
        self,
        attempts: IProvisioningAttemptRepository,
        runner: SagaRunner,
        compensators: dict[SagaKind, Compensator],
        stale_after_seconds: int = 900,
        batch_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.attempts = attempts
        self.runner = runner
        self.compensators = compensators
        self.stale_after = timedelta(seconds=stale_after_seconds)
        self.batch_size = batch_size
        self._clock = clock

    def _is_stale(self, attempt: ProvisioningAttempt) -> bool:
        last_seen = attempt.updated_at or attempt.created_at
        # An in_progress attempt with no timestamp cannot be aged; leave it.
        return last_seen is not None and self._clock() - last_seen >= self.stale_after

    async def recover(self) -> RecoveryResult:
        """Compensate every recoverable attempt, or complete it if all its steps ran."""
        pending = await self.attempts.list_by_status(
            ProvisioningStatus.CLEANUP_PENDING, self.batch_size
        )
        in_progress = await self.attempts.list_by_status(
            ProvisioningStatus.IN_PROGRESS, self.batch_size
        )
        candidates = pending + [a for a in in_progress if self._is_stale(a)]

        recovered = completed = still_pending = 0
        attempt_ids: list[str] = []
        for attempt in candidates:
            state = SagaState.from_attempt(attempt)
            if attempt.status == ProvisioningStatus.IN_PROGRESS and state.finished():
                # Only the final status write was lost.
                if await self.runner.complete(state):
                    completed += 1
                    attempt_ids.append(attempt.id)
                else:
                    still_pending += 1
                continue
            compensate = self.compensators.get(attempt.kind)
            if compensate is None:
                logger.error("No compensator for attempt %s of kind %s", attempt.id, attempt.kind)
                still_pending += 1
                continue
            if await self.runner.rollback(state, compensate, error=attempt.error):
                recovered += 1
                attempt_ids.append(attempt.id)
            else:
                still_pending += 1
        if candidates:
            logger.warning(
                "Provisioning recovery: %s examined, %s rolled back, %s completed, %s still pending",
                len(candidates),
                recovered,
                completed,
                still_pending,
            )
        return RecoveryResult(
            examined=len(candidates),
            recovered=recovered,
            completed=completed,
            still_pending=still_pending,
            attempt_ids=attempt_ids,
        )
