"""Saga runner with a persisted step cursor.

A provisioning attempt is an explicit state machine: before a step runs its
name is recorded as the attempt's currentStep; after it finishes it is
appended to completedSteps. On failure the runner compensates every started
step in reverse order, then marks the attempt rolled_back, or
cleanup_pending if a compensation failed. The failing step counts as
started since it may have partially applied, unless the backend rejected
it with a conflict. The recovery job replays compensation for attempts
left in_progress (crash) or cleanup_pending, using the same compensate
callback, so compensations only rely on persisted attempt fields.
Attempts whose completedSteps already cover the planned step list are
marked completed rather than compensated.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from app.application.dtos.provisioning import ProvisioningAttempt
from app.application.interfaces.repositories import IProvisioningAttemptRepository
from app.domain.enums import ProvisioningStatus, SagaKind
from app.domain.exceptions import ConflictException
from app.shared.utils.generators import generate_prefixed_id

logger = logging.getLogger(__name__)


@dataclass
class SagaState:
    """Mutable in-process view of an attempt; persisted after every transition."""

    attempt_id: str
    kind: SagaKind
    email: str
    tenant_id: str | None
    principal_id: str | None = None
    user_id: str | None = None
    current_step: str | None = None
    completed_steps: list[str] = field(default_factory=list)
    planned_steps: list[str] = field(default_factory=list)

    @classmethod
    def from_attempt(cls, attempt: ProvisioningAttempt) -> SagaState:
        return cls(
            attempt_id=attempt.id,
            kind=attempt.kind,
            email=attempt.email,
            tenant_id=attempt.tenant_id,
            principal_id=attempt.principal_id,
            user_id=attempt.user_id,
            current_step=attempt.current_step,
            completed_steps=list(attempt.completed_steps),
            planned_steps=list(attempt.planned_steps),
        )

    def started_steps(self) -> list[str]:
        """Completed steps plus the one in flight, in execution order."""
        steps = list(self.completed_steps)
        if self.current_step and self.current_step not in steps:
            steps.append(self.current_step)
        return steps

    def finished(self) -> bool:
        """True once every planned step completed; nothing is left to compensate."""
        return bool(self.planned_steps) and set(self.planned_steps) <= set(self.completed_steps)


@dataclass(frozen=True)
class SagaStep:
    name: str
    action: Callable[[SagaState], Awaitable[None]]


Compensator = Callable[[str, SagaState], Awaitable[None]]


class SagaFailedError(Exception):
    """A step failed; compensation ran. `cause` is the original step failure."""

    def __init__(self, state: SagaState, step: str, cause: BaseException, cleanup_pending: bool) -> None:
        self.state = state
        self.step = step
        self.cause = cause
        self.cleanup_pending = cleanup_pending
        super().__init__(f"Saga step {step!r} failed: {cause!r}")


class SagaRunner:
    """Runs steps sequentially, each bounded by step_timeout seconds."""

    def __init__(
        self,
        attempts: IProvisioningAttemptRepository,
        step_timeout: float = 15.0,
    ) -> None:
        self.attempts = attempts
        self.step_timeout = step_timeout

    async def start(self, kind: SagaKind, email: str, tenant_id: str | None) -> SagaState:
        """Persist a new in_progress attempt and return its state."""
        state = SagaState(
            attempt_id=generate_prefixed_id("attempt"),
            kind=kind,
            email=email,
            tenant_id=tenant_id,
        )
        await self.attempts.create(
            ProvisioningAttempt(
                id=state.attempt_id,
                kind=kind,
                status=ProvisioningStatus.IN_PROGRESS,
                tenant_id=tenant_id,
                email=email,
            )
        )
        return state

    async def _persist(self, state: SagaState, **extra: Any) -> None:
        await self.attempts.update(
            state.attempt_id,
            {
                "currentStep": state.current_step,
                "completedSteps": list(state.completed_steps),
                "plannedSteps": list(state.planned_steps),
                "principalId": state.principal_id,
                "userId": state.user_id,
                **extra,
            },
        )

    async def run(
        self,
        state: SagaState,
        steps: list[SagaStep],
        compensate: Compensator,
    ) -> SagaState:
        """Execute steps; on any failure compensate and raise SagaFailedError."""
        state.planned_steps = [step.name for step in steps]
        for step in steps:
            state.current_step = step.name
            try:
                await asyncio.wait_for(self._persist(state), self.step_timeout)
                await asyncio.wait_for(step.action(state), self.step_timeout)
                state.completed_steps.append(step.name)
                await asyncio.wait_for(self._persist(state), self.step_timeout)
            except Exception as exc:
                if isinstance(exc, ConflictException):
                    # Rejected outright; the step applied nothing.
                    state.current_step = None
                if isinstance(exc, TimeoutError):
                    logger.error(
                        "Saga %s step %s timed out after %ss",
                        state.attempt_id,
                        step.name,
                        self.step_timeout,
                    )
                else:
                    logger.exception("Saga %s step %s failed", state.attempt_id, step.name)
                clean = await self.rollback(state, compensate, error=f"{step.name}: {exc!r}")
                raise SagaFailedError(state, step.name, exc, cleanup_pending=not clean) from exc
        await self.complete(state)
        return state

    async def complete(self, state: SagaState) -> bool:
        """Mark the attempt completed; return False if the write failed.

        A failed write leaves the attempt in_progress with every planned step
        in completedSteps, which recovery finishes instead of compensating.
        """
        state.current_step = None
        try:
            await self._persist(state, status=ProvisioningStatus.COMPLETED.value)
        except Exception:
            logger.exception("Could not mark attempt %s completed", state.attempt_id)
            return False
        return True

    async def rollback(
        self,
        state: SagaState,
        compensate: Compensator,
        error: str | None = None,
    ) -> bool:
        """Compensate started steps in reverse; return True if every compensation succeeded.

        Failures are logged and not retried inline; the attempt is left
        cleanup_pending for the recovery job.
        """
        failed: list[str] = []
        for name in reversed(state.started_steps()):
            try:
                await asyncio.wait_for(compensate(name, state), self.step_timeout)
            except Exception:
                logger.exception(
                    "Compensation for step %s of attempt %s failed", name, state.attempt_id
                )
                failed.append(name)
        status = ProvisioningStatus.CLEANUP_PENDING if failed else ProvisioningStatus.ROLLED_BACK
        if failed:
            logger.warning(
                "Attempt %s left %s; failed compensations: %s",
                state.attempt_id,
                status.value,
                ", ".join(failed),
            )
        else:
            logger.warning("Attempt %s rolled back", state.attempt_id)
        try:
            await self._persist(state, status=status.value, error=error, failedCompensations=failed)
        except Exception:
            logger.exception("Could not record rollback status for attempt %s", state.attempt_id)
            return False
        return not failed
