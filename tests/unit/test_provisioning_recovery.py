"""Unit tests for ProvisioningRecoveryService (cleanup_pending and stale attempts)."""

from datetime import timedelta
from typing import Any

import pytest

from app.application.dtos.tenant import CreateTenantCommand
from app.application.services.provisioning_recovery_service import ProvisioningRecoveryService
from app.application.services.provisioning_saga import SagaRunner, SagaState, SagaStep
from app.application.services.tenant_provisioning_service import TenantProvisioningService
from app.application.services.user_provisioning_service import UserProvisioningService
from app.core.tenant_context import TenantContext
from app.domain.enums import SagaKind, TenantPlan
from app.domain.exceptions import InternalFailureException
from app.infrastructure.exceptions import BackendError
from app.infrastructure.firebase.repositories import FirestoreProvisioningAttemptRepository
from app.shared.utils.datetime import utc_now
from tests.fakes import FakeFirestore, FakeIdentity


@pytest.fixture
def recovery(
    attempt_repo: FirestoreProvisioningAttemptRepository,
    runner: SagaRunner,
    tenant_service: TenantProvisioningService,
    user_service: UserProvisioningService,
) -> ProvisioningRecoveryService:
    return ProvisioningRecoveryService(
        attempt_repo,
        runner,
        {SagaKind.TENANT: tenant_service.compensate, SagaKind.USER: user_service.compensate},
        stale_after_seconds=900,
    )


def acme_command() -> CreateTenantCommand:
    return CreateTenantCommand(
        company_name="Acme",
        plan=TenantPlan.STARTER,
        admin_email="a@acme.com",
        admin_password="secret123",
        admin_name="Ann",
    )


async def test_cleanup_pending_attempt_is_finished(
    recovery: ProvisioningRecoveryService,
    tenant_service: TenantProvisioningService,
    platform_ctx: TenantContext,
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    firestore.fail("commit:roles")
    identity.fail("delete_account")
    with pytest.raises(InternalFailureException):
        await tenant_service.create_tenant(platform_ctx, acme_command())
    assert len(identity.accounts) == 1

    result = await recovery.recover()

    assert (result.examined, result.recovered, result.still_pending) == (1, 1, 0)
    assert identity.accounts == {}
    attempt = firestore.docs("provisioningAttempts")[result.attempt_ids[0]]
    assert attempt["status"] == "rolled_back"

    # Nothing left to do on a second pass.
    assert (await recovery.recover()).examined == 0


async def test_stale_in_progress_attempt_is_rolled_back(
    recovery: ProvisioningRecoveryService,
    runner: SagaRunner,
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    """A crash after the principal was created leaves it orphaned until recovery."""
    uid = identity.add_account("crash@acme.com")
    state = await runner.start(SagaKind.USER, "crash@acme.com", "tenant_acme")
    firestore.docs("provisioningAttempts")[state.attempt_id].update(
        {
            "currentStep": "set_claims",
            "completedSteps": ["reserve_email", "create_principal"],
            "principalId": uid,
            "userId": uid,
            "updatedAt": utc_now() - timedelta(hours=1),
        }
    )

    result = await recovery.recover()

    assert result.recovered == 1
    assert identity.accounts == {}
    assert firestore.docs("provisioningAttempts")[state.attempt_id]["status"] == "rolled_back"


async def test_fresh_in_progress_attempt_is_left_alone(
    recovery: ProvisioningRecoveryService,
    runner: SagaRunner,
    identity: FakeIdentity,
) -> None:
    uid = identity.add_account("busy@acme.com")
    await runner.start(SagaKind.USER, "busy@acme.com", "tenant_acme")

    result = await recovery.recover()

    assert result.examined == 0
    assert uid in identity.accounts


async def test_attempt_without_compensator_stays_pending(
    attempt_repo: FirestoreProvisioningAttemptRepository,
    runner: SagaRunner,
    firestore: FakeFirestore,
) -> None:
    state = await runner.start(SagaKind.USER, "x@acme.com", "tenant_acme")
    firestore.docs("provisioningAttempts")[state.attempt_id]["status"] = "cleanup_pending"
    recovery = ProvisioningRecoveryService(attempt_repo, runner, {})

    result = await recovery.recover()

    assert (result.examined, result.recovered, result.still_pending) == (1, 0, 1)


class _CompletionWriteLost:
    """Attempt repository whose final `completed` status write fails."""

    def __init__(self, inner: FirestoreProvisioningAttemptRepository) -> None:
        self._inner = inner
        self.create = inner.create
        self.get = inner.get
        self.list_by_status = inner.list_by_status

    async def update(self, attempt_id: str, updates: dict[str, Any]) -> None:
        if updates.get("status") == "completed":
            raise BackendError("write lost")
        await self._inner.update(attempt_id, updates)


async def test_finished_attempt_is_completed_not_compensated(
    recovery: ProvisioningRecoveryService,
    attempt_repo: FirestoreProvisioningAttemptRepository,
    firestore: FakeFirestore,
) -> None:
    undone: list[str] = []

    async def compensate(name: str, state: SagaState) -> None:
        undone.append(name)

    async def noop(state: SagaState) -> None:
        return None

    flaky = SagaRunner(_CompletionWriteLost(attempt_repo), step_timeout=5.0)
    state = await flaky.start(SagaKind.USER, "done@acme.com", "tenant_acme")
    await flaky.run(state, [SagaStep("one", noop), SagaStep("two", noop)], compensate)
    doc = firestore.docs("provisioningAttempts")[state.attempt_id]
    assert doc["status"] == "in_progress"
    assert doc["plannedSteps"] == ["one", "two"]
    doc["updatedAt"] = utc_now() - timedelta(hours=1)

    result = await recovery.recover()

    assert (result.examined, result.recovered, result.completed) == (1, 0, 1)
    assert undone == []
    assert firestore.docs("provisioningAttempts")[state.attempt_id]["status"] == "completed"


async def test_created_tenant_survives_recovery_after_lost_status_write(
    recovery: ProvisioningRecoveryService,
    tenant_service: TenantProvisioningService,
    platform_ctx: TenantContext,
    firestore: FakeFirestore,
    identity: FakeIdentity,
) -> None:
    result = await tenant_service.create_tenant(platform_ctx, acme_command())
    [(attempt_id, attempt)] = list(firestore.docs("provisioningAttempts").items())
    attempt.update({"status": "in_progress", "updatedAt": utc_now() - timedelta(hours=1)})

    outcome = await recovery.recover()

    assert outcome.completed == 1
    assert outcome.recovered == 0
    assert result.tenant_id in firestore.docs("tenants")
    assert len(identity.accounts) == 1
    assert firestore.docs("provisioningAttempts")[attempt_id]["status"] == "completed"
