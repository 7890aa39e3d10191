"""User provisioning saga: one principal + profile under an existing tenant."""

from __future__ import annotations

import logging

from app.application.dtos.claims import Claims
from app.application.dtos.user import CreateUserCommand, UserCreationResult, UserProfile
from app.application.interfaces.repositories import (
    IBusinessUnitRepository,
    IRoleRepository,
    ITenantRepository,
    IUserRepository,
)
from app.application.interfaces.services import IClaimsDirectory, IDocumentStore
from app.application.services.email_reservation import EmailReservationService
from app.application.services.provisioning_saga import (
    SagaFailedError,
    SagaRunner,
    SagaState,
    SagaStep,
)
from app.application.services.tenant_provisioning_service import (
    STEP_CREATE_PRINCIPAL,
    STEP_RESERVE_EMAIL,
    STEP_SET_CLAIMS,
    delete_saga_principal,
    validate_email,
    validate_password,
)
from app.core.tenant_context import TenantContext
from app.domain.enums import SagaKind
from app.domain.exceptions import (
    ConflictException,
    InternalFailureException,
    PreconditionFailedException,
    TenantNotFoundException,
    ValidationException,
)
from app.domain.role_templates import ADMIN_ROLE_NAME
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

STEP_WRITE_PROFILE = "write_profile"


class UserProvisioningService:
    """Creates users under a tenant; also serves tenant-scoped user listing."""

    def __init__(
        self,
        claims: IClaimsDirectory,
        store: IDocumentStore,
        tenant_repo: ITenantRepository,
        user_repo: IUserRepository,
        role_repo: IRoleRepository,
        unit_repo: IBusinessUnitRepository,
        emails: EmailReservationService,
        runner: SagaRunner,
        min_password_length: int = 6,
    ) -> None:
        self.claims = claims
        self.store = store
        self.tenant_repo = tenant_repo
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.unit_repo = unit_repo
        self.emails = emails
        self.runner = runner
        self.min_password_length = min_password_length

    async def create_user(self, ctx: TenantContext, cmd: CreateUserCommand) -> UserCreationResult:
        """Run the user saga for the tenant ctx may act on.

        Raises:
            AuthorizationException: Tenant caller targeting another tenant.
            ValidationException: Bad input, or role/unit not in the target tenant
                (no principal is created).
            PreconditionFailedException: Tenant is at its plan's user ceiling, checked
                before the saga and again after the counter increment.
            DuplicateEmailException: Email already in use.
            InternalFailureException: A backing call failed; compensation ran.
        """
        tenant_id = ctx.resolve(cmd.tenant_id)
        name = (cmd.name or "").strip()
        if not name:
            raise ValidationException("name is required", field="name")
        if not cmd.role_id:
            raise ValidationException("roleId is required", field="roleId")
        email = validate_email(cmd.email)
        validate_password(cmd.password, self.min_password_length)

        tenant = await self.tenant_repo.get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFoundException(tenant_id)
        role = await self.role_repo.get(ctx, cmd.role_id, tenant_id)
        if role is None:
            raise ValidationException(f"Role {cmd.role_id} does not exist", field="roleId")
        unit = None
        if cmd.business_unit_id:
            unit = await self.unit_repo.get(ctx, cmd.business_unit_id, tenant_id)
            if unit is None:
                raise ValidationException(
                    f"Business Unit {cmd.business_unit_id} does not exist",
                    field="businessUnitId",
                )
        if tenant.current_users >= tenant.user_limit:
            raise PreconditionFailedException(
                f"Tenant has reached its {tenant.plan.value} plan limit of {tenant.user_limit} users",
                {"tenant_id": tenant_id, "user_limit": tenant.user_limit},
            )
        await self.emails.ensure_available(email)

        try:
            state = await self.runner.start(SagaKind.USER, email, tenant_id)
        except Exception as exc:
            logger.exception("Could not start user provisioning in tenant %s", tenant_id)
            raise InternalFailureException("Failed to create user") from exc

        async def reserve_email(st: SagaState) -> None:
            await self.emails.reserve(email, st.attempt_id, tenant_id)

        async def create_principal(st: SagaState) -> None:
            st.principal_id = await self.claims.create_principal(email, cmd.password, name)
            st.user_id = st.principal_id
            await self.emails.bind(email, st.principal_id)

        async def set_claims(st: SagaState) -> None:
            await self.claims.set_claims(
                st.principal_id,
                Claims(
                    tenant_id=tenant_id,
                    is_platform_admin=False,
                    is_tenant_admin=role.name == ADMIN_ROLE_NAME,
                ),
            )

        async def write_profile(st: SagaState) -> None:
            profile = self.user_repo.profile_write(
                ctx,
                st.principal_id,
                {
                    "name": name,
                    "email": email,
                    "roleId": role.id,
                    "roleName": role.name,
                    "businessUnitId": unit.id if unit else None,
                    "businessUnitName": unit.name if unit else None,
                    "designation": cmd.designation,
                    "status": "active",
                    "isActive": True,
                    "isDeleted": False,
                    "isSuspended": False,
                    "isPlatformAdmin": False,
                    "customClaimsSet": True,
                    "createdAt": utc_now(),
                },
                tenant_id,
            )
            # Profile and counter commit together.
            await self.store.commit([profile, self.tenant_repo.increment_users_write(tenant_id)])
            # The pre-check read can race another creation; the counter after
            # our increment is authoritative. Over the limit rolls this user back.
            latest = await self.tenant_repo.get_by_id(tenant_id)
            if latest is not None and latest.current_users > latest.user_limit:
                raise PreconditionFailedException(
                    f"Tenant has reached its {latest.plan.value} plan limit of {latest.user_limit} users",
                    {"tenant_id": tenant_id, "user_limit": latest.user_limit},
                )

        steps = [
            SagaStep(STEP_RESERVE_EMAIL, reserve_email),
            SagaStep(STEP_CREATE_PRINCIPAL, create_principal),
            SagaStep(STEP_SET_CLAIMS, set_claims),
            SagaStep(STEP_WRITE_PROFILE, write_profile),
        ]
        try:
            state = await self.runner.run(state, steps, self.compensate)
        except SagaFailedError as failure:
            if isinstance(failure.cause, (ConflictException, PreconditionFailedException)):
                raise failure.cause from None
            raise InternalFailureException(
                "Failed to create user",
                attempt_id=failure.state.attempt_id,
                cleanup_pending=failure.cleanup_pending,
            ) from failure.cause

        logger.info("User %s created in tenant %s", state.principal_id, tenant_id)
        return UserCreationResult(user_id=state.principal_id, attempt_id=state.attempt_id)

    async def compensate(self, step: str, state: SagaState) -> None:
        """Undo one started step. Idempotent; relies only on persisted attempt fields."""
        if step == STEP_WRITE_PROFILE and state.tenant_id and state.user_id:
            system = TenantContext.system()
            profile = await self.user_repo.get(system, state.user_id, state.tenant_id)
            if profile is not None:
                await self.store.commit(
                    [
                        self.user_repo.delete_write(system, state.user_id, state.tenant_id),
                        self.tenant_repo.increment_users_write(state.tenant_id, -1),
                    ]
                )
        elif step == STEP_CREATE_PRINCIPAL:
            await delete_saga_principal(self.claims, state)
        elif step == STEP_RESERVE_EMAIL:
            await self.emails.release(state.email, state.attempt_id)

    async def list_users(
        self, ctx: TenantContext, tenant_id: str | None = None
    ) -> list[UserProfile]:
        """Profiles of one tenant.

        Platform admins must name the tenant. Tenant callers always get their
        own tenant; a tenantId argument naming another tenant is ignored.
        """
        return await self.user_repo.list_for_tenant(ctx, tenant_id, strict=False)
