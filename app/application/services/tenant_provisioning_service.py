"""Tenant provisioning saga: tenant + default roles/units + first administrator.

The saga spans two systems with no shared transaction: the identity
directory (principal + claims) and the document store. Steps run strictly
sequentially; a failure anywhere compensates every started step in reverse
order. Validation and authorization run before the attempt is created and
never trigger compensation.
"""

from __future__ import annotations

import logging

from app.application.dtos.claims import Claims
from app.application.dtos.tenant import CreateTenantCommand, TenantCreationResult
from app.application.interfaces.repositories import (
    IBusinessUnitRepository,
    IRoleRepository,
    ITenantRepository,
    IUserRepository,
)
from app.application.interfaces.services import IClaimsDirectory, IDocumentStore
from app.application.services.email_reservation import EmailReservationService
from app.application.services.operation_log_service import OperationLogService
from app.application.services.provisioning_saga import (
    SagaFailedError,
    SagaRunner,
    SagaState,
    SagaStep,
)
from app.core.tenant_context import TenantContext
from app.domain.enums import OperationKind, SagaKind, TenantStatus
from app.domain.exceptions import (
    ConflictException,
    InternalFailureException,
    ValidationException,
)
from app.domain.role_templates import (
    DEFAULT_BUSINESS_UNITS,
    DEFAULT_ROLES,
    ROLE_TEMPLATE_VERSION,
    template_permission_values,
)
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_prefixed_id, normalize_email

logger = logging.getLogger(__name__)

# Step names double as the persisted cursor values.
STEP_RESERVE_EMAIL = "reserve_email"
STEP_CREATE_PRINCIPAL = "create_principal"
STEP_SET_CLAIMS = "set_claims"
STEP_WRITE_TENANT = "write_tenant"
STEP_WRITE_ROLES = "write_roles"
STEP_WRITE_BUSINESS_UNITS = "write_business_units"
STEP_WRITE_ADMIN_PROFILE = "write_admin_profile"
STEP_LOG_OPERATION = "log_operation"


def validate_email(email: str) -> str:
    email = normalize_email(email or "")
    local, _, domain = email.partition("@")
    if not local or "." not in domain or " " in email:
        raise ValidationException("Invalid email address", field="email")
    return email


def validate_password(password: str, min_length: int) -> None:
    if not password or len(password) < min_length:
        raise ValidationException(
            f"Password must be at least {min_length} characters", field="password"
        )


class TenantProvisioningService:
    """Creates a tenant and its first administrator as one compensated unit."""

    def __init__(
        self,
        claims: IClaimsDirectory,
        store: IDocumentStore,
        tenant_repo: ITenantRepository,
        user_repo: IUserRepository,
        role_repo: IRoleRepository,
        unit_repo: IBusinessUnitRepository,
        emails: EmailReservationService,
        op_log: OperationLogService,
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
        self.op_log = op_log
        self.runner = runner
        self.min_password_length = min_password_length

    def _validate(self, cmd: CreateTenantCommand) -> CreateTenantCommand:
        company_name = (cmd.company_name or "").strip()
        admin_name = (cmd.admin_name or "").strip()
        if not company_name:
            raise ValidationException("companyName is required", field="companyName")
        if not admin_name:
            raise ValidationException("adminName is required", field="adminName")
        email = validate_email(cmd.admin_email)
        validate_password(cmd.admin_password, self.min_password_length)
        return CreateTenantCommand(
            company_name=company_name,
            plan=cmd.plan,
            admin_email=email,
            admin_password=cmd.admin_password,
            admin_name=admin_name,
        )

    async def create_tenant(
        self, ctx: TenantContext, cmd: CreateTenantCommand
    ) -> TenantCreationResult:
        """Run the tenant saga. Caller must already be verified as platform admin.

        Raises:
            ValidationException: Bad input (nothing written).
            DuplicateEmailException: Admin email already in use (nothing left behind).
            InternalFailureException: A backing call failed or timed out; compensation ran.
        """
        cmd = self._validate(cmd)
        await self.emails.ensure_available(cmd.admin_email)

        tenant_id = generate_prefixed_id("tenant")
        role_ids = {key: generate_prefixed_id("role") for key in DEFAULT_ROLES}
        unit_ids = [generate_prefixed_id("bu") for _ in DEFAULT_BUSINESS_UNITS]
        admin_role = DEFAULT_ROLES["admin"]
        now = utc_now()

        try:
            state = await self.runner.start(SagaKind.TENANT, cmd.admin_email, tenant_id)
        except Exception as exc:
            logger.exception("Could not start tenant provisioning for %s", cmd.company_name)
            raise InternalFailureException("Failed to create tenant") from exc

        async def reserve_email(st: SagaState) -> None:
            await self.emails.reserve(cmd.admin_email, st.attempt_id, tenant_id)

        async def create_principal(st: SagaState) -> None:
            st.principal_id = await self.claims.create_principal(
                cmd.admin_email, cmd.admin_password, cmd.admin_name
            )
            st.user_id = st.principal_id
            await self.emails.bind(cmd.admin_email, st.principal_id)

        async def set_claims(st: SagaState) -> None:
            await self.claims.set_claims(
                st.principal_id,
                Claims(tenant_id=tenant_id, is_platform_admin=False, is_tenant_admin=True),
            )

        async def write_tenant(st: SagaState) -> None:
            await self.tenant_repo.create_tenant(
                tenant_id,
                {
                    "companyName": cmd.company_name,
                    "plan": cmd.plan.value,
                    "status": TenantStatus.ACTIVE.value,
                    "createdAt": now,
                    "userLimit": cmd.plan.user_limit,
                    "currentUsers": 1,
                    "adminEmail": cmd.admin_email,
                    "adminUid": st.principal_id,
                    "adminName": cmd.admin_name,
                },
            )

        async def write_roles(st: SagaState) -> None:
            writes = [
                self.role_repo.role_write(
                    ctx,
                    role_ids[key],
                    {
                        "name": template["name"],
                        "description": template["description"],
                        "permissions": template_permission_values(key),
                        "isDefault": True,
                        "templateId": key,
                        "templateVersion": ROLE_TEMPLATE_VERSION,
                        "createdAt": now,
                    },
                    tenant_id,
                )
                for key, template in DEFAULT_ROLES.items()
            ]
            await self.store.commit(writes)

        async def write_business_units(st: SagaState) -> None:
            writes = [
                self.unit_repo.unit_write(
                    ctx,
                    unit_id,
                    {"name": name, "status": "active", "createdAt": now},
                    tenant_id,
                )
                for unit_id, name in zip(unit_ids, DEFAULT_BUSINESS_UNITS, strict=True)
            ]
            await self.store.commit(writes)

        async def write_admin_profile(st: SagaState) -> None:
            profile = self.user_repo.profile_write(
                ctx,
                st.principal_id,
                {
                    "name": cmd.admin_name,
                    "email": cmd.admin_email,
                    "roleId": role_ids["admin"],
                    "roleName": admin_role["name"],
                    "businessUnitId": unit_ids[0],
                    "businessUnitName": DEFAULT_BUSINESS_UNITS[0],
                    "designation": None,
                    "status": "active",
                    "isActive": True,
                    "isDeleted": False,
                    "isSuspended": False,
                    "isPlatformAdmin": False,
                    "customClaimsSet": True,
                    "createdAt": now,
                },
                tenant_id,
            )
            await self.store.commit([profile])

        async def log_operation(st: SagaState) -> None:
            await self.op_log.record(
                ctx,
                tenant_id,
                OperationKind.CREATE,
                {
                    "companyName": cmd.company_name,
                    "plan": cmd.plan.value,
                    "adminEmail": cmd.admin_email,
                    "adminName": cmd.admin_name,
                    "attemptId": st.attempt_id,
                },
            )

        steps = [
            SagaStep(STEP_RESERVE_EMAIL, reserve_email),
            SagaStep(STEP_CREATE_PRINCIPAL, create_principal),
            SagaStep(STEP_SET_CLAIMS, set_claims),
            SagaStep(STEP_WRITE_TENANT, write_tenant),
            SagaStep(STEP_WRITE_ROLES, write_roles),
            SagaStep(STEP_WRITE_BUSINESS_UNITS, write_business_units),
            SagaStep(STEP_WRITE_ADMIN_PROFILE, write_admin_profile),
            SagaStep(STEP_LOG_OPERATION, log_operation),
        ]
        try:
            state = await self.runner.run(state, steps, self.compensate)
        except SagaFailedError as failure:
            if isinstance(failure.cause, ConflictException):
                raise failure.cause from None
            raise InternalFailureException(
                "Failed to create tenant",
                attempt_id=failure.state.attempt_id,
                cleanup_pending=failure.cleanup_pending,
            ) from failure.cause

        logger.info(
            "Tenant %s (%s) provisioned with admin %s",
            tenant_id,
            cmd.company_name,
            state.principal_id,
        )
        return TenantCreationResult(
            tenant_id=tenant_id,
            admin_user_id=state.principal_id,
            roles_created=len(role_ids),
            business_units_created=len(unit_ids),
            attempt_id=state.attempt_id,
        )

    async def compensate(self, step: str, state: SagaState) -> None:
        """Undo one started step. Idempotent; relies only on persisted attempt fields."""
        system = TenantContext.system()
        tenant_id = state.tenant_id
        if step == STEP_WRITE_ADMIN_PROFILE and tenant_id:
            await self.user_repo.delete_all_for_tenant(system, tenant_id)
        elif step == STEP_WRITE_BUSINESS_UNITS and tenant_id:
            await self.unit_repo.delete_all_for_tenant(system, tenant_id)
        elif step == STEP_WRITE_ROLES and tenant_id:
            await self.role_repo.delete_all_for_tenant(system, tenant_id)
        elif step == STEP_WRITE_TENANT and tenant_id:
            await self.tenant_repo.delete(tenant_id)
        elif step == STEP_CREATE_PRINCIPAL:
            await delete_saga_principal(self.claims, state)
        elif step == STEP_RESERVE_EMAIL:
            await self.emails.release(state.email, state.attempt_id)
        # set_claims is undone with the principal; log entries are never removed.


async def delete_saga_principal(claims: IClaimsDirectory, state: SagaState) -> None:
    """Delete the principal a saga created.

    When the create call timed out the uid may be unknown. The email is
    reserved by this attempt, and claims are only set after the uid is
    recorded, so a principal holding the email with an empty claims bag was
    created here.
    """
    principal_id = state.principal_id
    if principal_id is None:
        principal = await claims.get_principal_by_email(state.email)
        if principal is not None and principal.claims == Claims():
            principal_id = principal.uid
    if principal_id is not None:
        await claims.delete_principal(principal_id)
