"""Claims maintenance: explicit claim assignment, bulk repair, own password."""

from __future__ import annotations

import logging

from app.application.dtos.claims import Caller, Claims
from app.application.dtos.migration import ClaimsRepairResult
from app.application.interfaces.repositories import ITenantRepository, IUserRepository
from app.application.interfaces.services import IClaimsDirectory
from app.application.services.authorization_service import AuthorizationService
from app.application.services.tenant_provisioning_service import validate_password
from app.core.tenant_context import TenantContext
from app.core.tenant_validation import is_valid_tenant_id_format
from app.domain.exceptions import ValidationException
from app.domain.role_templates import ADMIN_ROLE_NAME
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ClaimsService:
    def __init__(
        self,
        claims: IClaimsDirectory,
        tenant_repo: ITenantRepository,
        user_repo: IUserRepository,
        authz: AuthorizationService,
        min_password_length: int = 6,
    ) -> None:
        self.claims = claims
        self.tenant_repo = tenant_repo
        self.user_repo = user_repo
        self.authz = authz
        self.min_password_length = min_password_length

    async def set_user_claims(
        self,
        ctx: TenantContext,
        user_id: str,
        tenant_id: str | None = None,
        is_platform_admin: bool = False,
        is_tenant_admin: bool = False,
    ) -> Claims:
        """Replace a principal's claims and mark its profile customClaimsSet.

        Platform-admin-only; ctx must already be verified.
        """
        if not user_id:
            raise ValidationException("userId is required", field="userId")
        if tenant_id and not is_valid_tenant_id_format(tenant_id):
            raise ValidationException("Invalid tenantId format", field="tenantId")
        new_claims = Claims(
            tenant_id=tenant_id or None,
            is_platform_admin=is_platform_admin,
            is_tenant_admin=is_tenant_admin,
        )
        await self.claims.set_claims(user_id, new_claims)
        if not await self.user_repo.update_own(
            user_id, {"customClaimsSet": True, "updatedAt": utc_now()}
        ):
            logger.warning("Claims set for %s but no profile exists to mark", user_id)
        logger.info(
            "Claims set for %s by %s: tenantId=%s isPlatformAdmin=%s isTenantAdmin=%s",
            user_id,
            ctx.caller_id,
            new_claims.tenant_id,
            is_platform_admin,
            is_tenant_admin,
        )
        return new_claims

    async def fix_all_user_claims(self, ctx: TenantContext) -> ClaimsRepairResult:
        """Re-derive claims for every tenant user from the profile.

        Platform admins are skipped. Per-user and per-tenant failures are
        counted, never fatal.
        """
        total = updated = skipped = errors = 0
        details: list[dict] = []
        for tenant in await self.tenant_repo.list_all():
            try:
                users = await self.user_repo.list_for_tenant(ctx, tenant.id)
            except Exception as exc:
                logger.exception("Claims repair could not list users of tenant %s", tenant.id)
                errors += 1
                details.append({"tenantId": tenant.id, "action": "error", "error": str(exc)})
                continue
            for user in users:
                total += 1
                if user.is_platform_admin:
                    skipped += 1
                    details.append(
                        {"userId": user.id, "email": user.email, "action": "skipped", "reason": "platform admin"}
                    )
                    continue
                is_tenant_admin = user.role_name == ADMIN_ROLE_NAME
                try:
                    await self.claims.set_claims(
                        user.id,
                        Claims(tenant_id=tenant.id, is_platform_admin=False, is_tenant_admin=is_tenant_admin),
                    )
                    await self.user_repo.update_own(
                        user.id, {"customClaimsSet": True, "updatedAt": utc_now()}
                    )
                except Exception as exc:
                    logger.exception("Claims repair failed for user %s", user.id)
                    errors += 1
                    details.append(
                        {"userId": user.id, "email": user.email, "action": "error", "error": str(exc)}
                    )
                    continue
                updated += 1
                details.append(
                    {
                        "userId": user.id,
                        "email": user.email,
                        "action": "updated",
                        "tenantId": tenant.id,
                        "isTenantAdmin": is_tenant_admin,
                    }
                )
        logger.info(
            "Claims repair: %s users, %s updated, %s skipped, %s errors", total, updated, skipped, errors
        )
        return ClaimsRepairResult(
            total=total, updated=updated, skipped=skipped, errors=errors, details=details
        )

    async def update_own_password(
        self, caller: Caller, ctx: TenantContext, user_id: str, new_password: str
    ) -> None:
        """Self-only password change; requires a recent sign-in unless platform admin."""
        self.authz.require_self(caller, ctx, user_id)
        validate_password(new_password, self.min_password_length)
        await self.claims.update_password(user_id, new_password)
        logger.info("Password updated for %s", user_id)
