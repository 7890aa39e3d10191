"""Authorization gate: platform-admin-only, same-tenant and self-only checks.

Claims are the source of truth. The profile's isPlatformAdmin flag is
display-only, but a caller is still accepted as platform admin when either
source says so; any disagreement between the two is logged so drift can be
repaired (see ClaimsService.fix_all_user_claims).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from app.application.dtos.claims import Caller
from app.application.interfaces.repositories import IUserRepository
from app.core.tenant_context import TenantContext
from app.domain.enums import AdminFlagCheck
from app.domain.exceptions import AuthorizationException
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Resolves a caller into a TenantContext and enforces access rules."""

    def __init__(
        self,
        user_repo: IUserRepository,
        reauth_max_age_seconds: int = 300,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.user_repo = user_repo
        self.reauth_max_age = timedelta(seconds=reauth_max_age_seconds)
        self._clock = clock

    async def check_platform_admin_flags(self, caller: Caller) -> AdminFlagCheck:
        """Compare the platform-admin claim with the caller's profile flag."""
        profile = await self.user_repo.get_own(caller.uid)
        profile_flag = bool(profile and profile.is_platform_admin)
        claim_flag = caller.claims.is_platform_admin
        if claim_flag and profile_flag:
            return AdminFlagCheck.BOTH_TRUE
        if not claim_flag and not profile_flag:
            return AdminFlagCheck.BOTH_FALSE
        logger.warning(
            "Platform admin flag drift for %s: claim=%s profile=%s",
            caller.uid,
            claim_flag,
            profile_flag,
        )
        return AdminFlagCheck.DISAGREE

    async def resolve_context(self, caller: Caller) -> TenantContext:
        """Build the explicit TenantContext every scoped call receives."""
        check = await self.check_platform_admin_flags(caller)
        is_platform_admin = check is not AdminFlagCheck.BOTH_FALSE
        return TenantContext(
            caller_id=caller.uid,
            tenant_id=None if is_platform_admin else caller.claims.tenant_id,
            is_platform_admin=is_platform_admin,
            is_tenant_admin=caller.claims.is_tenant_admin,
            caller_email=caller.email,
        )

    async def require_platform_admin(self, caller: Caller) -> TenantContext:
        """Return the caller's context, or raise AuthorizationException."""
        ctx = await self.resolve_context(caller)
        if not ctx.is_platform_admin:
            raise AuthorizationException("Only platform administrators can perform this operation")
        return ctx

    def require_self(self, caller: Caller, ctx: TenantContext, owner_id: str) -> None:
        """Caller must own the resource and, unless platform admin, have signed in recently."""
        if caller.uid != owner_id:
            raise AuthorizationException("Can only perform this operation on your own account")
        if ctx.is_platform_admin:
            return
        if caller.auth_time is None or self._clock() - caller.auth_time > self.reauth_max_age:
            raise AuthorizationException("Recent sign-in required for this operation")
