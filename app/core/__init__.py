"""Core: config, tenant context, and application bootstrap.

Single place for settings and request-scoped tenant resolution.
"""

from app.core.config import Settings, get_settings
from app.core.tenant_context import TenantContext

__all__ = ["Settings", "TenantContext", "get_settings"]
