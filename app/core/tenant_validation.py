"""Tenant ID format validation.

Shared by TenantContext.resolve and request validation so malformed ids
(path separators, overlong values) never reach a Firestore document path.
"""

import re

# Generated ids look like tenant_<cuid>; legacy ids like tenant_<ms>_<rand>.
TENANT_ID_MAX_LENGTH = 64
_TENANT_ID_RE = re.compile(
    r"^[a-zA-Z0-9_-]{1," + str(TENANT_ID_MAX_LENGTH) + r"}$"
)


def is_valid_tenant_id_format(value: str) -> bool:
    """Return True if value is safe to use as a tenant id / document id."""
    if not value or len(value) > TENANT_ID_MAX_LENGTH:
        return False
    return bool(_TENANT_ID_RE.fullmatch(value))
