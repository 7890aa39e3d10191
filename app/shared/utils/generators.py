"""ID and value generators (e.g. CUID)."""

import hashlib

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_prefixed_id(prefix: str) -> str:
    """Return "<prefix>_<cuid>" (e.g. tenant_..., role_..., tenantop_...)."""
    return f"{prefix}_{generate_cuid()}"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def email_index_key(email: str) -> str:
    """Document id for the unique email index (sha256 of the normalized email)."""
    return hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()
