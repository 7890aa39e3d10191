"""Shared utilities: datetime and id generators."""

from app.shared.utils.datetime import ensure_utc, utc_now
from app.shared.utils.generators import (
    email_index_key,
    generate_cuid,
    generate_prefixed_id,
    normalize_email,
)

__all__ = [
    "email_index_key",
    "ensure_utc",
    "generate_cuid",
    "generate_prefixed_id",
    "normalize_email",
    "utc_now",
]
