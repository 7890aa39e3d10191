"""Shared utilities: telemetry and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.utils import (
    email_index_key,
    ensure_utc,
    generate_cuid,
    generate_prefixed_id,
    utc_now,
)

__all__ = [
    "email_index_key",
    "ensure_utc",
    "generate_cuid",
    "generate_prefixed_id",
    "utc_now",
]
