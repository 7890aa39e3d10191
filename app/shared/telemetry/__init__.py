"""Shared telemetry: logging setup."""

from app.shared.telemetry.logging import RequestIDFilter, setup_logging

__all__ = [
    "RequestIDFilter",
    "setup_logging",
]
