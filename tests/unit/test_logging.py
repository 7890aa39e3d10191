"""Tests for request ID stamping on log records."""

import logging

from app.middleware.request_id import request_id_var, sanitize_request_id
from app.shared.telemetry.logging import RequestIDFilter


def make_record() -> logging.LogRecord:
    return logging.LogRecord("app", logging.INFO, __file__, 1, "hello", None, None)


def test_filter_stamps_current_request_id() -> None:
    token = request_id_var.set("req-42")
    try:
        record = make_record()
        assert RequestIDFilter().filter(record) is True
        assert record.request_id == "req-42"
    finally:
        request_id_var.reset(token)


def test_filter_outside_request_uses_placeholder() -> None:
    record = make_record()
    RequestIDFilter().filter(record)
    assert record.request_id == "-"


def test_sanitize_request_id() -> None:
    assert sanitize_request_id(" abc-123 ") == "abc-123"
    assert sanitize_request_id("x" * 65) != "x" * 65
    assert sanitize_request_id("a\nb") != "a\nb"
    assert len(sanitize_request_id(None)) == 36
