from __future__ import annotations

import logging

from src.ops.events import (
    REDACTED,
    RedactingFilter,
    get_correlation_id,
    redact_text,
    reset_correlation_id,
    sanitize_value,
    set_correlation_id,
)


def test_redact_text_masks_emails_and_bearer_tokens() -> None:
    text = redact_text("alice@pec.edu.in sent Authorization: Bearer abc.def-123")
    assert "alice@pec.edu.in" not in text
    assert "abc.def-123" not in text
    assert text.count(REDACTED) == 2


def test_sanitize_value_masks_sensitive_keys() -> None:
    clean = sanitize_value({"account_id": "42", "otp": "123456", "nested": {"token": "x"}})
    assert clean == {"account_id": "42", "otp": REDACTED, "nested": {"token": REDACTED}}


def test_sanitize_value_keeps_status_code() -> None:
    clean = sanitize_value(
        {"method": "POST", "status_code": 200, "duration_ms": 3, "code": "123456", "pending_code": "654321"}
    )
    assert clean["status_code"] == 200
    assert clean["duration_ms"] == 3
    assert clean["code"] == REDACTED
    assert clean["pending_code"] == REDACTED


def test_filter_stamps_correlation_id_and_redacts() -> None:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "mail to %s", ("bob@pec.edu.in",), None)
    record.ops_payload = {"email": "bob@pec.edu.in"}
    token = set_correlation_id("trace-1")
    try:
        assert RedactingFilter().filter(record) is True
    finally:
        reset_correlation_id(token)

    assert record.correlation_id == "trace-1"
    assert record.getMessage() == f"mail to {REDACTED}"
    assert record.ops_payload == {"email": REDACTED}
    assert get_correlation_id() is None
