from __future__ import annotations

import logging
import re
from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE)
SENSITIVE_KEYWORDS = {
    "email",
    "token",
    "secret",
    "password",
    "authorization",
}
# Matched as whole key names so that fields like status_code stay visible.
SENSITIVE_KEYS = {"code", "otp", "pending_code"}
REDACTED = "[REDACTED]"
CORRELATION_ID_HEADER = "x-request-id"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s"
_correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def _is_sensitive_key(key: str) -> bool:
    lower = key.lower()
    return lower in SENSITIVE_KEYS or any(keyword in lower for keyword in SENSITIVE_KEYWORDS)


def redact_text(value: str) -> str:
    return BEARER_RE.sub(rf"\1{REDACTED}", EMAIL_RE.sub(REDACTED, value))


def sanitize_value(value: Any, key_hint: str | None = None) -> Any:
    if key_hint and _is_sensitive_key(key_hint):
        return REDACTED
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, dict):
        return {key: sanitize_value(nested, key) for key, nested in value.items()}
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    return value


def get_correlation_id() -> str | None:
    return _correlation_id_ctx.get()


def set_correlation_id(correlation_id: str) -> Token[str | None]:
    return _correlation_id_ctx.set(correlation_id)


def reset_correlation_id(token: Token[str | None]) -> None:
    _correlation_id_ctx.reset(token)


def new_correlation_id() -> str:
    return uuid4().hex


class RedactingFilter(logging.Filter):
    """Stamps the correlation id on records and masks addresses and bearer tokens."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or "-"
        record.msg = redact_text(record.getMessage())
        record.args = None
        payload = getattr(record, "ops_payload", None)
        if payload is not None:
            record.ops_payload = sanitize_value(payload)
        return True


def configure_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    for handler in root_logger.handlers:
        if any(isinstance(item, RedactingFilter) for item in handler.filters):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RedactingFilter())
    root_logger.addHandler(handler)
