from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from functools import lru_cache
from uuid import UUID

from src.auth.clock import Clock, SystemClock
from src.config import get_settings

TOKEN_VERSION = 1


class TokenStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenCheck:
    status: TokenStatus
    account_id: UUID | None = None

    @property
    def ok(self) -> bool:
        return self.status is TokenStatus.VALID


def _base64url_encode(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).rstrip(b"=").decode("ascii")


def _base64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(f"{value}{padding}".encode("ascii"))


def _sign(payload_b64: str, secret: str) -> str:
    signature = hmac.new(secret.encode("utf-8"), payload_b64.encode("ascii"), hashlib.sha256).digest()
    return _base64url_encode(signature)


class TokenCodec:
    """Signs and checks bearer tokens of the form ``<payload>.<signature>``.

    The payload is compact JSON ``{"sub", "iat", "exp", "v"}`` with integer
    epoch seconds; the signature is HMAC-SHA256 over the encoded payload.
    """

    def __init__(self, *, secret: str, ttl: timedelta, clock: Clock | None = None) -> None:
        if not secret:
            raise ValueError("token signing secret must be provided")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock or SystemClock()

    def issue(self, account_id: UUID) -> str:
        issued_at = self._clock.now()
        expires_at = issued_at + self._ttl
        payload = {
            "sub": str(account_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "v": TOKEN_VERSION,
        }
        payload_json = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        payload_b64 = _base64url_encode(payload_json)
        return f"{payload_b64}.{_sign(payload_b64, self._secret)}"

    def verify(self, token: str) -> TokenCheck:
        invalid = TokenCheck(TokenStatus.INVALID)
        parts = token.split(".")
        if len(parts) != 2:
            return invalid
        payload_b64, signature_b64 = parts
        try:
            expected_signature = _sign(payload_b64, self._secret)
        except UnicodeEncodeError:
            return invalid
        if not hmac.compare_digest(signature_b64.encode("utf-8"), expected_signature.encode("ascii")):
            return invalid

        try:
            payload = json.loads(_base64url_decode(payload_b64))
        except (ValueError, UnicodeDecodeError):
            return invalid

        if not isinstance(payload, dict):
            return invalid
        subject = payload.get("sub")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not isinstance(issued_at, int) or not isinstance(expires_at, int):
            return invalid
        try:
            account_id = UUID(subject)
        except ValueError:
            return invalid

        if int(self._clock.now().timestamp()) >= expires_at:
            return TokenCheck(TokenStatus.EXPIRED, account_id)
        return TokenCheck(TokenStatus.VALID, account_id)


@lru_cache(maxsize=1)
def get_token_codec() -> TokenCodec:
    settings = get_settings()
    return TokenCodec(secret=settings.jwt_secret, ttl=timedelta(seconds=settings.token_ttl_seconds))
