from __future__ import annotations

import hmac
import re
import secrets
from datetime import datetime, timedelta
from threading import Lock
from typing import Protocol

from src.auth.clock import Clock

CODE_LENGTH = 6
CODE_RE = re.compile(r"^\d{6}$")


class CodeGenerator(Protocol):
    def next(self) -> str: ...


def is_well_formed_code(value: str) -> bool:
    return bool(CODE_RE.fullmatch(value))


def codes_match(submitted: str, stored: str) -> bool:
    return hmac.compare_digest(submitted.encode("ascii", "replace"), stored.encode("ascii", "replace"))


class SecretsCodeGenerator:
    """Six-digit codes from ``secrets``, never repeated while an earlier issue is live.

    Issued codes are remembered for ``ttl`` so the same digits are not handed
    out twice inside one process before the first issuance has expired.
    """

    def __init__(self, *, clock: Clock, ttl: timedelta) -> None:
        self._clock = clock
        self._ttl = ttl
        self._issued: dict[str, datetime] = {}
        self._lock = Lock()

    def next(self) -> str:
        now = self._clock.now()
        with self._lock:
            self._prune(now)
            while True:
                code = f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"
                if code not in self._issued:
                    self._issued[code] = now + self._ttl
                    return code

    def _prune(self, now: datetime) -> None:
        expired = [code for code, expires_at in self._issued.items() if expires_at <= now]
        for code in expired:
            del self._issued[code]
