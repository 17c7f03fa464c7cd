from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.auth.clock import Clock
from src.auth.codes import CodeGenerator, codes_match, is_well_formed_code
from src.auth.errors import (
    CodeExpired,
    DomainNotAllowed,
    HandleInvalid,
    HandleRequired,
    HandleTaken,
    InvalidCode,
    MailDeliveryFailed,
    UnknownAccount,
)
from src.auth.store import IdentityStore
from src.email.sender import Mailer, send_verification_code
from src.models.account import Account, PendingCode
from src.security.tokens import TokenCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeIssued:
    email: str


@dataclass(frozen=True)
class SessionGranted:
    token: str
    account: Account


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthEngine:
    """One-time-code enrollment and login for a single email domain.

    Issuance persists the pending code before mailing it, so a mail that
    arrives can always be redeemed. A failed mail still leaves that stored
    code redeemable until it expires. Redemption clears the code in the same
    save that records the transition.
    """

    def __init__(
        self,
        *,
        store: IdentityStore,
        mailer: Mailer,
        codes: CodeGenerator,
        tokens: TokenCodec,
        clock: Clock,
        domain_suffix: str,
        code_ttl: timedelta,
        handle_max_length: int = 20,
    ) -> None:
        self._store = store
        self._mailer = mailer
        self._codes = codes
        self._tokens = tokens
        self._clock = clock
        self._domain_suffix = domain_suffix.lower()
        self._code_ttl = code_ttl
        self._handle_max_length = handle_max_length

    @property
    def domain_suffix(self) -> str:
        return self._domain_suffix

    def email_allowed(self, email: str) -> bool:
        normalized = normalize_email(email)
        local_part = normalized[: -len(self._domain_suffix)]
        return normalized.endswith(self._domain_suffix) and bool(local_part) and "@" not in local_part

    async def request_enrollment_code(self, email: str) -> CodeIssued:
        email = normalize_email(email)
        if not self.email_allowed(email):
            raise DomainNotAllowed(f"Only {self._domain_suffix} email addresses are allowed")

        now = self._clock.now()
        account = await self._store.load_by_email(email)
        if account is None:
            account = Account(email=email)
        await self._issue_code(account, now)
        return CodeIssued(email=email)

    async def verify_enrollment_code(self, email: str, code: str, handle: str | None = None) -> SessionGranted:
        email = normalize_email(email)
        now = self._clock.now()
        account = await self._store.load_by_email(email)
        if account is None:
            raise UnknownAccount("User not found")
        self._check_code(account, code, now)

        handle = (handle or "").strip()
        if not account.verified and not handle:
            raise HandleRequired()
        if handle and handle != account.handle:
            await self._claim_handle(account, handle)
        elif handle:
            await self._ensure_handle_free(account, handle)

        account.verified = True
        account.pending_code = None
        account = await self._store.save(account)
        logger.info(
            "Account verified",
            extra={"event_type": "auth.enrollment.verified", "ops_payload": {"account_id": str(account.id)}},
        )
        return self._grant(account)

    async def request_login_code(self, email: str) -> CodeIssued:
        email = normalize_email(email)
        now = self._clock.now()
        account = await self._store.load_by_email(email)
        if account is None or not account.verified:
            raise UnknownAccount("User not found or not verified. Please register first.")
        await self._issue_code(account, now)
        return CodeIssued(email=email)

    async def verify_login_code(self, email: str, code: str) -> SessionGranted:
        email = normalize_email(email)
        now = self._clock.now()
        account = await self._store.load_by_email(email)
        if account is None or not account.verified:
            raise UnknownAccount("User not found")
        self._check_code(account, code, now)

        account.pending_code = None
        account = await self._store.save(account)
        logger.info(
            "Login verified",
            extra={"event_type": "auth.login.verified", "ops_payload": {"account_id": str(account.id)}},
        )
        return self._grant(account)

    async def change_handle(self, account: Account, handle: str) -> Account:
        handle = handle.strip()
        if not handle:
            raise HandleRequired()
        if handle == account.handle:
            return account
        await self._claim_handle(account, handle)
        return await self._store.save(account)

    async def _issue_code(self, account: Account, now: datetime) -> None:
        code = self._codes.next()
        account.pending_code = PendingCode(code=code, expires_at=now + self._code_ttl)
        account = await self._store.save(account)
        logger.info(
            "Verification code stored",
            extra={
                "event_type": "auth.code.issued",
                "ops_payload": {"account_id": str(account.id), "verified": account.verified},
            },
        )

        expiry_minutes = max(1, int(self._code_ttl.total_seconds()) // 60)
        sent = await send_verification_code(self._mailer, to=account.email, code=code, expiry_minutes=expiry_minutes)
        if not sent:
            logger.warning(
                "Failed to mail verification code to %s; stored code remains valid",
                account.email,
                extra={"event_type": "auth.code.mail_failed"},
            )
            raise MailDeliveryFailed()

    def _check_code(self, account: Account, code: str, now: datetime) -> None:
        pending = account.pending_code
        if pending is None or not is_well_formed_code(code) or not codes_match(code, pending.code):
            raise InvalidCode("Invalid OTP")
        if not pending.is_live(now):
            raise CodeExpired("OTP has expired")

    async def _claim_handle(self, account: Account, handle: str) -> None:
        if len(handle) > self._handle_max_length:
            raise HandleInvalid(f"Anonymous name must be at most {self._handle_max_length} characters")
        await self._ensure_handle_free(account, handle)
        account.handle = handle

    async def _ensure_handle_free(self, account: Account, handle: str) -> None:
        holder = await self._store.load_by_handle(handle)
        if holder is not None and holder.id != account.id:
            raise HandleTaken("Anonymous name already taken. Please choose another.")

    def _grant(self, account: Account) -> SessionGranted:
        if account.id is None:
            raise ValueError("cannot grant a session for an account the store has not saved")
        return SessionGranted(token=self._tokens.issue(account.id), account=account)
