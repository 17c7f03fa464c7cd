from __future__ import annotations

from enum import Enum


class AuthErrorCode(str, Enum):
    DOMAIN_NOT_ALLOWED = "DomainNotAllowed"
    UNKNOWN_ACCOUNT = "UnknownAccount"
    INVALID_CODE = "InvalidCode"
    CODE_EXPIRED = "CodeExpired"
    HANDLE_REQUIRED = "HandleRequired"
    HANDLE_TAKEN = "HandleTaken"
    HANDLE_INVALID = "HandleInvalid"
    TOKEN_REQUIRED = "TokenRequired"
    TOKEN_REJECTED = "TokenRejected"
    ACCOUNT_DISABLED = "AccountDisabled"
    MAIL_DELIVERY_FAILED = "MailDeliveryFailed"
    STORE_UNAVAILABLE = "StoreUnavailable"


class AuthError(Exception):
    """Base class for failures surfaced by the auth core and the request gate.

    Each subclass fixes the external error code and HTTP status; the message
    is human readable and safe to return to clients.
    """

    code: AuthErrorCode
    status_code: int = 400
    default_message: str = "authentication failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, str]:
        return {"error": self.code.value, "message": self.message}


class DomainNotAllowed(AuthError):
    code = AuthErrorCode.DOMAIN_NOT_ALLOWED
    default_message = "email domain is not allowed"


class UnknownAccount(AuthError):
    code = AuthErrorCode.UNKNOWN_ACCOUNT
    default_message = "account not found or not verified"


class InvalidCode(AuthError):
    code = AuthErrorCode.INVALID_CODE
    default_message = "invalid verification code"


class CodeExpired(AuthError):
    code = AuthErrorCode.CODE_EXPIRED
    default_message = "verification code has expired"


class HandleRequired(AuthError):
    code = AuthErrorCode.HANDLE_REQUIRED
    default_message = "an anonymous name is required"


class HandleTaken(AuthError):
    code = AuthErrorCode.HANDLE_TAKEN
    default_message = "anonymous name already taken"


class HandleInvalid(AuthError):
    code = AuthErrorCode.HANDLE_INVALID
    default_message = "anonymous name is too long"


class TokenRequired(AuthError):
    code = AuthErrorCode.TOKEN_REQUIRED
    status_code = 401
    default_message = "access token required"


class TokenRejected(AuthError):
    code = AuthErrorCode.TOKEN_REJECTED
    status_code = 403
    default_message = "invalid or expired token"


class AccountDisabled(AuthError):
    code = AuthErrorCode.ACCOUNT_DISABLED
    status_code = 401
    default_message = "invalid or inactive account"


class MailDeliveryFailed(AuthError):
    code = AuthErrorCode.MAIL_DELIVERY_FAILED
    status_code = 500
    default_message = "failed to send verification code, please retry"


class StoreUnavailable(AuthError):
    code = AuthErrorCode.STORE_UNAVAILABLE
    status_code = 500
    default_message = "storage unavailable"
