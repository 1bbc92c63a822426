"""
Domain Error Codes

Typed error codes returned inside Result errors. Callers branch on the code,
never on the message text.
"""

from enum import Enum
from typing import List, Optional

from src.libs.result import Error


class ErrorCode(str, Enum):
    """Error taxonomy for credential recovery and session security"""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_OR_EXPIRED_TOKEN = "INVALID_OR_EXPIRED_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_ALREADY_USED = "TOKEN_ALREADY_USED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    UNAUTHORIZED = "UNAUTHORIZED"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Single message for every token failure that must stay indistinguishable
INVALID_OR_EXPIRED_TOKEN_MESSAGE = "Invalid or expired password reset token"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def validation_failed(message: str, feedback: Optional[List[str]] = None) -> Error:
    details = {"feedback": feedback} if feedback else {}
    return Error(ErrorCode.VALIDATION_FAILED.value, message, details)


def invalid_or_expired_token() -> Error:
    return Error(ErrorCode.INVALID_OR_EXPIRED_TOKEN.value, INVALID_OR_EXPIRED_TOKEN_MESSAGE)


def token_expired() -> Error:
    return Error(ErrorCode.TOKEN_EXPIRED.value, "Password reset token has expired")


def token_already_used() -> Error:
    return Error(ErrorCode.TOKEN_ALREADY_USED.value, "Password reset token has already been used")


def rate_limit_exceeded(retry_after_seconds: int) -> Error:
    minutes = max(1, -(-retry_after_seconds // 60))
    unit = "minute" if minutes == 1 else "minutes"
    return Error(
        ErrorCode.RATE_LIMIT_EXCEEDED.value,
        f"Too many password reset attempts. Please try again in {minutes} {unit}.",
        {"retry_after_seconds": retry_after_seconds},
    )


def unauthorized(message: str = "Invalid or expired credentials") -> Error:
    return Error(ErrorCode.UNAUTHORIZED.value, message)


def session_not_found() -> Error:
    return Error(ErrorCode.SESSION_NOT_FOUND.value, "Session not found or already revoked")


def internal_error() -> Error:
    return Error(ErrorCode.INTERNAL_ERROR.value, INTERNAL_ERROR_MESSAGE)
