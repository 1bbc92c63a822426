"""
Password Reset Use Case DTOs (Data Transfer Objects)

Response classes for the password reset flow.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


GENERIC_RESET_REQUEST_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)


class RequestPasswordResetResponse(BaseModel):
    """Response for request password reset use case"""

    success: bool
    message: str
    # Only populated outside production, for handing to the notification channel
    token: Optional[str] = None


class ResetTokenUser(BaseModel):
    """Sanitized user projection - never ids, hashes or timestamps"""

    name: str
    email: str


class VerifyResetTokenResponse(BaseModel):
    """Response for verify reset token use case"""

    valid: bool
    user: ResetTokenUser


class ConfirmPasswordResetResponse(BaseModel):
    """Response for confirm password reset use case"""

    success: bool
    message: str


class ResetTokenInfo(BaseModel):
    """Active reset token as shown to administrators (no hash)"""

    id: str
    created_at: datetime
    expires_at: datetime


class DeletedTokensResponse(BaseModel):
    """Response for token cleanup / cancellation"""

    deleted_count: int
