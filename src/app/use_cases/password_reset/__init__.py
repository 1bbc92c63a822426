"""
Password Reset Use Cases

Request, verify and confirm steps of credential recovery.
"""

from .request_password_reset_use_case import RequestPasswordResetUseCase
from .verify_reset_token_use_case import VerifyResetTokenUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .password_reset_maintenance_use_case import PasswordResetMaintenanceUseCase
from .dtos import (
    GENERIC_RESET_REQUEST_MESSAGE,
    RequestPasswordResetResponse,
    ResetTokenUser,
    VerifyResetTokenResponse,
    ConfirmPasswordResetResponse,
    ResetTokenInfo,
    DeletedTokensResponse,
)

__all__ = [
    # Use Cases
    "RequestPasswordResetUseCase",
    "VerifyResetTokenUseCase",
    "ConfirmPasswordResetUseCase",
    "PasswordResetMaintenanceUseCase",
    # DTOs
    "GENERIC_RESET_REQUEST_MESSAGE",
    "RequestPasswordResetResponse",
    "ResetTokenUser",
    "VerifyResetTokenResponse",
    "ConfirmPasswordResetResponse",
    "ResetTokenInfo",
    "DeletedTokensResponse",
]
