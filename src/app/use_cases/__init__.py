"""
Use Cases

Organized into domain folders:
- password_reset/: Credential recovery flows
- sessions/: Session lifecycle and suspicious activity detection

Import from subdirectories for better organization.
"""

from .password_reset import (
    ConfirmPasswordResetUseCase,
    PasswordResetMaintenanceUseCase,
    RequestPasswordResetUseCase,
    VerifyResetTokenUseCase,
)
from .sessions import (
    DetectSuspiciousActivityUseCase,
    SessionLifecycleUseCase,
)

__all__ = [
    # Password reset
    "RequestPasswordResetUseCase",
    "VerifyResetTokenUseCase",
    "ConfirmPasswordResetUseCase",
    "PasswordResetMaintenanceUseCase",
    # Sessions
    "SessionLifecycleUseCase",
    "DetectSuspiciousActivityUseCase",
]
