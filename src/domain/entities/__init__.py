"""
Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import AlertType, UserStatus

# Export all entities
from .user import User
from .session import Session
from .password_reset_token import PasswordResetToken

__all__ = [
    # Enums
    "UserStatus",
    "AlertType",
    # Entities
    "User",
    "Session",
    "PasswordResetToken",
]
