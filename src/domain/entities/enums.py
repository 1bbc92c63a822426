"""
Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    inactive = "inactive"
    banned = "banned"


class AlertType(str, Enum):
    """Suspicious activity alert types"""

    NEW_DEVICE = "NEW_DEVICE"
    SUSPICIOUS_LOCATION = "SUSPICIOUS_LOCATION"
    CONCURRENT_SESSIONS = "CONCURRENT_SESSIONS"
