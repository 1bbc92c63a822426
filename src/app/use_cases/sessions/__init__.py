"""
Session Use Cases

Session lifecycle management and suspicious activity detection.
"""

from .session_lifecycle_use_case import SessionLifecycleUseCase
from .detect_suspicious_activity_use_case import DetectSuspiciousActivityUseCase
from .user_agent import parse_user_agent
from .dtos import (
    SessionInfo,
    CreatedSession,
    BulkRevokeError,
    BulkRevokeResult,
    Pagination,
    SessionListResponse,
    SessionStats,
    SessionAnalytics,
    DeviceCount,
    LocationCount,
    DeviceInfo,
    SecurityAlert,
)

__all__ = [
    # Use Cases
    "SessionLifecycleUseCase",
    "DetectSuspiciousActivityUseCase",
    "parse_user_agent",
    # DTOs
    "SessionInfo",
    "CreatedSession",
    "BulkRevokeError",
    "BulkRevokeResult",
    "Pagination",
    "SessionListResponse",
    "SessionStats",
    "SessionAnalytics",
    "DeviceCount",
    "LocationCount",
    "DeviceInfo",
    "SecurityAlert",
]
