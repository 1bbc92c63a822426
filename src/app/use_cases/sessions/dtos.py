"""
Session Use Case DTOs (Data Transfer Objects)

Response classes for session lifecycle and suspicious activity detection.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.domain.entities import AlertType, Session


class SessionInfo(BaseModel):
    """Session projection - never includes the token hash"""

    id: str
    user_id: str
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    last_active_at: datetime
    revoked_at: Optional[datetime] = None
    created_at: datetime
    is_active: bool

    @classmethod
    def from_entity(cls, session: Session) -> "SessionInfo":
        return cls(
            id=str(session.id),
            user_id=str(session.user_id),
            user_agent=session.user_agent,
            ip_address=session.ip_address,
            last_active_at=session.last_active_at,
            revoked_at=session.revoked_at,
            created_at=session.created_at,
            is_active=session.revoked_at is None,
        )


class CreatedSession(BaseModel):
    """Newly created session plus its plaintext token (returned once)"""

    session: SessionInfo
    token: str


class BulkRevokeError(BaseModel):
    session_id: str
    error: str


class BulkRevokeResult(BaseModel):
    """Per-id outcome of a bulk revoke; partial failure is expected"""

    success: int = 0
    failed: int = 0
    errors: List[BulkRevokeError] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class SessionListResponse(BaseModel):
    sessions: List[SessionInfo]
    pagination: Pagination


class SessionStats(BaseModel):
    total_sessions: int
    active_sessions: int
    revoked_sessions: int
    unique_devices: int
    unique_ip_addresses: int
    last_activity: Optional[datetime] = None


class DeviceInfo(BaseModel):
    type: str
    browser: str
    os: str
    is_bot: bool


class SecurityAlert(BaseModel):
    """Observational alert raised after authentication"""

    type: AlertType
    user_id: str
    details: Dict[str, Any]
    timestamp: datetime


class DeviceCount(BaseModel):
    device: str
    count: int


class LocationCount(BaseModel):
    location: str
    count: int


class SessionAnalytics(BaseModel):
    """Activity windows are counted from last_active_at, in UTC"""

    total_sessions: int
    active_sessions: int
    sessions_today: int
    sessions_this_week: int
    sessions_this_month: int
    top_devices: List[DeviceCount]
    top_locations: List[LocationCount]
