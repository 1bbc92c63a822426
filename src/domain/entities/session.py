"""
Session Entity

Ties an authenticated user to a device/network context.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel


class Session(SQLModel, table=True):
    """
    Session entity - one authenticated device/network context.

    Business Rules:
    - Session tokens are stored as SHA-256 hashes
    - revoked_at goes from NULL to a timestamp exactly once
    - Active means revoked_at IS NULL
    - Old revoked or inactive sessions are purged by cleanup
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    token_hash: str = Field(unique=True, max_length=64)  # SHA-256 output

    user_agent: Optional[str] = Field(default=None, max_length=512)
    ip_address: Optional[str] = Field(default=None, max_length=45)

    # Timestamps
    last_active_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime, nullable=False)
    )
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime, nullable=False)
    )

    __table_args__ = (
        Index("idx_session_user_revoked", "user_id", "revoked_at"),
        Index("idx_session_last_active_at", "last_active_at"),
        Index("idx_session_user_agent", "user_id", "user_agent"),
        Index("idx_session_ip_address", "user_id", "ip_address"),
    )

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None
