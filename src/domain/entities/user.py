"""
User Entity

Account record owned by the account module. Credential recovery only reads it
and replaces the password hash.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import UserStatus


class User(SQLModel, table=True):
    """
    User entity - the principal owning reset tokens and sessions.

    Business Rules:
    - Email is unique and stored lower-cased
    - Password stored as bcrypt hash (cost factor 12 by default)
    - Only active users may reset their password
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    status: UserStatus = Field(default=UserStatus.active)

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_user_status", "status"),)
