from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import PasswordResetToken


class IPasswordResetTokenRepository(ABC):
    """PasswordResetToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        """Get password reset token by token hash"""
        pass

    @abstractmethod
    async def count_created_since(self, user_id: UUID, since: datetime) -> int:
        """Count tokens issued to a user at or after `since`"""
        pass

    @abstractmethod
    async def oldest_created_since(self, user_id: UUID, since: datetime) -> Optional[datetime]:
        """Creation time of the oldest token issued to a user at or after `since`"""
        pass

    @abstractmethod
    async def mark_used_if_unused(self, token_id: UUID, used_at: datetime) -> bool:
        """
        Conditionally set used_at on a token that has not been used yet.

        Must be a single atomic store operation. Returns True only if this
        call changed the row.
        """
        pass

    @abstractmethod
    async def invalidate_unused_for_user(
        self, user_id: UUID, used_at: datetime, exclude_token_id: Optional[UUID] = None
    ) -> int:
        """Mark every unused token of a user as used. Returns count of rows changed."""
        pass

    @abstractmethod
    async def get_active_for_user(self, user_id: UUID, now: datetime) -> List[PasswordResetToken]:
        """Get unused, unexpired tokens of a user"""
        pass

    @abstractmethod
    async def delete_by_user_id(self, user_id: UUID) -> int:
        """Delete every token of a user. Returns count of deleted rows."""
        pass

    @abstractmethod
    async def delete_stale(self, now: datetime, retain_since: datetime) -> int:
        """
        Delete expired or used tokens created before `retain_since`.

        Rows created inside the rate-limit window are kept so attempts can
        still be counted.
        """
        pass
