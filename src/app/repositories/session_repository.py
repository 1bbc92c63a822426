from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from src.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        """Get session by SHA-256 hash of its token"""
        pass

    @abstractmethod
    async def touch(self, session_id: UUID, at: datetime) -> bool:
        """Set last_active_at. Returns True if the session exists."""
        pass

    @abstractmethod
    async def revoke(
        self, session_id: UUID, revoked_at: datetime, user_id: Optional[UUID] = None
    ) -> bool:
        """
        Revoke a session where revoked_at IS NULL (and owned by user_id if given).

        Returns True only if a row was changed.
        """
        pass

    @abstractmethod
    async def revoke_all_for_user(
        self, user_id: UUID, revoked_at: datetime, exclude_session_id: Optional[UUID] = None
    ) -> int:
        """Revoke every active session of a user. Returns count of rows changed."""
        pass

    @abstractmethod
    async def delete_stale(self, cutoff: datetime) -> int:
        """
        Delete sessions revoked before cutoff, or never revoked but inactive since
        before cutoff. Returns count of deleted rows.
        """
        pass

    @abstractmethod
    async def exists_with_user_agent(
        self, user_id: UUID, user_agent: str, exclude_session_id: Optional[UUID] = None
    ) -> bool:
        """Whether any session of the user was opened with this user agent"""
        pass

    @abstractmethod
    async def exists_with_ip_address(
        self, user_id: UUID, ip_address: str, exclude_session_id: Optional[UUID] = None
    ) -> bool:
        """Whether any session of the user was opened from this IP address"""
        pass

    @abstractmethod
    async def count_by_user(self, user_id: UUID, active: Optional[bool] = None) -> int:
        """Count sessions of a user, optionally filtered by active/revoked"""
        pass

    @abstractmethod
    async def list_by_user(
        self, user_id: UUID, active: Optional[bool] = None, offset: int = 0, limit: int = 10
    ) -> List[Session]:
        """List sessions of a user, most recently active first"""
        pass

    @abstractmethod
    async def count_distinct_user_agents(self, user_id: UUID) -> int:
        """Count distinct non-null user agents across a user's sessions"""
        pass

    @abstractmethod
    async def count_distinct_ip_addresses(self, user_id: UUID) -> int:
        """Count distinct non-null IP addresses across a user's sessions"""
        pass

    @abstractmethod
    async def last_activity(self, user_id: UUID) -> Optional[datetime]:
        """Most recent last_active_at across a user's sessions"""
        pass

    @abstractmethod
    async def count_active_since(self, user_id: UUID, since: datetime) -> int:
        """Count a user's sessions with last_active_at at or after since"""
        pass

    @abstractmethod
    async def top_user_agents(self, user_id: UUID, limit: int = 5) -> List[Tuple[str, int]]:
        """Most used non-null user agents with their session counts, highest first"""
        pass

    @abstractmethod
    async def top_ip_addresses(self, user_id: UUID, limit: int = 5) -> List[Tuple[str, int]]:
        """Most used non-null IP addresses with their session counts, highest first"""
        pass
