"""
In-memory UnitOfWork for exercising use cases without a database.

Writes are applied immediately (commit/rollback only count calls), but every
conditional update checks and sets without yielding to the event loop, which
gives the same atomicity a row-level conditional UPDATE gives in SQL.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.app.repositories.session_repository import ISessionRepository
from src.app.repositories.user_repository import IUserRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import PasswordResetToken, Session, User


class InMemoryStore:
    def __init__(self):
        self.users: Dict[UUID, User] = {}
        self.tokens: Dict[UUID, PasswordResetToken] = {}
        self.sessions: Dict[UUID, Session] = {}
        self.password_updates = 0

    def add_user(self, user: User) -> User:
        self.users[user.id] = user
        return user


class InMemoryUserRepository(IUserRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        return next((u for u in self.store.users.values() if u.email.lower() == wanted), None)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return self.store.users.get(user_id)

    async def update_password_hash(
        self, user_id: UUID, password_hash: str, updated_at: datetime
    ) -> bool:
        user = self.store.users.get(user_id)
        if user is None:
            return False
        user.password_hash = password_hash
        user.updated_at = updated_at
        self.store.password_updates += 1
        return True


class InMemoryPasswordResetTokenRepository(IPasswordResetTokenRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _for_user(self, user_id: UUID) -> List[PasswordResetToken]:
        return [t for t in self.store.tokens.values() if t.user_id == user_id]

    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        self.store.tokens[token.id] = token
        return token

    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        return next((t for t in self.store.tokens.values() if t.token_hash == token_hash), None)

    async def count_created_since(self, user_id: UUID, since: datetime) -> int:
        return len([t for t in self._for_user(user_id) if t.created_at >= since])

    async def oldest_created_since(self, user_id: UUID, since: datetime) -> Optional[datetime]:
        times = [t.created_at for t in self._for_user(user_id) if t.created_at >= since]
        return min(times) if times else None

    async def mark_used_if_unused(self, token_id: UUID, used_at: datetime) -> bool:
        token = self.store.tokens.get(token_id)
        if token is None or token.used_at is not None:
            return False
        token.used_at = used_at
        return True

    async def invalidate_unused_for_user(
        self, user_id: UUID, used_at: datetime, exclude_token_id: Optional[UUID] = None
    ) -> int:
        count = 0
        for token in self._for_user(user_id):
            if token.used_at is None and token.id != exclude_token_id:
                token.used_at = used_at
                count += 1
        return count

    async def get_active_for_user(self, user_id: UUID, now: datetime) -> List[PasswordResetToken]:
        return [
            t for t in self._for_user(user_id) if t.used_at is None and t.expires_at > now
        ]

    async def delete_by_user_id(self, user_id: UUID) -> int:
        doomed = [t.id for t in self._for_user(user_id)]
        for token_id in doomed:
            del self.store.tokens[token_id]
        return len(doomed)

    async def delete_stale(self, now: datetime, retain_since: datetime) -> int:
        doomed = [
            t.id
            for t in self.store.tokens.values()
            if (t.expires_at <= now or t.used_at is not None) and t.created_at < retain_since
        ]
        for token_id in doomed:
            del self.store.tokens[token_id]
        return len(doomed)


class InMemorySessionRepository(ISessionRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _for_user(
        self, user_id: UUID, exclude_session_id: Optional[UUID] = None
    ) -> List[Session]:
        return [
            s
            for s in self.store.sessions.values()
            if s.user_id == user_id and s.id != exclude_session_id
        ]

    @staticmethod
    def _matches(session: Session, active: Optional[bool]) -> bool:
        if active is None:
            return True
        return (session.revoked_at is None) == active

    async def create(self, session: Session) -> Session:
        self.store.sessions[session.id] = session
        return session

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        return self.store.sessions.get(session_id)

    async def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        return next(
            (s for s in self.store.sessions.values() if s.token_hash == token_hash), None
        )

    async def touch(self, session_id: UUID, at: datetime) -> bool:
        session = self.store.sessions.get(session_id)
        if session is None:
            return False
        session.last_active_at = at
        return True

    async def revoke(
        self, session_id: UUID, revoked_at: datetime, user_id: Optional[UUID] = None
    ) -> bool:
        session = self.store.sessions.get(session_id)
        if session is None or session.revoked_at is not None:
            return False
        if user_id is not None and session.user_id != user_id:
            return False
        session.revoked_at = revoked_at
        return True

    async def revoke_all_for_user(
        self, user_id: UUID, revoked_at: datetime, exclude_session_id: Optional[UUID] = None
    ) -> int:
        count = 0
        for session in self._for_user(user_id, exclude_session_id):
            if session.revoked_at is None:
                session.revoked_at = revoked_at
                count += 1
        return count

    async def delete_stale(self, cutoff: datetime) -> int:
        doomed = [
            s.id
            for s in self.store.sessions.values()
            if (s.revoked_at is not None and s.revoked_at < cutoff)
            or (s.revoked_at is None and s.last_active_at < cutoff)
        ]
        for session_id in doomed:
            del self.store.sessions[session_id]
        return len(doomed)

    async def exists_with_user_agent(
        self, user_id: UUID, user_agent: str, exclude_session_id: Optional[UUID] = None
    ) -> bool:
        return any(s.user_agent == user_agent for s in self._for_user(user_id, exclude_session_id))

    async def exists_with_ip_address(
        self, user_id: UUID, ip_address: str, exclude_session_id: Optional[UUID] = None
    ) -> bool:
        return any(s.ip_address == ip_address for s in self._for_user(user_id, exclude_session_id))

    async def count_by_user(self, user_id: UUID, active: Optional[bool] = None) -> int:
        return len([s for s in self._for_user(user_id) if self._matches(s, active)])

    async def list_by_user(
        self, user_id: UUID, active: Optional[bool] = None, offset: int = 0, limit: int = 10
    ) -> List[Session]:
        sessions = sorted(
            (s for s in self._for_user(user_id) if self._matches(s, active)),
            key=lambda s: s.last_active_at,
            reverse=True,
        )
        return sessions[offset:offset + limit]

    async def count_distinct_user_agents(self, user_id: UUID) -> int:
        return len({s.user_agent for s in self._for_user(user_id) if s.user_agent is not None})

    async def count_distinct_ip_addresses(self, user_id: UUID) -> int:
        return len({s.ip_address for s in self._for_user(user_id) if s.ip_address is not None})

    async def last_activity(self, user_id: UUID) -> Optional[datetime]:
        times = [s.last_active_at for s in self._for_user(user_id)]
        return max(times) if times else None

    async def count_active_since(self, user_id: UUID, since: datetime) -> int:
        return len([s for s in self._for_user(user_id) if s.last_active_at >= since])

    async def top_user_agents(self, user_id: UUID, limit: int = 5) -> List[Tuple[str, int]]:
        return self._top_values([s.user_agent for s in self._for_user(user_id)], limit)

    async def top_ip_addresses(self, user_id: UUID, limit: int = 5) -> List[Tuple[str, int]]:
        return self._top_values([s.ip_address for s in self._for_user(user_id)], limit)

    @staticmethod
    def _top_values(values: List[Optional[str]], limit: int) -> List[Tuple[str, int]]:
        counts = Counter(v for v in values if v is not None)
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: InMemoryStore):
        self.store = store
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self):
        self.users = InMemoryUserRepository(self.store)
        self.sessions = InMemorySessionRepository(self.store)
        self.password_reset_tokens = InMemoryPasswordResetTokenRepository(self.store)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1
