from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        """Get session by token hash"""
        stmt = select(Session).where(Session.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def touch(self, session_id: UUID, at: datetime) -> bool:
        stmt = update(Session).where(Session.id == session_id).values(last_active_at=at)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke(
        self, session_id: UUID, revoked_at: datetime, user_id: Optional[UUID] = None
    ) -> bool:
        """Revoke a specific session if it is still active"""
        conditions = [Session.id == session_id, Session.revoked_at.is_(None)]
        if user_id is not None:
            conditions.append(Session.user_id == user_id)

        stmt = update(Session).where(*conditions).values(revoked_at=revoked_at)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_for_user(
        self, user_id: UUID, revoked_at: datetime, exclude_session_id: Optional[UUID] = None
    ) -> int:
        """Revoke all active sessions for a user, optionally keeping one"""
        conditions = [Session.user_id == user_id, Session.revoked_at.is_(None)]
        if exclude_session_id is not None:
            conditions.append(Session.id != exclude_session_id)

        stmt = update(Session).where(*conditions).values(revoked_at=revoked_at)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_stale(self, cutoff: datetime) -> int:
        stmt = (
            delete(Session)
            .where(
                or_(
                    and_(Session.revoked_at.is_not(None), Session.revoked_at < cutoff),
                    and_(Session.revoked_at.is_(None), Session.last_active_at < cutoff),
                )
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def exists_with_user_agent(
        self, user_id: UUID, user_agent: str, exclude_session_id: Optional[UUID] = None
    ) -> bool:
        stmt = select(Session.id).where(
            Session.user_id == user_id, Session.user_agent == user_agent
        )
        if exclude_session_id is not None:
            stmt = stmt.where(Session.id != exclude_session_id)
        result = await self.session.exec(stmt.limit(1))
        return result.first() is not None

    async def exists_with_ip_address(
        self, user_id: UUID, ip_address: str, exclude_session_id: Optional[UUID] = None
    ) -> bool:
        stmt = select(Session.id).where(
            Session.user_id == user_id, Session.ip_address == ip_address
        )
        if exclude_session_id is not None:
            stmt = stmt.where(Session.id != exclude_session_id)
        result = await self.session.exec(stmt.limit(1))
        return result.first() is not None

    async def count_by_user(self, user_id: UUID, active: Optional[bool] = None) -> int:
        stmt = select(func.count(Session.id)).where(Session.user_id == user_id)
        if active is True:
            stmt = stmt.where(Session.revoked_at.is_(None))
        elif active is False:
            stmt = stmt.where(Session.revoked_at.is_not(None))
        result = await self.session.exec(stmt)
        return result.one()

    async def list_by_user(
        self, user_id: UUID, active: Optional[bool] = None, offset: int = 0, limit: int = 10
    ) -> List[Session]:
        stmt = select(Session).where(Session.user_id == user_id)
        if active is True:
            stmt = stmt.where(Session.revoked_at.is_(None))
        elif active is False:
            stmt = stmt.where(Session.revoked_at.is_not(None))
        stmt = stmt.order_by(Session.last_active_at.desc()).offset(offset).limit(limit)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count_distinct_user_agents(self, user_id: UUID) -> int:
        stmt = select(func.count(func.distinct(Session.user_agent))).where(
            Session.user_id == user_id, Session.user_agent.is_not(None)
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def count_distinct_ip_addresses(self, user_id: UUID) -> int:
        stmt = select(func.count(func.distinct(Session.ip_address))).where(
            Session.user_id == user_id, Session.ip_address.is_not(None)
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def last_activity(self, user_id: UUID) -> Optional[datetime]:
        stmt = select(func.max(Session.last_active_at)).where(Session.user_id == user_id)
        result = await self.session.exec(stmt)
        return result.one()

    async def count_active_since(self, user_id: UUID, since: datetime) -> int:
        stmt = select(func.count(Session.id)).where(
            Session.user_id == user_id, Session.last_active_at >= since
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def top_user_agents(self, user_id: UUID, limit: int = 5) -> List[Tuple[str, int]]:
        return await self._top_values(Session.user_agent, user_id, limit)

    async def top_ip_addresses(self, user_id: UUID, limit: int = 5) -> List[Tuple[str, int]]:
        return await self._top_values(Session.ip_address, user_id, limit)

    async def _top_values(self, column, user_id: UUID, limit: int) -> List[Tuple[str, int]]:
        """GROUP BY column, ordered by count then value so ties are stable"""
        total = func.count(Session.id)
        stmt = (
            select(column, total)
            .where(Session.user_id == user_id, column.is_not(None))
            .group_by(column)
            .order_by(total.desc(), column)
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return [(value, count) for value, count in result.all()]
