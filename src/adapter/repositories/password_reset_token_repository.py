from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, or_, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.domain.entities import PasswordResetToken


class PasswordResetTokenRepository(IPasswordResetTokenRepository):
    """PasswordResetToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def get_by_token_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        """Get password reset token by token hash"""
        stmt = select(PasswordResetToken).where(PasswordResetToken.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def count_created_since(self, user_id: UUID, since: datetime) -> int:
        stmt = select(func.count(PasswordResetToken.id)).where(
            PasswordResetToken.user_id == user_id,
            PasswordResetToken.created_at >= since,
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def oldest_created_since(self, user_id: UUID, since: datetime) -> Optional[datetime]:
        stmt = select(func.min(PasswordResetToken.created_at)).where(
            PasswordResetToken.user_id == user_id,
            PasswordResetToken.created_at >= since,
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def mark_used_if_unused(self, token_id: UUID, used_at: datetime) -> bool:
        """
        UPDATE ... SET used_at = :used_at WHERE id = :id AND used_at IS NULL

        Concurrent callers race on the row lock; only one sees rowcount == 1.
        """
        stmt = (
            update(PasswordResetToken)
            .where(
                PasswordResetToken.id == token_id,
                PasswordResetToken.used_at.is_(None),
            )
            .values(used_at=used_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def invalidate_unused_for_user(
        self, user_id: UUID, used_at: datetime, exclude_token_id: Optional[UUID] = None
    ) -> int:
        conditions = [
            PasswordResetToken.user_id == user_id,
            PasswordResetToken.used_at.is_(None),
        ]
        if exclude_token_id is not None:
            conditions.append(PasswordResetToken.id != exclude_token_id)

        stmt = update(PasswordResetToken).where(*conditions).values(used_at=used_at)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def get_active_for_user(self, user_id: UUID, now: datetime) -> List[PasswordResetToken]:
        stmt = (
            select(PasswordResetToken)
            .where(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > now,
            )
            .order_by(PasswordResetToken.created_at.desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def delete_by_user_id(self, user_id: UUID) -> int:
        stmt = (
            delete(PasswordResetToken)
            .where(PasswordResetToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_stale(self, now: datetime, retain_since: datetime) -> int:
        stmt = (
            delete(PasswordResetToken)
            .where(
                or_(
                    PasswordResetToken.expires_at <= now,
                    PasswordResetToken.used_at.is_not(None),
                ),
                PasswordResetToken.created_at < retain_since,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
