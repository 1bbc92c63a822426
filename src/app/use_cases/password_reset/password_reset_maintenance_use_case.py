"""
Password Reset Maintenance Use Case

Housekeeping and administrative operations on reset tokens.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.app.services.security_config import SecurityConfig
from src.app.services.store_guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.libs.result import Result, Return
from .dtos import DeletedTokensResponse, ResetTokenInfo

logger = logging.getLogger(__name__)


class PasswordResetMaintenanceUseCase:
    def __init__(self, uow: UnitOfWork, config: Optional[SecurityConfig] = None):
        self.uow = uow
        self.config = config or SecurityConfig()

    async def cleanup_expired_tokens(self) -> Result[DeletedTokensResponse]:
        """
        Delete expired and used tokens that fall outside the rate-limit window.

        Meant to run periodically (cron / background job).
        """
        return await guarded(
            self._cleanup(), self.config.store_timeout_seconds, "Reset token cleanup"
        )

    async def _cleanup(self) -> Result[DeletedTokensResponse]:
        async with self.uow:
            now = datetime.utcnow()
            deleted = await self.uow.password_reset_tokens.delete_stale(
                now, now - self.config.rate_limit_window
            )
            await self.uow.commit()

        logger.info(f"Reset token cleanup removed {deleted} row(s)")
        return Return.ok(DeletedTokensResponse(deleted_count=deleted))

    async def get_user_active_tokens(self, user_id: UUID) -> Result[List[ResetTokenInfo]]:
        return await guarded(
            self._active_tokens(user_id),
            self.config.store_timeout_seconds,
            "Active reset token lookup",
        )

    async def _active_tokens(self, user_id: UUID) -> Result[List[ResetTokenInfo]]:
        async with self.uow:
            tokens = await self.uow.password_reset_tokens.get_active_for_user(
                user_id, datetime.utcnow()
            )
            return Return.ok(
                [
                    ResetTokenInfo(
                        id=str(token.id),
                        created_at=token.created_at,
                        expires_at=token.expires_at,
                    )
                    for token in tokens
                ]
            )

    async def cancel_user_reset_tokens(self, user_id: UUID) -> Result[DeletedTokensResponse]:
        return await guarded(
            self._cancel(user_id),
            self.config.store_timeout_seconds,
            "Reset token cancellation",
        )

    async def _cancel(self, user_id: UUID) -> Result[DeletedTokensResponse]:
        async with self.uow:
            deleted = await self.uow.password_reset_tokens.delete_by_user_id(user_id)
            await self.uow.commit()

        logger.info(f"Cancelled {deleted} reset token(s) for user {user_id}")
        return Return.ok(DeletedTokensResponse(deleted_count=deleted))
