"""
Password reset rate limiter.

Attempts are not stored separately: they are the creation timestamps of the
user's reset tokens inside a trailing window. Count and insert run in the same
transaction; on stores without serializable isolation a burst of concurrent
requests from one user may overshoot the limit slightly.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.domain.errors import rate_limit_exceeded
from src.libs.result import Result, Return

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_WINDOW = timedelta(hours=1)


class ResetRateLimiter:
    def __init__(self, tokens: IPasswordResetTokenRepository):
        self.tokens = tokens

    async def attempts_within(
        self, user_id: UUID, window: timedelta, now: Optional[datetime] = None
    ) -> int:
        now = now or datetime.utcnow()
        return await self.tokens.count_created_since(user_id, now - window)

    async def enforce(
        self,
        user_id: UUID,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window: timedelta = DEFAULT_WINDOW,
        now: Optional[datetime] = None,
    ) -> Result[None]:
        """
        Err(RATE_LIMIT_EXCEEDED) when the user already has max_attempts within
        the window. retry_after is the time until the oldest counted attempt
        leaves the window.
        """
        now = now or datetime.utcnow()
        window_start = now - window

        attempts = await self.tokens.count_created_since(user_id, window_start)
        if attempts < max_attempts:
            return Return.ok(None)

        oldest = await self.tokens.oldest_created_since(user_id, window_start)
        if oldest is None:
            retry_after = window
        else:
            retry_after = oldest + window - now
        retry_after_seconds = max(1, math.ceil(retry_after.total_seconds()))

        logger.warning(
            f"Password reset rate limit hit for user {user_id}: "
            f"{attempts} attempts, retry after {retry_after_seconds}s"
        )
        return Return.err(rate_limit_exceeded(retry_after_seconds))
