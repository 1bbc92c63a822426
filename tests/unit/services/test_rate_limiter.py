"""
Unit tests for ResetRateLimiter
"""
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.app.services.rate_limiter import ResetRateLimiter
from src.domain.errors import ErrorCode


@pytest.fixture
def tokens():
    repo = MagicMock()
    repo.count_created_since = AsyncMock(return_value=0)
    repo.oldest_created_since = AsyncMock(return_value=None)
    return repo


@pytest.mark.asyncio
async def test_attempts_within_counts_from_window_start(tokens):
    user_id = uuid4()
    now = datetime(2026, 1, 1, 12, 0, 0)
    tokens.count_created_since.return_value = 2

    limiter = ResetRateLimiter(tokens)
    count = await limiter.attempts_within(user_id, timedelta(hours=1), now=now)

    assert count == 2
    tokens.count_created_since.assert_called_once_with(user_id, datetime(2026, 1, 1, 11, 0, 0))


@pytest.mark.asyncio
async def test_enforce_allows_below_limit(tokens):
    tokens.count_created_since.return_value = 2

    result = await ResetRateLimiter(tokens).enforce(uuid4(), max_attempts=3)

    assert result.is_ok()
    tokens.oldest_created_since.assert_not_called()


@pytest.mark.asyncio
async def test_enforce_rejects_at_limit_with_retry_after(tokens):
    now = datetime(2026, 1, 1, 12, 0, 0)
    tokens.count_created_since.return_value = 3
    # Oldest attempt 40 minutes ago leaves the window in 20 minutes
    tokens.oldest_created_since.return_value = now - timedelta(minutes=40)

    result = await ResetRateLimiter(tokens).enforce(
        uuid4(), max_attempts=3, window=timedelta(hours=1), now=now
    )

    assert result.is_err()
    assert result.error.code == ErrorCode.RATE_LIMIT_EXCEEDED
    assert result.error.details["retry_after_seconds"] == 20 * 60
    assert "20 minutes" in result.error.message


@pytest.mark.asyncio
async def test_retry_after_is_at_least_one_second(tokens):
    now = datetime(2026, 1, 1, 12, 0, 0)
    tokens.count_created_since.return_value = 5
    tokens.oldest_created_since.return_value = now - timedelta(hours=1)

    result = await ResetRateLimiter(tokens).enforce(uuid4(), now=now)

    assert result.error.details["retry_after_seconds"] == 1
    assert "1 minute." in result.error.message
