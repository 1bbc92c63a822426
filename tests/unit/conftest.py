from datetime import timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.services.security_config import SecurityConfig


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.update_password_hash = AsyncMock(return_value=True)

    uow.password_reset_tokens = MagicMock()
    uow.password_reset_tokens.create = AsyncMock(side_effect=lambda token: token)
    uow.password_reset_tokens.get_by_token_hash = AsyncMock(return_value=None)
    uow.password_reset_tokens.count_created_since = AsyncMock(return_value=0)
    uow.password_reset_tokens.oldest_created_since = AsyncMock(return_value=None)
    uow.password_reset_tokens.mark_used_if_unused = AsyncMock(return_value=True)
    uow.password_reset_tokens.invalidate_unused_for_user = AsyncMock(return_value=0)
    uow.password_reset_tokens.get_active_for_user = AsyncMock(return_value=[])
    uow.password_reset_tokens.delete_by_user_id = AsyncMock(return_value=0)
    uow.password_reset_tokens.delete_stale = AsyncMock(return_value=0)

    uow.sessions = MagicMock()
    uow.sessions.create = AsyncMock(side_effect=lambda session: session)
    uow.sessions.get_by_token_hash = AsyncMock(return_value=None)
    uow.sessions.touch = AsyncMock(return_value=True)
    uow.sessions.revoke = AsyncMock(return_value=True)
    uow.sessions.revoke_all_for_user = AsyncMock(return_value=0)
    uow.sessions.delete_stale = AsyncMock(return_value=0)
    uow.sessions.exists_with_user_agent = AsyncMock(return_value=False)
    uow.sessions.exists_with_ip_address = AsyncMock(return_value=False)
    uow.sessions.count_by_user = AsyncMock(return_value=0)
    uow.sessions.list_by_user = AsyncMock(return_value=[])
    uow.sessions.count_distinct_user_agents = AsyncMock(return_value=0)
    uow.sessions.count_distinct_ip_addresses = AsyncMock(return_value=0)
    uow.sessions.last_activity = AsyncMock(return_value=None)
    uow.sessions.get_by_id = AsyncMock(return_value=None)
    uow.sessions.count_active_since = AsyncMock(return_value=0)
    uow.sessions.top_user_agents = AsyncMock(return_value=[])
    uow.sessions.top_ip_addresses = AsyncMock(return_value=[])
    return uow


@pytest.fixture
def security_config():
    # Minimum bcrypt cost keeps the suite fast
    return SecurityConfig(bcrypt_rounds=4, rate_limit_window=timedelta(hours=1))


@pytest.fixture
def production_config():
    return SecurityConfig(bcrypt_rounds=4, expose_reset_token=False)
