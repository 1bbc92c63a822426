"""
Verify Reset Token Use Case

Read-only check that a reset token can still be used.
"""

from datetime import datetime
from typing import Optional

from src.app.services.credential_crypto import hash_token
from src.app.services.security_config import SecurityConfig
from src.app.services.store_guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UserStatus
from src.domain.errors import invalid_or_expired_token
from src.libs.result import Result, Return
from .dtos import ResetTokenUser, VerifyResetTokenResponse


class VerifyResetTokenUseCase:
    """
    Use case for verifying a password reset token.

    Business Rules:
    - Unknown, expired, used and orphaned tokens all fail with the same
      INVALID_OR_EXPIRED_TOKEN error
    - Never mutates the token
    - Only name and email of the owner are returned
    """

    def __init__(self, uow: UnitOfWork, config: Optional[SecurityConfig] = None):
        self.uow = uow
        self.config = config or SecurityConfig()

    async def execute(
        self, token: str, timeout: Optional[float] = None
    ) -> Result[VerifyResetTokenResponse]:
        if not token:
            return Return.err(invalid_or_expired_token())

        return await guarded(
            self._verify(token),
            timeout or self.config.store_timeout_seconds,
            "Password reset token verification",
        )

    async def _verify(self, token: str) -> Result[VerifyResetTokenResponse]:
        async with self.uow:
            reset_token = await self.uow.password_reset_tokens.get_by_token_hash(
                hash_token(token)
            )

            if (
                reset_token is None
                or reset_token.is_expired(datetime.utcnow())
                or reset_token.is_used()
            ):
                return Return.err(invalid_or_expired_token())

            user = await self.uow.users.get_by_id(reset_token.user_id)
            if user is None or user.status != UserStatus.active:
                return Return.err(invalid_or_expired_token())

            return Return.ok(
                VerifyResetTokenResponse(
                    valid=True,
                    user=ResetTokenUser(name=user.name, email=user.email),
                )
            )
