"""
Confirm Password Reset Use Case

Consumes a reset token and replaces the user's password.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from src.app.services.credential_crypto import (
    BCRYPT_MAX_PASSWORD_BYTES,
    check_password_strength,
    hash_password,
    hash_token,
)
from src.app.services.security_config import SecurityConfig
from src.app.services.store_guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UserStatus
from src.domain.errors import (
    invalid_or_expired_token,
    token_already_used,
    token_expired,
    validation_failed,
)
from src.libs.result import Result, Return
from .dtos import ConfirmPasswordResetResponse

logger = logging.getLogger(__name__)


class ConfirmPasswordResetUseCase:
    """
    Use case for confirming password reset.

    Business Rules:
    - New password must pass strength scoring before the store is touched
    - Token is looked up by its SHA-256 hash
    - Expired (unused) tokens fail with TOKEN_EXPIRED, used ones with
      TOKEN_ALREADY_USED, unknown ones with INVALID_OR_EXPIRED_TOKEN
    - The token is claimed with a conditional update (used_at IS NULL);
      losing the race means TOKEN_ALREADY_USED even if our read saw it unused
    - Claim, password change, invalidation of the user's other tokens and
      revocation of the user's sessions commit as one transaction
    """

    def __init__(self, uow: UnitOfWork, config: Optional[SecurityConfig] = None):
        self.uow = uow
        self.config = config or SecurityConfig()

    async def execute(
        self, token: str, new_password: str, timeout: Optional[float] = None
    ) -> Result[ConfirmPasswordResetResponse]:
        """
        Execute confirm password reset use case.

        Args:
            token: Password reset token (plain text from the reset link)
            new_password: New password to set
            timeout: Bound on store access in seconds (defaults to config)

        Errors:
            - VALIDATION_FAILED: Password does not meet strength requirements
            - INVALID_OR_EXPIRED_TOKEN: Token not found or owner unavailable
            - TOKEN_EXPIRED: Token has expired
            - TOKEN_ALREADY_USED: Token has already been used
            - INTERNAL_ERROR: Store failure or timeout
        """
        strength = check_password_strength(new_password)
        if not strength.is_valid:
            return Return.err(
                validation_failed(
                    "Password does not meet strength requirements", strength.feedback
                )
            )

        if len(new_password.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
            return Return.err(
                validation_failed(f"Password cannot exceed {BCRYPT_MAX_PASSWORD_BYTES} bytes")
            )

        if not token:
            return Return.err(invalid_or_expired_token())

        return await guarded(
            self._reset(token, new_password),
            timeout or self.config.store_timeout_seconds,
            "Password reset confirmation",
        )

    async def _reset(self, token: str, new_password: str) -> Result[ConfirmPasswordResetResponse]:
        async with self.uow:
            reset_token = await self.uow.password_reset_tokens.get_by_token_hash(
                hash_token(token)
            )

            if reset_token is None:
                return Return.err(invalid_or_expired_token())

            if reset_token.is_used():
                return Return.err(token_already_used())

            if reset_token.is_expired(datetime.utcnow()):
                return Return.err(token_expired())

            user = await self.uow.users.get_by_id(reset_token.user_id)
            if user is None or user.status != UserStatus.active:
                return Return.err(invalid_or_expired_token())

            # Rollback expires ORM instances; only these plain values are safe after it
            token_id = reset_token.id
            user_id = user.id

            # bcrypt is CPU bound; keep it off the event loop and outside the claim
            password_hash = await asyncio.to_thread(
                hash_password, new_password, self.config.bcrypt_rounds
            )

            now = datetime.utcnow()
            claimed = await self.uow.password_reset_tokens.mark_used_if_unused(token_id, now)
            if not claimed:
                await self.uow.rollback()
                logger.info(f"Password reset token {token_id} lost the single-use race")
                return Return.err(token_already_used())

            updated = await self.uow.users.update_password_hash(user_id, password_hash, now)
            if not updated:
                await self.uow.rollback()
                logger.warning(f"User {user_id} disappeared during password reset")
                return Return.err(invalid_or_expired_token())

            invalidated = await self.uow.password_reset_tokens.invalidate_unused_for_user(
                user_id, now, exclude_token_id=token_id
            )
            revoked = await self.uow.sessions.revoke_all_for_user(user_id, now)

            await self.uow.commit()

            logger.info(
                f"Password reset for user {user_id}: token {token_id} consumed, "
                f"{invalidated} other token(s) invalidated, {revoked} session(s) revoked"
            )
            return Return.ok(
                ConfirmPasswordResetResponse(
                    success=True,
                    message="Password has been reset successfully",
                )
            )
