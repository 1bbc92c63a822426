"""
Request Password Reset Use Case

Issues a single-use reset token for an active account.
"""

import logging
from datetime import datetime
from typing import Optional

from src.app.services.credential_crypto import generate_secure_token, hash_token
from src.app.services.notification_sender import INotificationSender, LoggingNotificationSender
from src.app.services.rate_limiter import ResetRateLimiter
from src.app.services.security_config import SecurityConfig
from src.app.services.store_guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import PasswordResetToken, UserStatus
from src.domain.errors import validation_failed
from src.libs.result import Result, Return
from .dtos import GENERIC_RESET_REQUEST_MESSAGE, RequestPasswordResetResponse

logger = logging.getLogger(__name__)


class RequestPasswordResetUseCase:
    """
    Use case for requesting password reset.

    Business Rules:
    - Email lookup is case-insensitive
    - No email enumeration: unknown and inactive accounts get the same
      response as the happy path and nothing else happens
    - Rate limited per user (3 per rolling hour by default)
    - Issuing a token supersedes every older token of the user in the same
      transaction, so two tokens are never valid at once
    - Token is 32 random bytes, hex-encoded, stored only as SHA-256
    - Token expires in 24 hours
    - Plaintext token is returned to the caller only outside production
    """

    def __init__(
        self,
        uow: UnitOfWork,
        config: Optional[SecurityConfig] = None,
        notifier: Optional[INotificationSender] = None,
    ):
        self.uow = uow
        self.config = config or SecurityConfig()
        self.notifier = notifier or LoggingNotificationSender()

    async def execute(
        self, email: str, timeout: Optional[float] = None
    ) -> Result[RequestPasswordResetResponse]:
        """
        Execute request password reset use case.

        Args:
            email: Email address submitted by the caller
            timeout: Bound on store access in seconds (defaults to config)

        Returns:
            Result with the generic response, or Error
            (VALIDATION_FAILED, RATE_LIMIT_EXCEEDED, INTERNAL_ERROR)
        """
        normalized = (email or "").strip().lower()
        if not normalized or "@" not in normalized:
            return Return.err(validation_failed("A valid email address is required"))

        result = await guarded(
            self._issue(normalized),
            timeout or self.config.store_timeout_seconds,
            "Password reset request",
        )
        if result.is_err():
            return result

        issued = result.value
        if issued is None:
            return Return.ok(self._response())

        recipient, reset_token = issued
        await self._notify(recipient, reset_token)

        return Return.ok(
            self._response(reset_token if self.config.expose_reset_token else None)
        )

    async def _issue(self, email: str) -> Result[Optional[tuple[str, str]]]:
        async with self.uow:
            user = await self.uow.users.get_by_email(email)

            if user is None or user.status != UserStatus.active:
                logger.info("Password reset requested for unknown or inactive account")
                return Return.ok(None)

            now = datetime.utcnow()
            limiter = ResetRateLimiter(self.uow.password_reset_tokens)
            allowed = await limiter.enforce(
                user.id,
                max_attempts=self.config.max_reset_attempts,
                window=self.config.rate_limit_window,
                now=now,
            )
            if allowed.is_err():
                return Return.err(allowed.error)

            superseded = await self.uow.password_reset_tokens.invalidate_unused_for_user(
                user.id, now
            )

            reset_token = generate_secure_token(self.config.reset_token_bytes)
            password_reset_token = PasswordResetToken(
                user_id=user.id,
                token_hash=hash_token(reset_token),
                expires_at=now + self.config.reset_token_ttl,
                used_at=None,
                created_at=now,
            )
            await self.uow.password_reset_tokens.create(password_reset_token)

            await self.uow.commit()

            logger.info(
                f"Password reset token {password_reset_token.id} issued for user {user.id} "
                f"({superseded} superseded)"
            )
            return Return.ok((user.email, reset_token))

    async def _notify(self, email: str, reset_token: str) -> None:
        reset_link = f"{self.config.reset_link_base_url}?token={reset_token}"
        try:
            await self.notifier.send_password_reset(email, reset_link)
        except Exception:
            logger.exception("Password reset notification failed")

    @staticmethod
    def _response(token: Optional[str] = None) -> RequestPasswordResetResponse:
        return RequestPasswordResetResponse(
            success=True,
            message=GENERIC_RESET_REQUEST_MESSAGE,
            token=token,
        )
