"""
Security Configuration

Single immutable value object carrying every tunable of the credential
recovery and session subsystems. Built once from ApplicationConfig and
injected into use cases.
"""

from datetime import timedelta

from pydantic import BaseModel, ConfigDict


class SecurityConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Password reset
    reset_token_ttl: timedelta = timedelta(hours=24)
    reset_token_bytes: int = 32
    max_reset_attempts: int = 3
    rate_limit_window: timedelta = timedelta(hours=1)
    expose_reset_token: bool = True
    reset_link_base_url: str = "http://localhost:3000/reset-password"

    # Password hashing
    bcrypt_rounds: int = 12

    # Sessions
    session_token_bytes: int = 48
    concurrent_session_threshold: int = 5
    session_cleanup_days: int = 30

    # Store access
    store_timeout_seconds: float = 5.0

    @classmethod
    def from_app_config(cls, app_config) -> "SecurityConfig":
        return cls(
            reset_token_ttl=timedelta(hours=app_config.RESET_TOKEN_TTL_HOURS),
            reset_token_bytes=app_config.RESET_TOKEN_BYTES,
            max_reset_attempts=app_config.MAX_RESET_ATTEMPTS,
            rate_limit_window=timedelta(minutes=app_config.RESET_RATE_LIMIT_WINDOW_MINUTES),
            # The plaintext token only travels back to the caller outside production
            expose_reset_token=app_config.ENVIRONMENT != "production",
            reset_link_base_url=app_config.RESET_LINK_BASE_URL,
            bcrypt_rounds=app_config.BCRYPT_ROUNDS,
            session_token_bytes=app_config.SESSION_TOKEN_BYTES,
            concurrent_session_threshold=app_config.CONCURRENT_SESSION_THRESHOLD,
            session_cleanup_days=app_config.SESSION_CLEANUP_DAYS,
            store_timeout_seconds=app_config.STORE_TIMEOUT_SECONDS,
        )
