from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from config import ApplicationConfig

ACCESS_TOKEN_TTL = timedelta(minutes=15)


def generate_jwt(
    user_id: UUID,
    session_id: Optional[UUID] = None,
    expires_delta: timedelta = ACCESS_TOKEN_TTL,
) -> str:
    """
    Generate JWT access token

    Args:
        user_id: User UUID
        session_id: Session the token was issued for, if any
        expires_delta: Token expiration duration

    Returns:
        JWT token string (HS256)
    """
    now = datetime.now(UTC)
    payload = {
        "user_id": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
    }
    if session_id is not None:
        payload["session_id"] = str(session_id)
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"]
        )
        return payload
    except JWTError:
        return None
