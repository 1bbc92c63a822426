from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.api.utils.jwt import verify_jwt
from src.app.services.notification_sender import INotificationSender, LoggingNotificationSender
from src.app.services.security_config import SecurityConfig
from src.domain.errors import unauthorized

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    user_id: UUID
    session_id: Optional[UUID] = None


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_security_config() -> SecurityConfig:
    return SecurityConfig.from_app_config(ApplicationConfig)


def get_notification_sender() -> INotificationSender:
    return LoggingNotificationSender()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Returns:
        CurrentUser with user_id and the session the token belongs to

    Raises:
        ClientError: 401 UNAUTHORIZED if the token is missing, invalid or expired
    """
    if credentials is None:
        raise ClientError(unauthorized(), status_code=status.HTTP_401_UNAUTHORIZED)

    payload = verify_jwt(credentials.credentials)
    if payload is None or "user_id" not in payload:
        raise ClientError(unauthorized(), status_code=status.HTTP_401_UNAUTHORIZED)

    try:
        return CurrentUser(
            user_id=UUID(payload["user_id"]),
            session_id=UUID(payload["session_id"]) if payload.get("session_id") else None,
        )
    except ValueError:
        raise ClientError(unauthorized(), status_code=status.HTTP_401_UNAUTHORIZED)
