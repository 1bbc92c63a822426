from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.app.services.security_config import SecurityConfig
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.sessions import (
    BulkRevokeResult,
    DetectSuspiciousActivityUseCase,
    SecurityAlert,
    SessionAnalytics,
    SessionInfo,
    SessionLifecycleUseCase,
    SessionListResponse,
    SessionStats,
)
from src.depends import CurrentUser, get_current_user, get_security_config, get_unit_of_work
from src.domain.errors import ErrorCode

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def raise_for_error(error) -> None:
    if error.code == ErrorCode.VALIDATION_FAILED:
        raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
    if error.code == ErrorCode.SESSION_NOT_FOUND:
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    raise ServerError(error)


class CreateSessionRequest(BaseModel):
    """Device context of a new login; defaults to the calling request's"""

    user_agent: Optional[str] = Field(default=None, max_length=512)
    ip_address: Optional[str] = Field(default=None, max_length=45)


class CreateSessionResponse(BaseModel):
    session: SessionInfo
    token: str
    alerts: List[SecurityAlert]


@router.post(
    "", status_code=status.HTTP_201_CREATED, response_model=CreateSessionResponse
)
async def create_session(
    body: CreateSessionRequest,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """
    Create Session

    Opens a session for the authenticated user and reports suspicious
    activity alerts for it. Alerts never block creation.

    Raises:
        - 401 Unauthorized: Missing or invalid access token
        - 500 Internal Server Error: Server error
    """
    user_agent = body.user_agent or request.headers.get("user-agent")
    ip_address = body.ip_address or (request.client.host if request.client else None)

    use_case = SessionLifecycleUseCase(uow, config)
    result = await use_case.create_session(current_user.user_id, user_agent, ip_address)
    if result.is_err():
        raise_for_error(result.error)

    created = result.value
    detector = DetectSuspiciousActivityUseCase(uow, config)
    alerts = await detector.execute(
        current_user.user_id,
        user_agent,
        ip_address,
        exclude_session_id=UUID(created.session.id),
    )

    return {"session": created.session, "token": created.token, "alerts": alerts}


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionListResponse)
async def list_sessions(
    active: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """List the authenticated user's sessions, most recently active first"""
    use_case = SessionLifecycleUseCase(uow, config)
    result = await use_case.list_sessions(current_user.user_id, active, page, limit)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/stats", status_code=status.HTTP_200_OK, response_model=SessionStats)
async def session_stats(
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    use_case = SessionLifecycleUseCase(uow, config)
    result = await use_case.get_stats(current_user.user_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/analytics", status_code=status.HTTP_200_OK, response_model=SessionAnalytics)
async def session_analytics(
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """Recent activity counts and the most used devices and IP addresses"""
    use_case = SessionLifecycleUseCase(uow, config)
    result = await use_case.get_analytics(current_user.user_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/{session_id}", status_code=status.HTTP_200_OK, response_model=SessionInfo)
async def get_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """
    Get Session

    Raises:
        - 401 Unauthorized: Missing or invalid access token
        - 404 Not Found: Session missing or owned by another user
        - 500 Internal Server Error: Server error
    """
    use_case = SessionLifecycleUseCase(uow, config)
    result = await use_case.get_session(session_id, owner_user_id=current_user.user_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post("/{session_id}/touch", status_code=status.HTTP_204_NO_CONTENT)
async def touch_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """Record activity on a session. Missing sessions are ignored."""
    use_case = SessionLifecycleUseCase(uow, config)
    await use_case.touch(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


class RevokeSessionResponse(BaseModel):
    session_id: str
    revoked: bool


@router.delete(
    "/{session_id}", status_code=status.HTTP_200_OK, response_model=RevokeSessionResponse
)
async def revoke_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """
    Revoke Session

    Idempotent: revoking an already revoked (or foreign) session returns
    revoked=false rather than an error.
    """
    use_case = SessionLifecycleUseCase(uow, config)
    result = await use_case.revoke(session_id, owner_user_id=current_user.user_id)
    if result.is_err():
        raise_for_error(result.error)
    return {"session_id": str(session_id), "revoked": result.value}


class RevokeAllRequest(BaseModel):
    exclude_session_id: Optional[UUID] = Field(
        default=None, description="Session to keep active (usually the current one)"
    )


class RevokeAllResponse(BaseModel):
    message: str
    revoked_count: int


@router.post(
    "/revoke-all", status_code=status.HTTP_200_OK, response_model=RevokeAllResponse
)
async def revoke_all_sessions(
    body: RevokeAllRequest,
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """Revoke every active session of the authenticated user except one"""
    use_case = SessionLifecycleUseCase(uow, config)
    result = await use_case.revoke_all(current_user.user_id, body.exclude_session_id)
    if result.is_err():
        raise_for_error(result.error)

    count = result.value
    return {"message": f"Successfully revoked {count} session(s)", "revoked_count": count}


class BulkRevokeRequest(BaseModel):
    session_ids: List[str] = Field(..., min_length=1, max_length=100)


@router.post(
    "/bulk-revoke", status_code=status.HTTP_200_OK, response_model=BulkRevokeResult
)
async def bulk_revoke_sessions(
    body: BulkRevokeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """Revoke several of the authenticated user's sessions, reporting per id"""
    use_case = SessionLifecycleUseCase(uow, config)
    result = await use_case.bulk_revoke(body.session_ids, owner_user_id=current_user.user_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value
