from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from src.api.error import ClientError, ServerError
from src.app.services.notification_sender import INotificationSender
from src.app.services.security_config import SecurityConfig
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.password_reset import (
    ConfirmPasswordResetResponse,
    ConfirmPasswordResetUseCase,
    RequestPasswordResetResponse,
    RequestPasswordResetUseCase,
    VerifyResetTokenResponse,
    VerifyResetTokenUseCase,
)
from src.depends import get_notification_sender, get_security_config, get_unit_of_work
from src.domain.errors import ErrorCode

router = APIRouter(prefix="/auth/password-reset", tags=["Password Reset"])


def raise_for_error(error) -> None:
    """Map a use-case error onto the HTTP error taxonomy"""
    if error.code in (
        ErrorCode.VALIDATION_FAILED,
        ErrorCode.INVALID_OR_EXPIRED_TOKEN,
        ErrorCode.TOKEN_EXPIRED,
    ):
        raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
    if error.code == ErrorCode.TOKEN_ALREADY_USED:
        raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
    if error.code == ErrorCode.RATE_LIMIT_EXCEEDED:
        retry_after = error.details.get("retry_after_seconds")
        raise ClientError(
            error,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(retry_after)} if retry_after else None,
        )
    raise ServerError(error)


class RequestPasswordResetRequest(BaseModel):
    email: EmailStr = Field(..., description="Email address of the account")


@router.post(
    "/request",
    status_code=status.HTTP_200_OK,
    response_model=RequestPasswordResetResponse,
    response_model_exclude_none=True,
)
async def request_password_reset(
    request: RequestPasswordResetRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
    notifier: INotificationSender = Depends(get_notification_sender),
):
    """
    Request Password Reset

    Always answers with the same body whether or not the account exists.

    Raises:
        - 422 Unprocessable Entity: Malformed email
        - 429 Too Many Requests: Rate limit exceeded (Retry-After header set)
        - 500 Internal Server Error: Server error
    """
    use_case = RequestPasswordResetUseCase(uow, config, notifier)
    result = await use_case.execute(request.email)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class VerifyResetTokenRequest(BaseModel):
    token: str = Field(..., description="Password reset token from the reset link")


@router.post(
    "/verify", status_code=status.HTTP_200_OK, response_model=VerifyResetTokenResponse
)
async def verify_reset_token(
    request: VerifyResetTokenRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """
    Verify Password Reset Token

    Raises:
        - 400 Bad Request: Invalid or expired token (single generic message)
        - 500 Internal Server Error: Server error
    """
    use_case = VerifyResetTokenUseCase(uow, config)
    result = await use_case.execute(request.token)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ConfirmPasswordResetRequest(BaseModel):
    token: str = Field(..., description="Password reset token from the reset link")
    new_password: str = Field(..., description="New password")


@router.post(
    "/confirm", status_code=status.HTTP_200_OK, response_model=ConfirmPasswordResetResponse
)
async def confirm_password_reset(
    request: ConfirmPasswordResetRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    config: SecurityConfig = Depends(get_security_config),
):
    """
    Confirm Password Reset

    Raises:
        - 400 Bad Request: Weak password, invalid or expired token
        - 409 Conflict: Token already used
        - 500 Internal Server Error: Server error
    """
    use_case = ConfirmPasswordResetUseCase(uow, config)
    result = await use_case.execute(request.token, request.new_password)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
