"""Authentication endpoints (login, refresh, logout, me)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ams.core.deps import get_current_user, get_session_manager
from ams.core.exceptions import AuthenticationException
from ams.models.user import User
from ams.schemas.auth import LoginRequest, LoginResponse, LogoutRequest, TokenPairResponse, TokenRefreshRequest
from ams.schemas.user import UserOut
from ams.services.auth import CredentialSessionManager, SessionError, SessionErrorCode, SessionResult

router = APIRouter()

_ERROR_CODES = {
    SessionErrorCode.invalid_credentials: "INVALID_CREDENTIALS",
    SessionErrorCode.invalid_refresh_token: "INVALID_REFRESH_TOKEN",
    SessionErrorCode.user_not_found: "USER_NOT_FOUND",
}


def _raise_for(error: SessionError) -> None:
    raise AuthenticationException(
        error.message,
        error_code=_ERROR_CODES[error.code],
        details={"code": error.code.value},
        status_code=401,
    )


def _token_pair(result: SessionResult) -> TokenPairResponse:
    tokens = result.tokens
    return TokenPairResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        access_token_expiry=tokens.access_token_expiry,
        refresh_token_expiry=tokens.refresh_token_expiry,
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    manager: CredentialSessionManager = Depends(get_session_manager),
) -> LoginResponse:
    result = manager.login(payload.email, payload.password)
    if not result.ok:
        _raise_for(result.error)
    return LoginResponse(
        **_token_pair(result).model_dump(),
        email=result.user.email,
        roles=result.user.role_names,
    )


@router.post("/refresh", response_model=TokenPairResponse)
def refresh(
    payload: TokenRefreshRequest,
    manager: CredentialSessionManager = Depends(get_session_manager),
) -> TokenPairResponse:
    result = manager.refresh(payload.refresh_token)
    if not result.ok:
        _raise_for(result.error)
    return _token_pair(result)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, response_class=Response, response_model=None)
def logout(
    payload: LogoutRequest,
    manager: CredentialSessionManager = Depends(get_session_manager),
) -> Response:
    # Unknown or already inactive tokens are not reported back.
    manager.revoke(payload.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(current_user)
