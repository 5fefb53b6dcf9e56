"""Common FastAPI dependencies for authentication and service wiring."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ams.core.config import settings
from ams.core.exceptions import AuthenticationException, InvalidAPIKeyError
from ams.core.security import PasswordHasher, TokenCodec
from ams.db.session import get_db
from ams.models.api_key import ApiKey
from ams.models.user import User
from ams.services.api_keys import find_valid_api_key
from ams.services.auth import CredentialSessionManager
from ams.services.refresh_tokens import RefreshTokenStore
from ams.services.users import SqlUserDirectory, find_active_user_by_id


@lru_cache(maxsize=1)
def get_token_codec() -> TokenCodec:
    return TokenCodec(settings.token_settings())


def get_session_manager(
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> CredentialSessionManager:
    return CredentialSessionManager(
        store=RefreshTokenStore(db),
        users=SqlUserDirectory(db),
        codec=codec,
        passwords=PasswordHasher(),
    )


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    cleaned = token.strip()
    return cleaned or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> User:
    token = _extract_bearer_token(request)
    if not token:
        raise AuthenticationException(
            "not_authenticated",
            error_code="NOT_AUTHENTICATED",
            status_code=401,
        )

    # InvalidTokenError / ExpiredTokenError propagate to the exception handler.
    payload = codec.verify(token)
    user = find_active_user_by_id(db, payload["sub"])
    if not user:
        raise AuthenticationException(
            "user_not_found",
            error_code="USER_NOT_FOUND",
            status_code=401,
        )
    return user


def require_api_key(request: Request, db: Session = Depends(get_db)) -> ApiKey:
    provided = (request.headers.get(settings.API_KEY_HEADER_NAME) or "").strip()
    if not provided:
        raise InvalidAPIKeyError("api_key_required")
    api_key = find_valid_api_key(db, provided)
    if not api_key:
        raise InvalidAPIKeyError("invalid_or_expired_api_key")
    return api_key
