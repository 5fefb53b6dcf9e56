"""Credential session management: login, refresh token rotation, revocation.

The manager keeps no mutable state of its own. Every decision is taken
against the refresh token store, and the single-use guarantee of rotation
rests on the store's version-guarded update: of several requests presenting
the same refresh token, only the one whose UPDATE matches the version it
read commits; the others get ``TokenConflictError`` from the store and are
answered exactly like any other unusable token.
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID

from ams.core.clock import Clock, utcnow
from ams.core.exceptions import TokenConflictError
from ams.core.security import TokenCodec
from ams.models.refresh_token import LOGOUT_REASON, REVOKE_ALL_REASON, RefreshToken
from ams.models.user import User
from ams.services.refresh_tokens import RefreshTokenStore

logger = logging.getLogger(__name__)


class UserLookup(Protocol):
    def find_active_user_by_email(self, email: str) -> Optional[User]: ...

    def find_active_user_by_id(self, user_id: str | UUID) -> Optional[User]: ...


class PasswordVerifier(Protocol):
    def verify(self, password: str, digest: str | None) -> bool: ...

    def dummy_verify(self) -> None: ...


class SessionErrorCode(str, enum.Enum):
    invalid_credentials = "Auth.InvalidCredentials"
    invalid_refresh_token = "Auth.InvalidRefreshToken"
    user_not_found = "Auth.UserNotFound"


@dataclass(frozen=True)
class SessionError:
    code: SessionErrorCode
    message: str


INVALID_CREDENTIALS = SessionError(SessionErrorCode.invalid_credentials, "Invalid email or password")
INVALID_REFRESH_TOKEN = SessionError(SessionErrorCode.invalid_refresh_token, "Invalid or expired refresh token")
USER_NOT_FOUND = SessionError(SessionErrorCode.user_not_found, "User not found or inactive")


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_token_expiry: dt.datetime
    refresh_token_expiry: dt.datetime


@dataclass(frozen=True)
class SessionResult:
    tokens: Optional[TokenPair] = None
    user: Optional[User] = None
    error: Optional[SessionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.tokens is not None

    @classmethod
    def success(cls, tokens: TokenPair, user: User) -> "SessionResult":
        return cls(tokens=tokens, user=user)

    @classmethod
    def failure(cls, error: SessionError) -> "SessionResult":
        return cls(error=error)


class CredentialSessionManager:
    def __init__(
        self,
        store: RefreshTokenStore,
        users: UserLookup,
        codec: TokenCodec,
        passwords: PasswordVerifier,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._users = users
        self._codec = codec
        self._passwords = passwords
        self._clock = clock

    def _issue_pair(self, user: User, now: dt.datetime) -> tuple[TokenPair, RefreshToken]:
        access_token = self._codec.mint(
            str(user.id),
            user.email,
            user.display_name,
            user.role_names,
            issued_at=now,
        )
        record = RefreshToken.issue(
            user.id,
            self._codec.mint_refresh_secret(),
            at=now,
            lifetime=self._codec.settings.refresh_token_lifetime,
        )
        tokens = TokenPair(
            access_token=access_token,
            refresh_token=record.token,
            access_token_expiry=self._codec.access_token_expiry(now),
            refresh_token_expiry=record.expires_at,
        )
        return tokens, record

    def login(self, email: str, password: str) -> SessionResult:
        user = self._users.find_active_user_by_email(email)
        if user is None:
            # unknown emails cost as much as a wrong password
            self._passwords.dummy_verify()
        if user is None or not self._passwords.verify(password, user.password_hash):
            logger.warning("Login failed: invalid credentials (%s)", email)
            return SessionResult.failure(INVALID_CREDENTIALS)

        now = self._clock()
        tokens, record = self._issue_pair(user, now)
        self._store.insert(record)
        self._store.commit()
        logger.info("User logged in: %s", user.email)
        return SessionResult.success(tokens, user)

    def refresh(self, presented_token: str) -> SessionResult:
        now = self._clock()
        current = self._store.find_by_token(presented_token)
        # Unknown, revoked and expired tokens are reported identically.
        if current is None or not current.is_active(now):
            logger.warning("Refresh rejected: unknown or inactive refresh token")
            return SessionResult.failure(INVALID_REFRESH_TOKEN)

        current_id = current.id
        user = self._users.find_active_user_by_id(current.user_id)
        if user is None:
            logger.warning("Refresh rejected: owner of refresh token %s is missing or inactive", current_id)
            return SessionResult.failure(USER_NOT_FOUND)

        tokens, replacement = self._issue_pair(user, now)
        current.rotate(replacement, now)
        self._store.update(current)
        self._store.insert(replacement)
        try:
            self._store.commit()
        except TokenConflictError:
            logger.warning("Refresh rejected: refresh token %s was consumed concurrently", current_id)
            return SessionResult.failure(INVALID_REFRESH_TOKEN)

        logger.info("Refresh token %s rotated for user %s", current_id, user.email)
        return SessionResult.success(tokens, user)

    def revoke(self, presented_token: str, reason: str = LOGOUT_REASON) -> bool:
        now = self._clock()
        current = self._store.find_by_token(presented_token)
        if current is None or not current.is_active(now):
            return False

        current_id = current.id
        current.revoke(reason, now)
        self._store.update(current)
        try:
            self._store.commit()
        except TokenConflictError:
            logger.info("Refresh token %s was revoked concurrently", current_id)
            return False
        logger.info("Refresh token %s revoked: %s", current_id, reason)
        return True

    def revoke_all_for_user(self, user_id: UUID, reason: str = REVOKE_ALL_REASON) -> int:
        count = self._store.revoke_all_active_for_user(user_id, reason)
        logger.info("Revoked %d refresh token(s) for user %s: %s", count, user_id, reason)
        return count

    def list_sessions(self, user_id: UUID) -> list[RefreshToken]:
        return self._store.find_by_user_id(user_id)
