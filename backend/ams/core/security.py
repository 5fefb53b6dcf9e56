"""Security helpers: password hashing and the access token codec."""

from __future__ import annotations

import base64
import datetime as dt
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Iterable
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from ams.core.clock import Clock, utcnow
from ams.core.exceptions import ConfigurationError, ExpiredTokenError, InvalidTokenError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
REFRESH_SECRET_BYTES = 64


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        logger.warning("Stored password hash has an unrecognised format")
        return False


class PasswordHasher:
    """Password verifier handed to the session manager."""

    def verify(self, password: str, digest: str | None) -> bool:
        return verify_password(password, digest)

    def dummy_verify(self) -> None:
        pwd_context.dummy_verify()


@dataclass(frozen=True)
class TokenSettings:
    signing_key: str
    algorithm: str = "HS256"
    issuer: str = "ams-api"
    audience: str = "ams-clients"
    access_token_hours: int = 6
    refresh_token_days: int = 14

    @property
    def access_token_lifetime(self) -> dt.timedelta:
        return dt.timedelta(hours=self.access_token_hours)

    @property
    def refresh_token_lifetime(self) -> dt.timedelta:
        return dt.timedelta(days=self.refresh_token_days)


class TokenCodec:
    """Signs and verifies access tokens with a symmetric key.

    The codec holds no state beyond its settings and clock. ``mint`` and
    ``verify`` raise ``ConfigurationError`` when no signing key is set;
    ``verify`` raises ``InvalidTokenError`` (or ``ExpiredTokenError``) for
    any token that does not check out. Lifetime is checked against the
    injected clock with no leeway.
    """

    def __init__(self, settings: TokenSettings, clock: Clock = utcnow) -> None:
        self._settings = settings
        self._clock = clock

    @property
    def settings(self) -> TokenSettings:
        return self._settings

    def _signing_key(self) -> str:
        key = (self._settings.signing_key or "").strip()
        if not key:
            raise ConfigurationError("jwt_secret_not_configured", setting="JWT_SECRET")
        return key

    def access_token_expiry(self, issued_at: dt.datetime) -> dt.datetime:
        # exp is serialised in whole seconds
        return (issued_at + self._settings.access_token_lifetime).replace(microsecond=0)

    def mint(
        self,
        user_id: str,
        email: str,
        display_name: str,
        roles: Iterable[str] = (),
        *,
        issued_at: dt.datetime | None = None,
    ) -> str:
        key = self._signing_key()
        now = issued_at or self._clock()
        claims: dict[str, Any] = {
            "sub": str(user_id),
            "email": email,
            "name": display_name,
            "role": sorted(set(roles)),
            "iss": self._settings.issuer,
            "aud": self._settings.audience,
            "iat": int(now.timestamp()),
            "exp": int(self.access_token_expiry(now).timestamp()),
            "jti": str(uuid4()),
        }
        return jwt.encode(claims, key, algorithm=self._settings.algorithm)

    def mint_refresh_secret(self) -> str:
        return base64.b64encode(secrets.token_bytes(REFRESH_SECRET_BYTES)).decode("ascii")

    def verify(self, token: str) -> dict[str, Any]:
        key = self._signing_key()
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=[self._settings.algorithm],
                audience=self._settings.audience,
                issuer=self._settings.issuer,
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidTokenError("invalid_token") from exc

        expires = claims.get("exp")
        if not claims.get("sub") or not isinstance(expires, (int, float)):
            raise InvalidTokenError("invalid_token")
        if self._clock().timestamp() >= expires:
            raise ExpiredTokenError("token_expired")
        return claims
