from __future__ import annotations

import base64
import datetime as dt
from dataclasses import replace

import pytest
from jose import jwt

from ams.core.clock import FrozenClock
from ams.core.exceptions import ConfigurationError, ExpiredTokenError, InvalidTokenError
from ams.core.security import TokenCodec, TokenSettings


def test_mint_and_verify_carries_identity_claims(codec: TokenCodec, clock: FrozenClock) -> None:
    token = codec.mint("user-1", "alice@example.com", "Alice Anders", ["Editor", "Admin", "Admin"])

    claims = codec.verify(token)

    assert claims["sub"] == "user-1"
    assert claims["email"] == "alice@example.com"
    assert claims["name"] == "Alice Anders"
    assert claims["role"] == ["Admin", "Editor"]
    assert claims["iss"] == codec.settings.issuer
    assert claims["aud"] == codec.settings.audience
    assert claims["exp"] == int((clock() + dt.timedelta(hours=6)).timestamp())
    assert claims["jti"]


def test_each_token_gets_a_fresh_jti(codec: TokenCodec) -> None:
    first = codec.verify(codec.mint("u", "a@example.com", "A"))
    second = codec.verify(codec.mint("u", "a@example.com", "A"))
    assert first["jti"] != second["jti"]


def test_token_is_rejected_once_lifetime_has_elapsed(codec: TokenCodec, clock: FrozenClock) -> None:
    token = codec.mint("user-1", "alice@example.com", "Alice")

    clock.advance(dt.timedelta(hours=6) - dt.timedelta(seconds=1))
    assert codec.verify(token)["sub"] == "user-1"

    clock.advance(dt.timedelta(seconds=1))
    with pytest.raises(ExpiredTokenError):
        codec.verify(token)


def test_token_signed_with_another_key_is_invalid(token_settings: TokenSettings, clock: FrozenClock) -> None:
    other = TokenCodec(replace(token_settings, signing_key="a-completely-different-key"), clock=clock)
    token = other.mint("user-1", "alice@example.com", "Alice")

    with pytest.raises(InvalidTokenError):
        TokenCodec(token_settings, clock=clock).verify(token)


@pytest.mark.parametrize("field", ["issuer", "audience"])
def test_token_for_another_issuer_or_audience_is_invalid(
    token_settings: TokenSettings, clock: FrozenClock, field: str
) -> None:
    foreign = TokenCodec(replace(token_settings, **{field: "someone-else"}), clock=clock)
    token = foreign.mint("user-1", "alice@example.com", "Alice")

    with pytest.raises(InvalidTokenError) as excinfo:
        TokenCodec(token_settings, clock=clock).verify(token)
    assert not isinstance(excinfo.value, ExpiredTokenError)


def test_garbage_token_is_invalid(codec: TokenCodec) -> None:
    with pytest.raises(InvalidTokenError):
        codec.verify("not-a-jwt")


def test_token_without_subject_is_invalid(codec: TokenCodec, clock: FrozenClock) -> None:
    s = codec.settings
    token = jwt.encode(
        {"iss": s.issuer, "aud": s.audience, "exp": int(clock().timestamp()) + 60},
        s.signing_key,
        algorithm=s.algorithm,
    )
    with pytest.raises(InvalidTokenError):
        codec.verify(token)


def test_missing_signing_key_is_a_configuration_error(token_settings: TokenSettings) -> None:
    codec = TokenCodec(replace(token_settings, signing_key="  "))
    with pytest.raises(ConfigurationError):
        codec.mint("user-1", "alice@example.com", "Alice")
    with pytest.raises(ConfigurationError):
        codec.verify("anything")


def test_refresh_secret_is_64_random_bytes(codec: TokenCodec) -> None:
    first = codec.mint_refresh_secret()
    second = codec.mint_refresh_secret()

    assert len(base64.b64decode(first)) == 64
    assert len(first) <= 256
    assert first != second
