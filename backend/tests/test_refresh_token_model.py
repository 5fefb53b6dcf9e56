from __future__ import annotations

import datetime as dt
import uuid

import pytest

from ams.models.refresh_token import ROTATION_REASON, RefreshToken

NOW = dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc)
LIFETIME = dt.timedelta(days=14)


def _issue(user_id: uuid.UUID | None = None, token: str = "secret-a") -> RefreshToken:
    return RefreshToken.issue(user_id or uuid.uuid4(), token, at=NOW, lifetime=LIFETIME)


def test_issued_token_is_active_until_expiry() -> None:
    record = _issue()

    assert record.expires_at == NOW + LIFETIME
    assert record.is_active(NOW)
    assert record.is_active(record.expires_at - dt.timedelta(microseconds=1))
    assert record.is_expired(record.expires_at)
    assert not record.is_active(record.expires_at)


def test_issue_rejects_non_positive_lifetime() -> None:
    with pytest.raises(ValueError):
        RefreshToken.issue(uuid.uuid4(), "secret", at=NOW, lifetime=dt.timedelta(0))


def test_revoke_records_reason_and_time_once() -> None:
    record = _issue()
    record.revoke("Revoked by user", NOW)

    assert record.is_revoked
    assert record.revoked_at == NOW
    assert record.reason_revoked == "Revoked by user"
    assert not record.is_active(NOW)

    with pytest.raises(ValueError):
        record.revoke("again", NOW + dt.timedelta(minutes=1))
    assert record.reason_revoked == "Revoked by user"


def test_rotate_links_replacement() -> None:
    user_id = uuid.uuid4()
    current = _issue(user_id, "secret-a")
    replacement = _issue(user_id, "secret-b")

    current.rotate(replacement, NOW)

    assert current.is_revoked
    assert current.reason_revoked == ROTATION_REASON
    assert current.replaced_by_token == "secret-b"
    assert replacement.is_active(NOW)


def test_rotate_refuses_foreign_or_identical_replacement() -> None:
    current = _issue(uuid.uuid4(), "secret-a")

    with pytest.raises(ValueError):
        current.rotate(_issue(uuid.uuid4(), "secret-b"), NOW)
    with pytest.raises(ValueError):
        current.rotate(_issue(current.user_id, "secret-a"), NOW)
    assert not current.is_revoked


def test_rotating_revoked_token_fails() -> None:
    user_id = uuid.uuid4()
    current = _issue(user_id, "secret-a")
    current.revoke("Revoked by user", NOW)

    with pytest.raises(ValueError):
        current.rotate(_issue(user_id, "secret-b"), NOW)
    assert current.replaced_by_token is None
