from __future__ import annotations

import datetime as dt

from fastapi.testclient import TestClient
from jose import jwt

from ams.core.config import settings
from conftest import TEST_PASSWORD


def _login(client: TestClient, email: str = "alice@example.com", password: str = TEST_PASSWORD):  # noqa: ANN202
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_returns_token_pair(client: TestClient, make_user) -> None:  # noqa: ANN001
    make_user()

    response = _login(client, email="  Alice@Example.com ")

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "alice@example.com"
    assert body["roles"] == []
    assert body["token_type"] == "bearer"
    assert body["access_token"] and body["refresh_token"]
    assert dt.datetime.fromisoformat(body["refresh_token_expiry"]) > dt.datetime.fromisoformat(
        body["access_token_expiry"]
    )


def test_login_with_bad_credentials_is_unauthorized(client: TestClient, make_user) -> None:  # noqa: ANN001
    make_user()

    response = _login(client, password="Wrong-pass1!")

    assert response.status_code == 401
    body = response.json()
    assert body["error_code"] == "INVALID_CREDENTIALS"
    assert body["details"] == {"code": "Auth.InvalidCredentials"}


def test_login_payload_is_validated(client: TestClient) -> None:
    response = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})
    assert response.status_code == 422


def test_refresh_rotates_and_rejects_replay(client: TestClient, make_user) -> None:  # noqa: ANN001
    make_user()
    first = _login(client).json()["refresh_token"]

    rotated = client.post("/api/auth/refresh", json={"refresh_token": first})
    replay = client.post("/api/auth/refresh", json={"refresh_token": first})

    assert rotated.status_code == 200
    assert rotated.json()["refresh_token"] != first
    assert replay.status_code == 401
    assert replay.json()["error_code"] == "INVALID_REFRESH_TOKEN"
    assert replay.json()["details"] == {"code": "Auth.InvalidRefreshToken"}


def test_refresh_for_deactivated_user(client: TestClient, make_user, db) -> None:  # noqa: ANN001
    user = make_user()
    token = _login(client).json()["refresh_token"]
    user.is_active = False
    db.commit()

    response = client.post("/api/auth/refresh", json={"refresh_token": token})

    assert response.status_code == 401
    assert response.json()["error_code"] == "USER_NOT_FOUND"


def test_logout_revokes_refresh_token(client: TestClient, make_user) -> None:  # noqa: ANN001
    make_user()
    token = _login(client).json()["refresh_token"]

    assert client.post("/api/auth/logout", json={"refresh_token": token}).status_code == 204
    assert client.post("/api/auth/logout", json={"refresh_token": token}).status_code == 204
    assert client.post("/api/auth/refresh", json={"refresh_token": token}).status_code == 401


def test_me_requires_valid_bearer_token(client: TestClient, make_user) -> None:  # noqa: ANN001
    make_user()
    access = _login(client).json()["access_token"]

    ok = client.get("/api/auth/me", headers={"Authorization": f"Bearer {access}"})
    missing = client.get("/api/auth/me")
    garbage = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})

    assert ok.status_code == 200
    assert ok.json()["email"] == "alice@example.com"
    assert missing.status_code == 401
    assert missing.json()["error_code"] == "NOT_AUTHENTICATED"
    assert garbage.status_code == 401
    assert garbage.json()["error_code"] == "INVALID_TOKEN"


def test_me_rejects_expired_token(client: TestClient, make_user) -> None:  # noqa: ANN001
    user = make_user()
    past = int((dt.datetime.now(dt.timezone.utc) - dt.timedelta(hours=1)).timestamp())
    token = jwt.encode(
        {
            "sub": str(user.id),
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
            "iat": past - 60,
            "exp": past,
        },
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["error_code"] == "EXPIRED_TOKEN"
