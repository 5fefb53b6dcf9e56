from __future__ import annotations

from fastapi.testclient import TestClient


def test_role_crud(client: TestClient, api_headers) -> None:  # noqa: ANN001
    created = client.post("/api/roles", json={"name": "Editor", "description": "Can edit"}, headers=api_headers)
    assert created.status_code == 201
    role_id = created.json()["id"]
    assert created.headers["Location"] == f"/api/roles/{role_id}"

    updated = client.put(
        f"/api/roles/{role_id}",
        json={"name": "Senior Editor", "description": "Can edit a lot", "is_active": False},
        headers=api_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Senior Editor"
    assert updated.json()["is_active"] is False

    assert client.delete(f"/api/roles/{role_id}", headers=api_headers).status_code == 204
    assert client.get(f"/api/roles/{role_id}", headers=api_headers).status_code == 404


def test_duplicate_role_name_conflicts(client: TestClient, api_headers) -> None:  # noqa: ANN001
    client.post("/api/roles", json={"name": "Admin"}, headers=api_headers)
    again = client.post("/api/roles", json={"name": "Admin"}, headers=api_headers)
    assert again.status_code == 409
    assert again.json()["message"] == "role_name_exists"


def test_list_roles_filters(client: TestClient, api_headers) -> None:  # noqa: ANN001
    client.post("/api/roles", json={"name": "Admin"}, headers=api_headers)
    client.post("/api/roles", json={"name": "Viewer", "is_active": False}, headers=api_headers)

    active = client.get("/api/roles", params={"is_active": True}, headers=api_headers).json()
    assert [r["name"] for r in active["roles"]] == ["Admin"]
    assert active["total_pages"] == 1

    everything = client.get("/api/roles", headers=api_headers).json()
    assert everything["total_count"] == 2


def test_inactive_role_is_not_in_token_roles(client: TestClient, api_headers, make_user) -> None:  # noqa: ANN001
    user = make_user()
    role = client.post("/api/roles", json={"name": "Auditor", "is_active": False}, headers=api_headers).json()
    client.post(f"/api/users/{user.id}/roles/{role['id']}", headers=api_headers)

    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "Passw0rd!"})
    assert login.json()["roles"] == []
