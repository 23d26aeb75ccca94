import pytest

from app.core.errors import InvalidUsername
from app.models.user import normalize_username, validate_username_domain


ADMIN_ID = "6562a0f0a0a0a0a0a0a0a0b1"


def test_get_users(client, admin_headers):
    response = client.get("/api/v1/users", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert {u["username"] for u in data["items"]} == {
        "admin@timetracker.app",
        "john@timetracker.app",
        "jane@timetracker.app",
    }
    assert all("password_hash" not in u for u in data["items"])


def test_search_users(client, admin_headers):
    response = client.get("/api/v1/users", params={"search": "smith"}, headers=admin_headers)
    assert [u["name"] for u in response.json()["items"]] == ["Jane Smith"]


def test_staff_cannot_manage_users(client, john_headers):
    assert client.get("/api/v1/users", headers=john_headers).status_code == 403
    r = client.post(
        "/api/v1/users",
        json={"username": "eve", "name": "Eve", "password": "secret1"},
        headers=john_headers,
    )
    assert r.status_code == 403


def test_create_user_normalizes_handle(client, admin_headers):
    r = client.post(
        "/api/v1/users",
        json={"username": " Mary ", "name": "Mary Major", "password": "secret1"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    body = r.json()
    assert body["username"] == "mary@timetracker.app"
    assert body["role"] == "staff"

    login = client.post("/api/v1/auth/login", json={"username": "mary", "password": "secret1"})
    assert login.status_code == 200


def test_create_admin_user(client, admin_headers):
    r = client.post(
        "/api/v1/users",
        json={"username": "boss@acme.io", "name": "Boss", "password": "secret1", "role": "admin"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    assert r.json()["role"] == "admin"


def test_create_duplicate_user_conflicts(client, admin_headers):
    r = client.post(
        "/api/v1/users",
        json={"username": "JOHN@timetracker.app", "name": "Other John", "password": "secret1"},
        headers=admin_headers,
    )
    assert r.status_code == 409


def test_create_user_validates_payload(client, admin_headers):
    r = client.post(
        "/api/v1/users",
        json={"username": "short", "name": "Short", "password": "123"},
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_delete_user(client, admin_headers):
    created = client.post(
        "/api/v1/users",
        json={"username": "temp", "name": "Temp", "password": "secret1"},
        headers=admin_headers,
    ).json()
    r = client.delete(f"/api/v1/users/{created['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"status": "deleted", "id": created["id"]}

    r = client.delete(f"/api/v1/users/{created['id']}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"

    login = client.post("/api/v1/auth/login", json={"username": "temp", "password": "secret1"})
    assert login.status_code == 401


def test_admin_cannot_delete_self(client, admin_headers):
    r = client.delete(f"/api/v1/users/{ADMIN_ID}", headers=admin_headers)
    assert r.status_code == 400


def test_create_user_rejects_invalid_email_before_storing(client, admin_headers):
    for username in ["bob@localhost", "john smith", "a@b@c.io"]:
        r = client.post(
            "/api/v1/users",
            json={"username": username, "name": "Bad", "password": "secret1"},
            headers=admin_headers,
        )
        assert r.status_code == 422, username
        assert r.json()["code"] == "invalid_username"

    listing = client.get("/api/v1/users", headers=admin_headers)
    assert listing.status_code == 200
    assert listing.json()["total"] == 3


def test_login_with_malformed_username_is_unauthorized(client):
    r = client.post("/api/v1/auth/login", json={"username": "bob@localhost", "password": "secret1"})
    assert r.status_code == 401


def test_normalize_username():
    assert normalize_username(" John ", "timetracker.app") == "john@timetracker.app"
    assert normalize_username("Mary@Acme.IO", "timetracker.app") == "mary@acme.io"
    with pytest.raises(InvalidUsername):
        normalize_username("bob@localhost", "timetracker.app")


def test_username_domain_must_be_usable():
    validate_username_domain("timetracker.app")
    with pytest.raises(InvalidUsername):
        validate_username_domain("corp.local")
