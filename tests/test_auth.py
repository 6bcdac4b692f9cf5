"""Registration, login and token lifecycle."""
import pytest

from app.schemas.auth import validate_login_id, validate_password_strength
from app.services import notification_service


REGISTRATION = {
    "login_id": "jane_doe",
    "name": "Jane Doe",
    "email": "jane@stockmaster.io",
    "password": "Str0ng!pass",
}


@pytest.mark.parametrize("login_id", ["short", "much_too_long_id", "bad-char!"])
def test_login_id_rules(login_id):
    with pytest.raises(ValueError):
        validate_login_id(login_id)


@pytest.mark.parametrize("password", ["Sh0rt!", "nouppercase!", "NOLOWERCASE!", "NoSpecial1"])
def test_password_rules(password):
    with pytest.raises(ValueError):
        validate_password_strength(password)


async def test_register_returns_tokens(client):
    response = await client.post("/api/v1/auth/register", json=REGISTRATION)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["login_id"] == "jane_doe"
    assert data["user"]["role"] == "Warehouse Staff"


async def test_register_duplicate_email(client):
    await client.post("/api/v1/auth/register", json=REGISTRATION)

    response = await client.post(
        "/api/v1/auth/register", json={**REGISTRATION, "login_id": "jane_two"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Email already registered"


async def test_register_weak_password(client):
    response = await client.post(
        "/api/v1/auth/register", json={**REGISTRATION, "password": "weakpass"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_login_with_login_id_or_email(client):
    await client.post("/api/v1/auth/register", json=REGISTRATION)

    by_login = await client.post(
        "/api/v1/auth/login", json={"login_id": "jane_doe", "password": REGISTRATION["password"]}
    )
    by_email = await client.post(
        "/api/v1/auth/login", json={"login_id": "jane@stockmaster.io", "password": REGISTRATION["password"]}
    )

    assert by_login.status_code == 200
    assert by_email.status_code == 200


async def test_login_wrong_password(client):
    await client.post("/api/v1/auth/register", json=REGISTRATION)

    response = await client.post(
        "/api/v1/auth/login", json={"login_id": "jane_doe", "password": "Wrong!pass1"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid Login ID or Password"


async def test_refresh_token_rotates(client):
    registered = await client.post("/api/v1/auth/register", json=REGISTRATION)
    refresh_token = registered.json()["data"]["refresh_token"]

    first = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert first.status_code == 200
    assert first.json()["data"]["refresh_token"] != refresh_token

    reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert reused.status_code == 401


async def test_logout_revokes_refresh_token(client):
    registered = await client.post("/api/v1/auth/register", json=REGISTRATION)
    tokens = registered.json()["data"]
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    response = await client.post(
        "/api/v1/auth/logout", json={"refresh_token": tokens["refresh_token"]}, headers=headers
    )
    assert response.status_code == 200

    refreshed = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 401


async def test_me_lists_permissions(client, manager_headers):
    response = await client.get("/api/v1/auth/me", headers=manager_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["login_id"] == "manager_1"
    assert data["role"] == "Inventory Manager"
    assert "validate" in data["permissions"]["receipts"]
    assert data["permissions"]["warehouses"] == ["read"]


async def test_register_schedules_welcome_email(client, monkeypatch):
    sent = []
    monkeypatch.setattr(notification_service, "_dispatch", lambda kind, payload: sent.append((kind, payload)))

    response = await client.post("/api/v1/auth/register", json=REGISTRATION)

    assert response.status_code == 201
    assert sent == [(
        notification_service.WELCOME,
        {"email": "jane@stockmaster.io", "name": "Jane Doe", "login_id": "jane_doe"},
    )]
