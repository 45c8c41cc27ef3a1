import uuid
from datetime import timedelta

import pytest

from conftest import add_user, auth_headers
from inventory_portal.services.auth import create_access_token


async def test_login_returns_token_and_user(client, admin):
    resp = await client.post("/api/auth/login", json={"username": "ADMIN", "password": "adminpass"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["tokenType"] == "bearer"
    user = body["data"]["user"]
    assert user["username"] == "admin"
    assert user["role"] == "admin"
    assert user["lastLogin"] is not None
    assert "passwordHash" not in user

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['data']['token']}"})
    assert me.json()["data"]["user"]["id"] == str(admin.id)


async def test_login_with_wrong_password(client, admin):
    resp = await client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid credentials"}


async def test_deactivated_account_cannot_login(client, session_factory):
    await add_user(session_factory, "sleeper", password="secret123", is_active=False)
    resp = await client.post("/api/auth/login", json={"username": "sleeper", "password": "secret123"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "User account is deactivated"


async def test_deactivated_account_token_is_refused(client, session_factory):
    user = await add_user(session_factory, "sleeper", is_active=False)
    resp = await client.get("/api/auth/me", headers=auth_headers(user))
    assert resp.status_code == 401
    assert resp.json()["message"] == "User account is deactivated"


@pytest.mark.parametrize("token,message", [
    ("garbage", "Invalid token"),
    (create_access_token({"sub": str(uuid.uuid4())}), "Token is not valid - user not found"),
    (create_access_token({"sub": "x"}, expires_delta=timedelta(minutes=-5)), "Token has expired"),
])
async def test_bad_tokens(client, token, message):
    resp = await client.get("/api/inventory", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == message


async def test_trainee_cannot_use_admin_routes(client, session_factory, trainee_headers):
    item_payload = {"building": "Main", "floor": "1", "roomNameOrNumber": "1"}
    for method, path, kwargs in [
        ("post", "/api/inventory", {"json": item_payload}),
        ("delete", f"/api/inventory/{uuid.uuid4()}", {}),
        ("get", "/api/users", {}),
    ]:
        resp = await getattr(client, method)(path, headers=trainee_headers, **kwargs)
        assert resp.status_code == 403
        assert resp.json() == {"success": False, "message": "Access denied. Admin privileges required."}


async def test_trainee_profile(client, trainee_headers):
    resp = await client.get("/api/ojt/profile", headers=trainee_headers)
    assert resp.json()["data"]["user"]["username"] == "trainee"


async def test_create_user(client, admin_headers):
    resp = await client.post(
        "/api/users",
        json={"username": "NewHire", "email": "New@Example.com", "password": "secret123"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    user = resp.json()["data"]["user"]
    assert user["username"] == "newhire"
    assert user["email"] == "new@example.com"
    assert user["role"] == "ojt"
    assert user["isActive"] is True


async def test_create_user_duplicate_username(client, admin, admin_headers):
    resp = await client.post(
        "/api/users",
        json={"username": "admin", "email": "other@example.com", "password": "secret123"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "username already exists"


async def test_create_user_validation(client, admin_headers):
    resp = await client.post(
        "/api/users",
        json={"username": "x", "email": "not-an-email", "password": "1"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation error"
    assert len(body["errors"]) == 3


async def test_update_user_ignores_password(client, session_factory, admin_headers):
    user = await add_user(session_factory, "worker", password="original1")
    resp = await client.put(
        f"/api/users/{user.id}",
        json={"role": "admin", "password": "hijacked1"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["role"] == "admin"

    login = await client.post("/api/auth/login", json={"username": "worker", "password": "original1"})
    assert login.status_code == 200


async def test_update_user_to_taken_email(client, session_factory, admin, admin_headers):
    user = await add_user(session_factory, "worker")
    resp = await client.put(f"/api/users/{user.id}", json={"email": "admin@example.com"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "email already exists"


async def test_toggle_status(client, session_factory, admin_headers):
    user = await add_user(session_factory, "worker")
    resp = await client.put(f"/api/users/{user.id}/toggle-status", headers=admin_headers)
    assert resp.json()["data"]["user"]["isActive"] is False
    resp = await client.put(f"/api/users/{user.id}/toggle-status", headers=admin_headers)
    assert resp.json()["data"]["user"]["isActive"] is True


async def test_admin_cannot_delete_self(client, admin, admin_headers):
    resp = await client.delete(f"/api/users/{admin.id}", headers=admin_headers)
    assert resp.status_code == 400


async def test_admin_cannot_deactivate_self_via_update(client, admin, admin_headers):
    resp = await client.put(f"/api/users/{admin.id}", json={"isActive": False}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cannot deactivate your own account"

    me = await client.get("/api/auth/me", headers=admin_headers)
    assert me.status_code == 200
    assert me.json()["data"]["user"]["isActive"] is True


async def test_admin_cannot_demote_self(client, admin, admin_headers):
    resp = await client.put(f"/api/users/{admin.id}", json={"role": "ojt"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cannot change your own role"


async def test_admin_can_edit_own_email(client, admin, admin_headers):
    resp = await client.put(
        f"/api/users/{admin.id}",
        json={"email": "boss@example.com", "role": "admin", "isActive": True},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["email"] == "boss@example.com"


async def test_delete_user(client, session_factory, admin_headers):
    user = await add_user(session_factory, "worker")
    resp = await client.delete(f"/api/users/{user.id}", headers=admin_headers)
    assert resp.json()["message"] == "User deleted successfully"
    resp = await client.get(f"/api/users/{user.id}", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"


async def test_malformed_user_id(client, admin_headers):
    resp = await client.get("/api/users/123", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid user ID format"


async def test_unknown_api_route_uses_envelope(client):
    resp = await client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route not found"}


async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.json()["data"]["status"] == "ok"
    assert "X-Request-ID" in resp.headers
