from conftest import auth_headers
from sharelink.core.security import decode_token
from sharelink.models.user import User


def _register(client, email="new@example.com", password="secret123", name="New User"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


def test_register_returns_token_and_sends_welcome(client, db_session, mailer):
    response = _register(client, email="New@Example.com")
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["email"] == "new@example.com"
    assert data["user"]["isAdmin"] is False
    assert data["user"]["createdAt"].endswith(("Z", "+00:00"))
    assert "password" not in data["user"]
    assert "passwordHash" not in data["user"]

    claims = decode_token(data["accessToken"])
    assert claims["sub"] == str(data["user"]["id"])
    assert claims["email"] == "new@example.com"

    assert [m["to"] for m in mailer.sent] == ["new@example.com"]
    assert mailer.sent[0]["subject"].startswith("Welcome")


def test_register_duplicate_email_conflicts(client, db_session):
    assert _register(client).status_code == 201
    duplicate = _register(client, email="NEW@example.com", name="Someone Else")
    assert duplicate.status_code == 409
    assert db_session.query(User).count() == 1


def test_register_validation(client):
    assert _register(client, password="123").status_code == 400
    assert _register(client, email="not-an-email").status_code == 400
    assert _register(client, name="   ").status_code == 400


def test_login(client, user):
    ok = client.post("/api/auth/login", json={"email": "user@example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["id"] == user.id

    wrong = client.post("/api/auth/login", json={"email": "user@example.com", "password": "nope123"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["message"] == unknown.json()["message"] == "Invalid email or password"


def test_me_and_logout(client, user, user_headers):
    me = client.get("/api/auth/me", headers=user_headers)
    assert me.status_code == 200
    assert me.json()["data"]["name"] == "Test User"

    assert client.get("/api/auth/me").status_code == 401
    bad = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert bad.status_code == 401
    assert bad.headers["www-authenticate"] == "Bearer"

    assert client.post("/api/auth/logout", headers=user_headers).status_code == 200


def test_update_profile(client, db_session, user, user_headers, admin_user):
    empty = client.put("/api/auth/profile", json={}, headers=user_headers)
    assert empty.status_code == 400

    taken = client.put("/api/auth/profile", json={"email": "admin@example.com"}, headers=user_headers)
    assert taken.status_code == 409

    response = client.put(
        "/api/auth/profile",
        json={"name": "Renamed", "email": "Renamed@Example.com"},
        headers=user_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "renamed@example.com"
    assert response.json()["data"]["name"] == "Renamed"


def test_change_password(client, user, user_headers):
    wrong = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "wrong", "newPassword": "another123"},
        headers=user_headers,
    )
    assert wrong.status_code == 401

    short = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "secret123", "newPassword": "123"},
        headers=user_headers,
    )
    assert short.status_code == 400

    ok = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "secret123", "newPassword": "another123"},
        headers=user_headers,
    )
    assert ok.status_code == 200

    login = client.post("/api/auth/login", json={"email": "user@example.com", "password": "another123"})
    assert login.status_code == 200


def test_token_for_deleted_user_is_rejected(client, db_session, user):
    headers = auth_headers(user)
    db_session.delete(user)
    db_session.commit()
    assert client.get("/api/auth/me", headers=headers).status_code == 401
