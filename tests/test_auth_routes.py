from models.enums import Role

from conftest import PASSWORD, auth_header


def _register(client, **overrides):
    body = {"name": "Park", "email": "park@example.com", "password": "Secret123", **overrides}
    return client.post("/auth/register", json=body)


def test_register_defaults_to_client_role(client) -> None:
    response = _register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "client"
    assert body["email"] == "park@example.com"
    assert "hashed_password" not in body


def test_register_counselor(client) -> None:
    response = _register(client, role="counselor")

    assert response.status_code == 201
    assert response.json()["role"] == "counselor"


def test_register_rejects_admin_role(client) -> None:
    response = _register(client, role="admin")

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "REQUEST_VALIDATION_ERROR"
    assert body["details"]["errors"][0]["loc"] == ["body", "role"]
    assert "Admin accounts cannot be self-registered." in body["details"]["errors"][0]["msg"]


def test_register_rejects_duplicate_email(client) -> None:
    assert _register(client).status_code == 201

    response = _register(client, email="PARK@example.com")

    assert response.status_code == 400
    assert response.json()["code"] == "EMAIL_ALREADY_REGISTERED"


def test_register_rejects_short_password(client) -> None:
    assert _register(client, password="short").status_code == 422


def test_login_returns_token_usable_for_me(client) -> None:
    _register(client, role="counselor")

    login = client.post("/auth/login", json={"email": "park@example.com", "password": "Secret123"})

    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["token_type"] == "bearer"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["role"] == "counselor"


def test_login_rejects_wrong_password(client, make_user) -> None:
    user = make_user(Role.CLIENT)

    response = client.post("/auth/login", json={"email": user.email, "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["message"] == "Incorrect email or password"


def test_login_rejects_inactive_user(client, make_user) -> None:
    user = make_user(Role.CLIENT, is_active=False)

    response = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})

    assert response.status_code == 400


def test_me_rejects_invalid_token(client) -> None:
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_me_rejects_token_for_deleted_user(client, make_user, db_session) -> None:
    user = make_user(Role.CLIENT)
    headers = auth_header(user)
    db_session.delete(user)
    db_session.commit()

    response = client.get("/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.json()["message"] == "User not found"


def test_unknown_route_uses_error_body(client) -> None:
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "code": "NOT_FOUND",
        "message": "Route not found: /does-not-exist",
        "details": None,
    }


def test_root_reports_online(client) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "online"
