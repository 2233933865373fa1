from events_platform.routes.auth import DUPLICATE_EMAIL


def _register(client, **overrides):
    payload = {"name": "Ada Lovelace", "email": "ada@example.com", "password": "analytical", "role": "user"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def _login(client, email="ada@example.com", password="analytical"):
    return client.post("/api/auth/login", data={"username": email, "password": password})


def test_register_creates_attendee_by_default(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Ada", "email": "Ada@Example.com", "password": "analytical"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "ada@example.com"
    assert body["role"] == "user"
    assert "password" not in body and "password_hash" not in body


def test_register_rejects_duplicate_email(client):
    assert _register(client).status_code == 201
    response = _register(client, name="Someone Else")
    assert response.status_code == 400
    assert response.json() == {"error": DUPLICATE_EMAIL}


def test_register_rejects_unknown_role_and_short_password(client):
    assert _register(client, role="admin").status_code == 422
    assert _register(client, password="abc").status_code == 422


def test_login_returns_token_and_dashboard_for_staff(client):
    _register(client, email="boss@example.com", role="staff")
    response = _login(client, email="boss@example.com")
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["role"] == "staff"
    assert body["redirect"] == "/staff/dashboard"
    assert body["access_token"]


def test_login_redirects_attendees_to_their_dashboard(client):
    _register(client)
    assert _login(client).json()["redirect"] == "/dashboard"


def test_login_rejects_bad_credentials(client):
    _register(client)
    response = _login(client, password="wrong-password")
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}
    assert _login(client, email="nobody@example.com").status_code == 401


def test_me_returns_profile_for_token(client):
    _register(client)
    token = _login(client).json()["access_token"]

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["name"] == "Ada Lovelace"


def test_me_requires_authentication(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_staff_token_unlocks_dashboard_after_login(client):
    _register(client, email="boss@example.com", role="staff")
    token = _login(client, email="boss@example.com").json()["access_token"]

    response = client.get("/api/registrations/staff", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == {"events": []}
