def register_and_login(client, *, name, email, role, password="password123"):
    register = client.post(
        "/api/auth/register", json={"name": name, "email": email, "password": password, "role": role}
    )
    assert register.status_code == 201, register.text
    login = client.post("/api/auth/login", json={"email": email, "password": password, "role": role})
    assert login.status_code == 200, login.text
    return {"Authorization": f"Bearer {login.json()['access_token']}"}


def test_register_login_and_me(client):
    headers = register_and_login(client, name="Asha", email="Asha@Example.com", role="student")
    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "asha@example.com"
    assert me.json()["role"] == "student"


def test_duplicate_registration_is_rejected(client):
    payload = {"name": "Asha", "email": "asha@example.com", "password": "password123", "role": "student"}
    assert client.post("/api/auth/register", json=payload).status_code == 201
    assert client.post("/api/auth/register", json=payload).status_code == 409


def test_login_failures(client):
    register_and_login(client, name="Asha", email="asha@example.com", role="student")

    wrong_password = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "wrongpass1"})
    assert wrong_password.status_code == 401

    wrong_role = client.post(
        "/api/auth/login", json={"email": "asha@example.com", "password": "password123", "role": "admin"}
    )
    assert wrong_role.status_code == 403

    unknown = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "password123"})
    assert unknown.status_code == 401


def test_bad_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_logout_is_recorded(client, admin_headers):
    response = client.post("/api/auth/logout", headers=admin_headers)
    assert response.json() == {"success": True}

    logs = client.get("/api/activity/", params={"entityType": "user"}, headers=admin_headers).json()
    assert {"auth.registered", "auth.logout"} <= {item["action"] for item in logs}
