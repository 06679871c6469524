from sunny.core.security import hash_password, password_bytes_ok, verify_password
from sunny.routers import auth


def test_signup_returns_public_profile(test_client):
    r = test_client.post(
        "/api/auth/signup",
        json={"name": "  Mia ", "email": " Mia@Example.COM ", "password": "sunshine123"},
    )
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["name"] == "Mia"
    assert data["email"] == "mia@example.com"
    assert data["totalXp"] == 0
    assert data["level"] == 1
    assert "password" not in data and "password_hash" not in data
    assert "passwordHash" not in data


def test_signup_rejections(test_client, make_user):
    make_user(email="twin@example.com")
    r = test_client.post("/api/auth/signup", json={"name": "Twin", "email": "TWIN@example.com", "password": "sunshine123"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered."

    r = test_client.post("/api/auth/signup", json={"name": "Long", "email": "long@example.com", "password": "a" * 80})
    assert r.status_code == 400

    r = test_client.post("/api/auth/signup", json={"name": "Bad", "email": "not-an-email", "password": "sunshine123"})
    assert r.status_code == 422
    r = test_client.post("/api/auth/signup", json={"name": "Short", "email": "s@example.com", "password": "abc"})
    assert r.status_code == 422


def test_get_and_update_user(test_client, make_user):
    user = make_user()
    r = test_client.get(f"/api/users/{user['id']}")
    assert r.status_code == 200, r.text
    assert r.json()["email"] == user["email"]

    r = test_client.patch(f"/api/users/{user['id']}", json={"name": "Mia Star", "learningStyle": "visual"})
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Mia Star"
    assert r.json()["learningStyle"] == "visual"

    assert test_client.patch(f"/api/users/{user['id']}", json={"learningStyle": "telepathic"}).status_code == 422
    assert test_client.patch(f"/api/users/{user['id']}", json={"name": "   "}).status_code == 400
    assert test_client.get("/api/users/ghost").status_code == 404


def test_password_change_requires_current_password(test_client, make_user):
    user = make_user()
    url = f"/api/users/{user['id']}"

    assert test_client.patch(url, json={"password": "moonlight1"}).status_code == 403
    assert test_client.patch(url, json={"password": "moonlight1", "currentPassword": "wrong"}).status_code == 403
    assert test_client.patch(url, json={"password": "é" * 40, "currentPassword": "sunshine123"}).status_code == 400

    r = test_client.patch(url, json={"password": "moonlight1", "currentPassword": "sunshine123"})
    assert r.status_code == 200, r.text
    # l'ancien mot de passe ne marche plus
    assert test_client.patch(url, json={"password": "again123", "currentPassword": "sunshine123"}).status_code == 403
    assert test_client.patch(url, json={"password": "again123", "currentPassword": "moonlight1"}).status_code == 200


def test_chat_history_is_capped(test_client, make_user):
    user = make_user()
    url = f"/api/users/{user['id']}/chat"

    r = test_client.post(url, json={"role": "robot", "content": "hello"})
    assert r.status_code == 200, r.text
    first = r.json()["messages"][0]
    assert first["role"] == "user"
    assert first["timestamp"]

    for i in range(104):
        test_client.post(url, json={"role": "assistant", "content": f"msg {i}"})

    messages = test_client.get(url).json()["messages"]
    assert len(messages) == 100
    assert messages[-1]["content"] == "msg 103"
    assert messages[0]["content"] == "msg 4"

    assert test_client.post(url, json={"content": ""}).status_code == 422
    assert test_client.get("/api/users/ghost/chat").status_code == 404


def test_security_helpers():
    assert password_bytes_ok("a" * 72)
    assert not password_bytes_ok("a" * 73)
    h = hash_password("sunshine123")
    assert h != "sunshine123"
    assert verify_password("sunshine123", h)
    assert not verify_password("nope", h)
    assert not verify_password("sunshine123", "not-a-hash")
    assert not verify_password("sunshine123", "")


def test_concurrent_signup_same_email_is_conflict(test_client, make_user, monkeypatch):
    make_user(email="race@example.com")
    # l'autre requête a passé la vérification avant l'insertion de la première
    monkeypatch.setattr(auth, "email_taken", lambda db, email: False)

    r = test_client.post("/api/auth/signup", json={"name": "Race", "email": "race@example.com", "password": "sunshine123"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered."

    # la session est toujours utilisable après le rollback
    assert test_client.post(
        "/api/auth/signup", json={"name": "Next", "email": "next@example.com", "password": "sunshine123"}
    ).status_code == 201
