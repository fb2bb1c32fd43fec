"""Login and bearer-token protection."""

from __future__ import annotations

from uuid import uuid4

from conftest import create_school, create_teacher

from app.controllers.dependencies import get_current_user
from app.main import app


def _create_admin(client):
    email = f"admin-{uuid4().hex[:8]}@school.edu"
    response = client.post(
        "/users/",
        json={
            "name": "Asha Admin",
            "email": email,
            "password": "secret-pass",
            "role": "super_admin",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_login_returns_token_and_profile(client):
    user = _create_admin(client)

    response = client.post(
        "/auth/login", json={"email": user["email"], "password": "secret-pass"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["expiresIn"] > 0
    assert body["role"] == "super_admin"
    assert body["name"] == "Asha Admin"

    app.dependency_overrides.pop(get_current_user, None)
    me = client.get("/users/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["email"] == user["email"]


def test_wrong_password_is_rejected(client):
    user = _create_admin(client)

    response = client.post(
        "/auth/login", json={"email": user["email"], "password": "not-the-password"}
    )

    assert response.status_code == 401


def test_protected_routes_require_a_token(client):
    app.dependency_overrides.pop(get_current_user, None)

    assert client.get("/schools/").status_code == 401
    assert client.get("/health").status_code == 200


def test_duplicate_user_email_conflicts(client):
    user = _create_admin(client)

    response = client.post(
        "/users/",
        json={"name": "Copy", "email": user["email"], "password": "secret-pass"},
    )

    assert response.status_code == 409


def test_teacher_logs_in_with_default_password(client):
    school = create_school(client)
    teacher = create_teacher(client, school["id"])

    response = client.post(
        "/auth/login",
        json={"email": teacher["email"].upper(), "password": "123456"},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["role"] == "teacher"
    assert body["teacherId"] == teacher["id"]
    assert body["school"]["id"] == school["id"]


def test_password_hash_is_salted_and_self_describing():
    from app.utils import hash_password, verify_password

    first = hash_password("secret-pass")
    second = hash_password("secret-pass")

    assert first != second
    assert first.startswith("pbkdf2_sha256$1000$")
    assert verify_password("secret-pass", first)
    assert not verify_password("secret-pass", "not-a-hash")
