"""User account endpoints."""

from __future__ import annotations

from uuid import uuid4

from conftest import create_school


def _create_user(client, **overrides) -> dict:
    payload = {
        "name": "Ravi Kumar",
        "email": f"ravi-{uuid4().hex[:8]}@greenvalley.edu",
        "password": "secret-pass",
        "role": "school_admin",
    }
    payload.update(overrides)
    response = client.post("/users/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_list_filters_by_school_and_role(client):
    school = create_school(client)
    admin = _create_user(client, school_id=school["id"])
    _create_user(client, school_id=school["id"], role="teacher")
    _create_user(client)

    response = client.get(
        "/users/", params={"school_id": school["id"], "role": "school_admin"}
    )

    assert response.status_code == 200
    assert [user["id"] for user in response.json()] == [admin["id"]]


def test_update_can_detach_school(client):
    school = create_school(client)
    user = _create_user(client, school_id=school["id"])

    response = client.put(f"/users/{user['id']}", json={"school_id": None})

    assert response.status_code == 200
    assert response.json()["school_id"] is None


def test_email_is_stored_lowercase(client):
    user = _create_user(client, email=f"Ravi.{uuid4().hex[:6]}@GreenValley.edu")

    assert user["email"] == user["email"].lower()


def test_cannot_delete_own_account(client):
    # The test client authenticates as user id 1.
    response = client.delete("/users/1")

    assert response.status_code == 400


def test_delete_user(client):
    user = _create_user(client)

    assert client.delete(f"/users/{user['id']}").status_code == 204
    assert client.get(f"/users/{user['id']}").status_code == 404
