"""Tests for user-details router endpoints."""

from tests.conftest import PREFIX, admin_header, auth_header


def test_get_own_details_verbose(client):
    body = client.get(f"{PREFIX}/user-details/george", params={"verbose": "true"}, headers=auth_header()).json()
    assert body["error"] is False
    assert body["message"] == "Found details for user 'george'"
    assert body["data"]["maxProjects"] == 5


def test_other_users_see_public_fields(client):
    body = client.get(f"{PREFIX}/user-details/george", params={"verbose": "true"}, headers=auth_header("jane")).json()
    assert body["data"]["user"] == "george"
    assert "maxProjects" not in body["data"]


def test_get_details_requires_login(client):
    body = client.get(f"{PREFIX}/user-details/george").json()
    assert body["message"] == "You must be logged in to make this request"


def test_get_missing_details(client):
    body = client.get(f"{PREFIX}/user-details/ghost", headers=auth_header()).json()
    assert body == {
        "error": True,
        "message": "Could not find details for target 'ghost' : User does not exist",
    }


def test_admin_creates_details(client, fake_db, users):
    users.usernames.add("newbie")
    body = client.post(f"{PREFIX}/user-details/newbie", headers=admin_header()).json()
    assert body == {"error": False, "message": "Created user details for target newbie"}
    assert any(r["username"] == "newbie" for r in fake_db.rows("user_details"))


def test_create_details_for_unknown_user(client):
    body = client.post(f"{PREFIX}/user-details/ghost", headers=admin_header()).json()
    assert body == {"error": True, "message": "No user exists with the name 'ghost'"}


def test_create_details_admin_only(client):
    body = client.post(f"{PREFIX}/user-details/jane", headers=auth_header()).json()
    assert body["message"] == "You do not have permission"


def test_update_own_details(client, fake_db):
    body = client.put(
        f"{PREFIX}/user-details/george",
        json={"bio": "Game maker", "maxProjects": 1000},
        headers=auth_header(),
    ).json()
    assert body == {"error": False, "message": "Details updated"}
    row = next(r for r in fake_db.rows("user_details") if r["username"] == "george")
    assert row["bio"] == "Game maker"
    assert row["max_projects"] == 5


def test_update_other_users_details_denied(client):
    body = client.put(f"{PREFIX}/user-details/george", json={"bio": "x"}, headers=auth_header("jane")).json()
    assert body == {"error": True, "message": "You do not have permission"}
