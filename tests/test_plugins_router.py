"""Tests for plugins router endpoints."""

from tests.conftest import MISSING_ID, PREFIX, admin_header, auth_header


def _create(client, **payload):
    return client.post(f"{PREFIX}/plugins", json=payload, headers=admin_header()).json()


def test_create_plugin_admin_only(client, fake_db):
    body = client.post(f"{PREFIX}/plugins", json={"name": "Physics"}, headers=auth_header()).json()
    assert body == {"error": True, "message": "You do not have permission"}
    assert fake_db.rows("plugins") == []


def test_create_plugin(client):
    body = _create(client, name="Physics", description="<p>Box2D</p>", isPublic=True)
    assert body["error"] is False
    assert body["message"] == "Created new plugin 'Physics'"
    assert body["data"]["author"] == "admin"


def test_list_plugins_visibility(client):
    _create(client, name="Public", isPublic=True)
    _create(client, name="Private")

    anonymous = client.get(f"{PREFIX}/plugins").json()
    assert anonymous["message"] == "Found 1 plugins"

    admin = client.get(f"{PREFIX}/plugins", headers=admin_header()).json()
    assert admin["count"] == 2


def test_get_plugin_bad_id(client):
    body = client.get(f"{PREFIX}/plugins/123").json()
    assert body == {"error": True, "message": "Please use a valid object ID"}


def test_update_plugin(client):
    plugin = _create(client, name="Physics")["data"]
    body = client.put(
        f"{PREFIX}/plugins/{plugin['_id']}", json={"version": "0.2.0"}, headers=admin_header(),
    ).json()
    assert body == {"error": False, "message": "Plugin Updated"}


def test_update_missing_plugin(client):
    body = client.put(f"{PREFIX}/plugins/{MISSING_ID}", json={}, headers=admin_header()).json()
    assert body == {"error": True, "message": "Could not find a plugin with that ID"}


def test_remove_plugin(client, fake_db):
    plugin = _create(client, name="Physics")["data"]
    body = client.delete(f"{PREFIX}/plugins/{plugin['_id']}", headers=admin_header()).json()
    assert body == {"error": False, "message": "Plugin has been successfully removed"}
    assert fake_db.rows("plugins") == []
