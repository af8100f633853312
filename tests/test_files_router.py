"""Tests for files router endpoints."""

import asyncio

import pytest

from tests.conftest import PREFIX, auth_header, create_project


@pytest.fixture
def uploads(fake_db):
    """Two files for george, one of them in a project, and one for jane."""

    def _seed(project_id=None):
        async def go():
            await fake_db.files.create_file(_file("a", "george", project_id=project_id, favourite=True))
            await fake_db.files.create_file(_file("b", "george"))
            await fake_db.files.create_file(_file("c", "jane"))
        asyncio.run(go())

    return _seed


def _file(identifier: str, user: str, **overrides) -> dict:
    row = {
        "name": f"{identifier}.png", "identifier": identifier, "username": user,
        "bucket_id": "b1", "bucket_name": "media", "url": f"https://cdn/{identifier}",
        "extension": "png", "size": 10, "favourite": False, "is_global": False,
        "browsable": True, "project_id": None, "tags": [], "preview_url": "",
    }
    row.update(overrides)
    return row


def test_list_files(client, uploads):
    uploads()
    body = client.get(f"{PREFIX}/users/george/files", headers=auth_header()).json()
    assert body["message"] == "Found 2 files"
    assert body["count"] == 2


def test_list_favourites(client, uploads):
    uploads()
    body = client.get(f"{PREFIX}/users/george/files", params={"favourite": "true"}, headers=auth_header()).json()
    assert body["count"] == 1
    assert body["data"][0]["name"] == "a.png"


def test_list_project_files(client, uploads):
    project = create_project(client)
    uploads(project["_id"])
    body = client.get(
        f"{PREFIX}/users/george/projects/{project['_id']}/files", headers=auth_header(),
    ).json()
    assert body["count"] == 1


def test_files_private_to_owner(client, uploads):
    uploads()
    body = client.get(f"{PREFIX}/users/george/files", headers=auth_header("jane")).json()
    assert body == {"error": True, "message": "You do not have permission"}


def test_update_file(client, uploads, fake_db):
    uploads()
    file_id = next(str(r["id"]) for r in fake_db.rows("files") if r["identifier"] == "b")
    body = client.put(
        f"{PREFIX}/users/george/files/{file_id}", json={"favourite": True, "name": "renamed.png"},
        headers=auth_header(),
    ).json()
    assert body == {"error": False, "message": "[1] Files updated"}
    assert fake_db.table("files")[file_id]["name"] == "renamed.png"


def test_update_file_validation(client, uploads, fake_db):
    uploads()
    file_id = str(fake_db.rows("files")[0]["id"])
    body = client.put(
        f"{PREFIX}/users/george/files/{file_id}", json={"size": -5}, headers=auth_header(),
    ).json()
    assert body == {"error": True, "message": "Could not update file details: 'size' must be at least 0"}
