"""Tests for app_engine/services/build_service.py -- build lifecycle."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from app_engine.errors import LinkFailureError, NotFoundError, PersistenceError, ValidationError
from app_engine.services.build_service import BuildLifecycle
from app_engine.services.common import ListQuery


@pytest.fixture
def lifecycle(fake_db) -> BuildLifecycle:
    return BuildLifecycle(fake_db.builds, fake_db.projects)


async def _project(fake_db, user: str = "george") -> dict:
    return await fake_db.projects.create_project({
        "username": user, "name": "p", "build_id": None,
        "read_privileges": [], "write_privileges": [], "admin_privileges": [user],
    })


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_build_uses_defaults(lifecycle, fake_db):
    build = await lifecycle.create_build("george")
    assert build["username"] == "george"
    assert build["project_id"] is None
    assert build["name"] == "New Build"
    assert build["version"] == "0.0.1"
    assert await fake_db.builds.count_builds(user="george") == 1


@pytest.mark.asyncio
async def test_link_project(lifecycle, fake_db):
    build = await lifecycle.create_build("george")
    project = await _project(fake_db)
    await lifecycle.link_project(str(build["id"]), str(project["id"]))
    stored = await fake_db.builds.get_build(build["id"])
    assert str(stored["project_id"]) == str(project["id"])


@pytest.mark.asyncio
async def test_link_project_missing_build():
    builds = MagicMock()
    builds.link_project = AsyncMock(return_value=0)
    with pytest.raises(LinkFailureError) as exc_info:
        await BuildLifecycle(builds, MagicMock()).link_project(str(uuid.uuid4()), str(uuid.uuid4()))
    assert exc_info.value.message == "An error has occurred while linking the build with a project"


@pytest.mark.asyncio
async def test_link_project_store_failure():
    builds = MagicMock()
    builds.link_project = AsyncMock(side_effect=asyncpg.PostgresError("connection lost"))
    with pytest.raises(LinkFailureError):
        await BuildLifecycle(builds, MagicMock()).link_project(str(uuid.uuid4()), str(uuid.uuid4()))


@pytest.mark.asyncio
async def test_remove_by_ids_rejects_bad_id(lifecycle):
    with pytest.raises(ValidationError) as exc_info:
        await lifecycle.remove_by_ids(["bogus"], "george")
    assert exc_info.value.message == "ID 'bogus' is not a valid ID"


@pytest.mark.asyncio
async def test_remove_by_ids_only_touches_owner(lifecycle, fake_db):
    mine = await lifecycle.create_build("george")
    theirs = await lifecycle.create_build("jane")
    removed = await lifecycle.remove_by_ids([str(mine["id"]), str(theirs["id"])], "george")
    assert removed == 1
    assert await fake_db.builds.get_build(theirs["id"]) is not None


@pytest.mark.asyncio
async def test_remove_by_user(lifecycle, fake_db):
    await lifecycle.create_build("george")
    await lifecycle.create_build("george")
    await lifecycle.create_build("jane")
    assert await lifecycle.remove_by_user("george") == 2
    assert await fake_db.builds.count_builds() == 1


# ---------------------------------------------------------------------------
# Endpoint operations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_for_project_sets_current(lifecycle, fake_db):
    project = await _project(fake_db)
    pid = str(project["id"])
    build = await lifecycle.create_for_project("george", pid, set_current=True)
    assert build["projectId"] == pid
    stored = await fake_db.projects.get_project(pid)
    assert str(stored["build_id"]) == build["_id"]


@pytest.mark.asyncio
async def test_create_for_project_leaves_current(lifecycle, fake_db):
    project = await _project(fake_db)
    await lifecycle.create_for_project("george", str(project["id"]))
    stored = await fake_db.projects.get_project(project["id"])
    assert stored["build_id"] is None


@pytest.mark.asyncio
async def test_create_for_missing_project(lifecycle):
    with pytest.raises(NotFoundError) as exc_info:
        await lifecycle.create_for_project("george", str(uuid.uuid4()))
    assert exc_info.value.message == (
        "Could not create build for 'george' : No project exists with that ID"
    )


@pytest.mark.asyncio
async def test_list_builds_counts_and_pages(lifecycle, fake_db):
    project = await _project(fake_db)
    pid = str(project["id"])
    for _ in range(3):
        await lifecycle.create_build("george", pid)
    await lifecycle.create_build("george")

    total, data = await lifecycle.list_builds("george", pid, query=ListQuery(index=1, limit=1))
    assert total == 3
    assert len(data) == 1
    assert "projectId" not in data[0]


@pytest.mark.asyncio
async def test_list_builds_bad_id(lifecycle):
    with pytest.raises(ValidationError) as exc_info:
        await lifecycle.list_builds("george", str(uuid.uuid4()), "nope")
    assert exc_info.value.message == "Could not get builds for 'george' : Please use a valid object id"


@pytest.mark.asyncio
async def test_list_builds_store_failure_prefixed():
    builds = MagicMock()
    builds.count_builds = AsyncMock(side_effect=asyncpg.PostgresError("timeout"))
    with pytest.raises(PersistenceError) as exc_info:
        await BuildLifecycle(builds, MagicMock()).list_builds("george", str(uuid.uuid4()))
    assert exc_info.value.message.startswith("Could not get builds for 'george' : ")


@pytest.mark.asyncio
async def test_edit_build(lifecycle, fake_db):
    project = await _project(fake_db)
    build = await lifecycle.create_build("george", str(project["id"]))
    updated = await lifecycle.edit_build(
        str(project["id"]), str(build["id"]), {"notes": "hello", "version": "1.0.0"},
    )
    assert updated == 1
    stored = await fake_db.builds.get_build(build["id"])
    assert stored["notes"] == "hello"
    assert stored["version"] == "1.0.0"


@pytest.mark.asyncio
async def test_edit_build_other_project_updates_nothing(lifecycle, fake_db):
    project = await _project(fake_db)
    build = await lifecycle.create_build("george", str(project["id"]))
    assert await lifecycle.edit_build(str(uuid.uuid4()), str(build["id"]), {"notes": "x"}) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "project_id, build_id, message",
    [
        (str(uuid.uuid4()), "bad", "Please use a valid resource ID"),
        ("bad", str(uuid.uuid4()), "Please use a valid project ID"),
    ],
)
async def test_edit_build_bad_ids(lifecycle, project_id, build_id, message):
    with pytest.raises(ValidationError) as exc_info:
        await lifecycle.edit_build(project_id, build_id, {})
    assert exc_info.value.message == message
