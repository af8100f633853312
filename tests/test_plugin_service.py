"""Tests for app_engine/services/plugin_service.py -- plugin catalogue."""

import uuid

import pytest

from app_engine.auth import Caller, UserPrivilege
from app_engine.errors import NotFoundError, ValidationError
from app_engine.services.common import ListQuery
from app_engine.services.plugin_service import PluginService

ADMIN = Caller("root", UserPrivilege.ADMIN)


@pytest.fixture
def plugins(fake_db) -> PluginService:
    return PluginService(fake_db.plugins)


@pytest.mark.asyncio
async def test_create_sets_author(plugins):
    plugin = await plugins.create_plugin(ADMIN, {"name": "Physics", "author": "mallory"})
    assert plugin["author"] == "root"
    assert plugin["version"] == "0.0.1"
    assert plugin["plan"] == 1
    assert plugin["isPublic"] is False


@pytest.mark.asyncio
async def test_create_rejects_bad_plan(plugins):
    with pytest.raises(ValidationError):
        await plugins.create_plugin(ADMIN, {"name": "Physics", "plan": 9})


@pytest.mark.asyncio
async def test_non_admins_only_see_public(plugins):
    await plugins.create_plugin(ADMIN, {"name": "Public", "isPublic": True})
    await plugins.create_plugin(ADMIN, {"name": "Hidden"})

    total, data = await plugins.list_plugins(Caller("george"), query=ListQuery(verbose=True))
    assert total == 1
    assert data[0]["name"] == "Public"
    assert "isPublic" not in data[0]

    total, _ = await plugins.list_plugins(None)
    assert total == 1

    total, data = await plugins.list_plugins(ADMIN, query=ListQuery(verbose=True))
    assert total == 2
    assert "isPublic" in data[0]


@pytest.mark.asyncio
async def test_get_by_id(plugins):
    plugin = await plugins.create_plugin(ADMIN, {"name": "Audio", "isPublic": True})
    total, data = await plugins.list_plugins(None, plugin["_id"])
    assert total == 1
    assert data[0]["_id"] == plugin["_id"]


@pytest.mark.asyncio
async def test_bad_id(plugins):
    with pytest.raises(ValidationError) as exc_info:
        await plugins.list_plugins(None, "nope")
    assert exc_info.value.message == "Please use a valid object ID"


@pytest.mark.asyncio
async def test_update_and_remove(plugins, fake_db):
    plugin = await plugins.create_plugin(ADMIN, {"name": "Audio"})
    assert await plugins.update_plugin(plugin["_id"], {"version": "1.2.0"}) == 1
    stored = (await fake_db.plugins.find_plugins(plugin_id=plugin["_id"]))[0]
    assert stored["version"] == "1.2.0"

    assert await plugins.remove_plugin(plugin["_id"]) == 1
    assert await fake_db.plugins.count_plugins() == 0


@pytest.mark.asyncio
async def test_missing_plugin(plugins):
    missing = str(uuid.uuid4())
    with pytest.raises(NotFoundError) as exc_info:
        await plugins.update_plugin(missing, {"name": "x"})
    assert exc_info.value.message == "Could not find a plugin with that ID"
    with pytest.raises(NotFoundError):
        await plugins.remove_plugin(missing)
