"""Tests for app_engine/repos/project_repo.py -- projects table SQL."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from app_engine.repos import project_repo


def _fake_pool():
    pool = AsyncMock()
    return pool


def _project_row(**overrides):
    defaults = {
        "id": uuid.uuid4(),
        "username": "george",
        "name": "Platformer",
        "admin_privileges": ["george"],
        "read_privileges": [],
        "write_privileges": [],
        "created_on": datetime.now(timezone.utc),
        "last_modified": datetime.now(timezone.utc),
    }
    defaults.update(overrides)
    return defaults


@pytest.mark.asyncio
@patch("app_engine.repos.project_repo.get_pool")
async def test_create_project(mock_get_pool):
    pool = _fake_pool()
    row = _project_row()
    pool.fetchrow.return_value = row
    mock_get_pool.return_value = pool

    result = await project_repo.create_project({"name": "Platformer", "username": "george"})

    query, *args = pool.fetchrow.call_args[0]
    assert query.startswith("INSERT INTO projects (name, username)")
    assert args == ["Platformer", "george"]
    assert result["id"] == row["id"]


@pytest.mark.asyncio
@patch("app_engine.repos.project_repo.get_pool")
async def test_get_project_not_found(mock_get_pool):
    pool = _fake_pool()
    pool.fetchrow.return_value = None
    mock_get_pool.return_value = pool

    assert await project_repo.get_project(str(uuid.uuid4()), user="george") is None
    query = pool.fetchrow.call_args[0][0]
    assert "username = $1 AND id = $2" in query


@pytest.mark.asyncio
@patch("app_engine.repos.project_repo.get_pool")
async def test_count_projects_excludes_id(mock_get_pool):
    pool = _fake_pool()
    pool.fetchval.return_value = 3
    mock_get_pool.return_value = pool

    count = await project_repo.count_projects(user="george", exclude_id="p1")

    assert count == 3
    query, *args = pool.fetchval.call_args[0]
    assert "id <> $2" in query
    assert args == ["george", "p1"]


@pytest.mark.asyncio
@patch("app_engine.repos.project_repo.get_pool")
async def test_find_projects_search_and_page(mock_get_pool):
    pool = _fake_pool()
    pool.fetch.return_value = [_project_row(), _project_row()]
    mock_get_pool.return_value = pool

    result = await project_repo.find_projects(user="george", search="space", index=2, limit=10)

    assert len(result) == 2
    query, *args = pool.fetch.call_args[0]
    assert "name ~* $2" in query
    assert query.rstrip().endswith("ORDER BY created_on, id OFFSET $3 LIMIT $4")
    assert args == ["george", "space", 2, 10]


@pytest.mark.asyncio
@patch("app_engine.repos.project_repo.get_pool")
async def test_has_privilege_builds_membership_test(mock_get_pool):
    pool = _fake_pool()
    pool.fetchval.return_value = True
    mock_get_pool.return_value = pool

    allowed = await project_repo.has_privilege("p1", "jane", ("write_privileges", "admin_privileges"))

    assert allowed is True
    query, *args = pool.fetchval.call_args[0]
    assert "id = $1" in query
    assert "$2 = ANY(write_privileges) OR $2 = ANY(admin_privileges)" in query
    assert args == ["p1", "jane"]


@pytest.mark.asyncio
async def test_has_privilege_rejects_unknown_column():
    with pytest.raises(ValueError):
        await project_repo.has_privilege("p1", "jane", ("username",))


@pytest.mark.asyncio
@patch("app_engine.repos.project_repo.get_pool")
async def test_update_project_scoped_to_owner(mock_get_pool):
    pool = _fake_pool()
    pool.execute.return_value = "UPDATE 1"
    mock_get_pool.return_value = pool

    updated = await project_repo.update_project("p1", "george", {"name": "Renamed"})

    assert updated == 1
    query, *args = pool.execute.call_args[0]
    assert "SET name = $3, last_modified = clock_timestamp()" in query
    assert "WHERE username = $1 AND id = $2" in query
    assert args == ["george", "p1", "Renamed"]


@pytest.mark.asyncio
@patch("app_engine.repos.project_repo.get_pool")
async def test_delete_project(mock_get_pool):
    pool = _fake_pool()
    pool.execute.return_value = "DELETE 0"
    mock_get_pool.return_value = pool

    assert await project_repo.delete_project("p1") == 0
