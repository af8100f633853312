"""Builds router -- builds belonging to one project."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from app_engine.api.deps import (
    can_read,
    can_write,
    get_services,
    owner_list_query,
    require_editor,
)
from app_engine.auth import Caller
from app_engine.errors import envelope
from app_engine.services.common import ListQuery
from app_engine.services.registry import Services

router = APIRouter(prefix="/users/{user}/projects/{project}/builds", tags=["builds"])


@router.get("")
@router.get("/{build_id}")
async def get_builds(
    user: str,
    project: str,
    build_id: str | None = None,
    _editor: Caller = Depends(require_editor),
    _reader: Caller = Depends(can_read),
    query: ListQuery = Depends(owner_list_query),
    services: Services = Depends(get_services),
) -> dict:
    total, data = await services.builds.list_builds(user, project, build_id, query)
    return envelope(f"Found [{total}] builds for user '{user}'", count=total, data=data)


@router.post("")
async def create_build(
    user: str,
    project: str,
    set_current: bool = Query(False, alias="set-current"),
    _editor: Caller = Depends(require_editor),
    _writer: Caller = Depends(can_write),
    services: Services = Depends(get_services),
) -> dict:
    """Start a new build; ``?set-current=true`` makes it the project's build."""
    build = await services.builds.create_for_project(user, project, set_current=set_current)
    return envelope(f"Created new build for user '{user}'", count=1, data=build)


@router.put("/{build_id}")
async def edit_build(
    user: str,
    project: str,
    build_id: str,
    _editor: Caller = Depends(require_editor),
    _writer: Caller = Depends(can_write),
    payload: dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> dict:
    updated = await services.builds.edit_build(project, build_id, payload)
    return envelope(f"[{updated}] Build updated")
