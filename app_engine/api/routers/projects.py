"""Projects router -- create, list, read, update and batch delete."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from app_engine.api.deps import (
    can_read,
    get_services,
    list_query,
    owner_list_query,
    require_admin,
    require_caller,
    require_editor,
)
from app_engine.auth import Caller
from app_engine.errors import envelope
from app_engine.services.common import ListQuery
from app_engine.services.registry import Services

router = APIRouter(tags=["projects"])


@router.get("/projects")
async def list_all_projects(
    _admin: Caller = Depends(require_admin),
    query: ListQuery = Depends(list_query),
    services: Services = Depends(get_services),
) -> dict:
    """Every project on the server (admins only)."""
    total, data = await services.projects.list_projects(None, query)
    return envelope(f"Found {total} projects", count=total, data=data)


@router.post("/projects")
async def create_project(
    caller: Caller = Depends(require_caller),
    payload: dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> dict:
    project = await services.projects.create_project(caller, payload)
    return envelope(f"Created project '{project['name']}'", data=project)


@router.get("/users/{user}/projects")
async def list_user_projects(
    user: str,
    _caller: Caller = Depends(require_caller),
    query: ListQuery = Depends(owner_list_query),
    services: Services = Depends(get_services),
) -> dict:
    total, data = await services.projects.list_projects(user, query)
    return envelope(f"Found {total} projects", count=total, data=data)


@router.get("/users/{user}/projects/{project}")
async def get_project(
    user: str,
    project: str,
    _caller: Caller = Depends(can_read),
    query: ListQuery = Depends(owner_list_query),
    services: Services = Depends(get_services),
) -> dict:
    total, data = await services.projects.get_project(user, project, query.verbose)
    return envelope(f"Found {total} projects", count=total, data=data)


@router.put("/users/{user}/projects/{project}")
async def update_project(
    user: str,
    project: str,
    caller: Caller = Depends(require_editor),
    payload: dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> dict:
    updated = await services.projects.update_project(caller, user, project, payload)
    return envelope(f"[{updated}] Projects updated")


@router.delete("/users/{user}/projects/{projects}")
async def remove_projects(
    user: str,
    projects: str,
    caller: Caller = Depends(require_editor),
    services: Services = Depends(get_services),
) -> dict:
    """Delete a comma separated list of projects and their builds."""
    ids = [part.strip() for part in projects.split(",") if part.strip()]
    result = await services.projects.remove_projects(caller, user, ids)
    return result.to_json()
