"""Files router -- browsing and tagging a user's uploaded files."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from app_engine.api.deps import get_services, owner_list_query, require_editor
from app_engine.auth import Caller
from app_engine.errors import envelope
from app_engine.services.common import ListQuery
from app_engine.services.registry import Services

router = APIRouter(tags=["files"])


@router.get("/users/{user}/files")
@router.get("/users/{user}/projects/{project}/files")
async def get_files(
    user: str,
    project: str | None = None,
    favourite: bool | None = Query(None),
    global_: bool | None = Query(None, alias="global"),
    bucket: str | None = Query(None),
    _editor: Caller = Depends(require_editor),
    query: ListQuery = Depends(owner_list_query),
    services: Services = Depends(get_services),
) -> dict:
    total, data = await services.files.list_files(
        user, project, query, favourite=favourite, is_global=global_, bucket=bucket,
    )
    return envelope(f"Found {total} files", count=total, data=data)


@router.put("/users/{user}/files/{file_id}")
async def update_file(
    user: str,
    file_id: str,
    _editor: Caller = Depends(require_editor),
    payload: dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> dict:
    updated = await services.files.update_file(user, file_id, payload)
    return envelope(f"[{updated}] Files updated")
