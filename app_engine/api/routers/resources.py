"""Resource routers -- one router per project-scoped resource type.

Every type gets the same five routes::

    GET    /{kind}                                       (admin) all of them
    GET    /users/{user}/projects/{project}/{kind}[/id]  canRead
    POST   /users/{user}/projects/{project}/{kind}       canWrite
    PUT    /users/{user}/projects/{project}/{kind}/{id}  canWrite
    DELETE /users/{user}/projects/{project}/{kind}/{ids} canWrite
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from app_engine.api.deps import (
    can_read,
    can_write,
    get_services,
    list_query,
    owner_list_query,
    require_admin,
)
from app_engine.auth import Caller
from app_engine.errors import envelope
from app_engine.schema.models import RESOURCE_SCHEMAS
from app_engine.services.common import ListQuery
from app_engine.services.registry import Services


def build_resource_router(kind: str) -> APIRouter:
    router = APIRouter(tags=[kind])
    base = f"/users/{{user}}/projects/{{project}}/{kind}"

    @router.get(f"/{kind}", name=f"list_all_{kind}")
    async def list_all(
        _admin: Caller = Depends(require_admin),
        query: ListQuery = Depends(list_query),
        services: Services = Depends(get_services),
    ) -> dict:
        total, data = await services.resources[kind].list_resources(None, query=query)
        return envelope(f"Found {total} {kind}", count=total, data=data)

    @router.get(base, name=f"list_{kind}")
    @router.get(base + "/{resource_id}", name=f"get_{kind}")
    async def list_for_project(
        user: str,
        project: str,
        resource_id: str | None = None,
        _reader: Caller = Depends(can_read),
        query: ListQuery = Depends(owner_list_query),
        services: Services = Depends(get_services),
    ) -> dict:
        total, data = await services.resources[kind].list_resources(project, resource_id, query)
        return envelope(f"Found {total} {kind}", count=total, data=data)

    @router.post(base, name=f"create_{kind}")
    async def create(
        user: str,
        project: str,
        _writer: Caller = Depends(can_write),
        payload: dict[str, Any] = Body(default={}),
        services: Services = Depends(get_services),
    ) -> dict:
        resource = await services.resources[kind].create(user, project, payload)
        return envelope(f"New resource '{resource.get('name', '')}' created", data=resource)

    @router.put(base + "/{resource_id}", name=f"edit_{kind}")
    async def edit(
        user: str,
        project: str,
        resource_id: str,
        _writer: Caller = Depends(can_write),
        payload: dict[str, Any] = Body(default={}),
        services: Services = Depends(get_services),
    ) -> dict:
        updated = await services.resources[kind].edit(project, resource_id, payload)
        return envelope(f"[{updated}] Resources updated")

    @router.delete(base + "/{ids}", name=f"remove_{kind}")
    async def remove(
        user: str,
        project: str,
        ids: str,
        _writer: Caller = Depends(can_write),
        services: Services = Depends(get_services),
    ) -> dict:
        removed = await services.resources[kind].remove(user, project, ids)
        return envelope(f"[{removed}] resources have been removed")

    return router


routers: list[APIRouter] = [build_resource_router(kind) for kind in RESOURCE_SCHEMAS]
