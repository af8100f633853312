"""Plugins router -- the global plugin catalogue."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from app_engine.api.deps import get_caller, get_services, list_query, require_admin
from app_engine.auth import Caller
from app_engine.errors import envelope
from app_engine.services.common import ListQuery
from app_engine.services.registry import Services

router = APIRouter(prefix="/plugins", tags=["plugins"])


@router.get("")
@router.get("/{plugin_id}")
async def get_plugins(
    plugin_id: str | None = None,
    caller: Caller | None = Depends(get_caller),
    query: ListQuery = Depends(list_query),
    services: Services = Depends(get_services),
) -> dict:
    """Public plugins for everyone; admins also see private ones."""
    total, data = await services.plugins.list_plugins(caller, plugin_id, query)
    return envelope(f"Found {total} plugins", count=total, data=data)


@router.post("")
async def create_plugin(
    caller: Caller = Depends(require_admin),
    payload: dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> dict:
    plugin = await services.plugins.create_plugin(caller, payload)
    return envelope(f"Created new plugin '{plugin['name']}'", data=plugin)


@router.put("/{plugin_id}")
async def update_plugin(
    plugin_id: str,
    _admin: Caller = Depends(require_admin),
    payload: dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> dict:
    await services.plugins.update_plugin(plugin_id, payload)
    return envelope("Plugin Updated")


@router.delete("/{plugin_id}")
async def remove_plugin(
    plugin_id: str,
    _admin: Caller = Depends(require_admin),
    services: Services = Depends(get_services),
) -> dict:
    await services.plugins.remove_plugin(plugin_id)
    return envelope("Plugin has been successfully removed")
