"""User details router -- plan and profile metadata per account."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from app_engine.api.deps import (
    get_services,
    get_token,
    owner_list_query,
    require_admin,
    require_caller,
    require_editor,
)
from app_engine.auth import Caller
from app_engine.errors import envelope
from app_engine.services.common import ListQuery
from app_engine.services.registry import Services

router = APIRouter(prefix="/user-details", tags=["user-details"])


@router.get("/{user}")
async def get_details(
    user: str,
    _caller: Caller = Depends(require_caller),
    query: ListQuery = Depends(owner_list_query),
    services: Services = Depends(get_services),
) -> dict:
    """Sensitive fields (plan, quota) only for the user themself or an admin."""
    details = await services.user_details.get_details(user, query.verbose)
    return envelope(f"Found details for user '{user}'", data=details)


@router.post("/{user}")
async def create_details(
    user: str,
    _admin: Caller = Depends(require_admin),
    token: str | None = Depends(get_token),
    services: Services = Depends(get_services),
) -> dict:
    await services.user_details.create_for_user(user, token=token)
    return envelope(f"Created user details for target {user}")


@router.put("/{user}")
async def update_details(
    user: str,
    caller: Caller = Depends(require_editor),
    payload: dict[str, Any] = Body(default={}),
    services: Services = Depends(get_services),
) -> dict:
    await services.user_details.update_details(caller, user, payload)
    return envelope("Details updated")
