"""Per-account metadata: plan, project ceiling and profile fields."""

import logging

from app_engine.auth import Caller
from app_engine.config import settings
from app_engine.errors import NotFoundError
from app_engine.repos import user_details_repo
from app_engine.schema.models import USER_DETAILS_SCHEMA
from app_engine.services.common import wrap_errors

logger = logging.getLogger(__name__)


class UserDetailsService:
    def __init__(self, user_details=user_details_repo, users_client=None) -> None:
        self._details = user_details
        self._users = users_client

    async def get_details(self, user: str, verbose: bool = False) -> dict:
        with wrap_errors(f"Could not find details for target '{user}'"):
            row = await self._details.get_details(user)
            if row is None:
                raise NotFoundError("User does not exist")
        return USER_DETAILS_SCHEMA.to_json(row, verbose)

    async def ensure_details(self, user: str) -> bool:
        """Create details for *user* if missing. Returns True when created."""
        row = await self._details.create_details(user, settings.DEFAULT_MAX_PROJECTS)
        if row is not None:
            logger.info("Created user details for %s", user)
        return row is not None

    async def create_for_user(self, user: str, token: str | None = None) -> None:
        """Admin path: create details after confirming the account exists."""
        if self._users is not None and await self._users.get_user(user, token=token) is None:
            raise NotFoundError(f"No user exists with the name '{user}'")
        with wrap_errors(f"Could not create user details for target {user}"):
            await self.ensure_details(user)

    async def update_details(self, caller: Caller, user: str, payload: dict) -> int:
        """Merge profile changes; plan and quota fields are admin-only."""
        if not caller.is_admin:
            payload = USER_DETAILS_SCHEMA.without_sensitive(payload or {})
        fields = USER_DETAILS_SCHEMA.validate(payload, partial=True)
        updated = await self._details.update_details(user, fields)
        if not updated:
            raise NotFoundError(f"Could not find details for target '{user}' : User does not exist")
        return updated

    async def remove_details(self, user: str) -> int:
        removed = await self._details.delete_details(user)
        if removed:
            logger.info("User details for %s have been deleted", user)
        return removed
