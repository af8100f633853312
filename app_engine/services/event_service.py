"""Reactions to account and upload events pushed by the Users service.

Delivery is at-least-once, so every handler is idempotent: creating
details twice is a no-op and removals of missing rows remove nothing.
"""

import logging
from enum import Enum

from app_engine.errors import ValidationError
from app_engine.services.build_service import BuildLifecycle
from app_engine.services.file_service import FileService
from app_engine.services.project_service import ProjectOrchestrator
from app_engine.services.user_details_service import UserDetailsService

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    ACTIVATED = "Activated"
    REMOVED = "Removed"
    FILE_UPLOADED = "FileUploaded"
    FILE_REMOVED = "FileRemoved"


class IdentityEventHandler:
    def __init__(
        self,
        *,
        user_details: UserDetailsService,
        projects: ProjectOrchestrator,
        builds: BuildLifecycle,
        files: FileService,
    ) -> None:
        self._user_details = user_details
        self._projects = projects
        self._builds = builds
        self._files = files

    async def dispatch(self, event: dict) -> bool:
        """Apply one event. Returns False for event types we do not handle."""
        if not isinstance(event, dict):
            raise ValidationError("Event must be a JSON object")
        try:
            event_type = EventType(event.get("type"))
        except ValueError:
            logger.debug("Ignoring event of type %r", event.get("type"))
            return False

        username = event.get("username")
        if not isinstance(username, str) or not username.strip():
            raise ValidationError("Event is missing a username")
        username = username.strip()

        if event_type is EventType.ACTIVATED:
            await self._user_details.ensure_details(username)
        elif event_type is EventType.REMOVED:
            await self._on_user_removed(username)
        elif event_type is EventType.FILE_UPLOADED:
            await self._files.register_upload(username, event.get("file") or {})
        elif event_type is EventType.FILE_REMOVED:
            identifier = (event.get("file") or {}).get("identifier")
            if not identifier:
                raise ValidationError("identifier is required")
            await self._files.remove_upload(identifier)
        return True

    async def _on_user_removed(self, username: str) -> None:
        result = await self._projects.remove_by_user(username)
        if result.error:
            logger.error("Removing projects of %s: %s", username, result.message)
        builds = await self._builds.remove_by_user(username)
        files = await self._files.remove_by_user(username)
        await self._user_details.remove_details(username)
        logger.info(
            "Cleaned up removed user %s: %d project(s), %d stray build(s), %d file(s)",
            username, result.removed, builds, files,
        )
