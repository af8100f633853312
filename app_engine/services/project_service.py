"""Project lifecycle orchestration.

Creating a project is a short saga:

1. create a build owned by the caller (no project link yet)
2. insert the project pointing at that build, with the caller as its
   only admin
3. link the build back to the project
4. re-check the caller's quota, leaving the new project out of the count

Any failure unwinds what was written so far (project first, then the
build).  A failing compensation is logged and the original error is
still what the caller sees.
"""

import logging
import os
from dataclasses import dataclass, field

from app_engine.auth import Caller
from app_engine.errors import ValidationError
from app_engine.repos import project_repo
from app_engine.schema.fields import is_valid_id
from app_engine.schema.models import PROJECT_SCHEMA
from app_engine.services.build_service import BuildLifecycle
from app_engine.services.common import ListQuery
from app_engine.services.permission_service import PermissionEvaluator
from app_engine.services.quota_service import QuotaChecker

logger = logging.getLogger(__name__)


@dataclass
class RemovedItem:
    id: str
    error: bool = False
    error_msg: str = ""

    def to_json(self) -> dict:
        return {"id": self.id, "error": self.error, "errorMsg": self.error_msg}


@dataclass
class RemoveResult:
    """Outcome of a batch delete, one entry per project attempted."""

    items: list[RemovedItem] = field(default_factory=list)

    @property
    def error(self) -> bool:
        return any(item.error for item in self.items)

    @property
    def removed(self) -> int:
        return sum(1 for item in self.items if not item.error)

    @property
    def message(self) -> str:
        for item in self.items:
            if item.error:
                return f"An error occurred when deleting project {item.id}"
        return f"{self.removed} items have been removed"

    def to_json(self) -> dict:
        return {
            "error": self.error,
            "message": self.message,
            "itemsRemoved": [item.to_json() for item in self.items],
        }


class ProjectOrchestrator:
    """Create, read, update and delete workflows for projects."""

    def __init__(
        self,
        *,
        builds: BuildLifecycle,
        permissions: PermissionEvaluator,
        quota: QuotaChecker,
        projects=project_repo,
    ) -> None:
        self._builds = builds
        self._permissions = permissions
        self._quota = quota
        self._projects = projects

    # -- create -------------------------------------------------------------

    async def create_project(self, caller: Caller, payload: dict) -> dict:
        """Run the create saga. Returns the new project (verbose form)."""
        fields = PROJECT_SCHEMA.validate(payload)
        fields.update(
            username=caller.username,
            admin_privileges=[caller.username],
            read_privileges=[],
            write_privileges=[],
        )

        build = await self._builds.create_build(caller.username)
        build_id = str(build["id"])
        project_id: str | None = None
        try:
            fields["build_id"] = build_id
            project = await self._projects.create_project(fields)
            project_id = str(project["id"])
            await self._builds.link_project(build_id, project_id)
            await self._quota.within_limits(caller, exclude_project_id=project_id)
        except Exception:
            await self._compensate(caller.username, build_id, project_id)
            raise

        logger.info("Created project %s for %s", project_id, caller.username)
        return PROJECT_SCHEMA.to_json(project, verbose=True)

    async def _compensate(self, user: str, build_id: str, project_id: str | None) -> None:
        if project_id is not None:
            try:
                await self._projects.delete_project(project_id)
            except Exception as exc:
                logger.error(
                    "[pid %d] Could not roll back project %s: %s", os.getpid(), project_id, exc,
                )
        try:
            await self._builds.remove_by_ids([build_id], user)
        except Exception as exc:
            logger.error(
                "[pid %d] Could not roll back build %s: %s", os.getpid(), build_id, exc,
            )

    # -- read ---------------------------------------------------------------

    async def get_project(self, owner: str, project_id: str, verbose: bool = False) -> tuple[int, list[dict]]:
        if not is_valid_id(project_id):
            raise ValidationError("Please use a valid object id")
        total = await self._projects.count_projects(user=owner, project_id=project_id)
        rows = await self._projects.find_projects(user=owner, project_id=project_id)
        return total, PROJECT_SCHEMA.to_json_list(rows, verbose)

    async def list_projects(self, owner: str | None, query: ListQuery = ListQuery()) -> tuple[int, list[dict]]:
        """List projects of *owner*, or every project when owner is None."""
        total = await self._projects.count_projects(user=owner, search=query.search)
        rows = await self._projects.find_projects(user=owner, search=query.search, **query.page)
        return total, PROJECT_SCHEMA.to_json_list(rows, query.verbose)

    # -- update -------------------------------------------------------------

    async def update_project(self, caller: Caller, owner: str, project_id: str, payload: dict) -> int:
        (await self._permissions.can_admin(caller, owner, project_id)).raise_for_outcome()
        fields = PROJECT_SCHEMA.validate(payload, partial=True)
        admins = fields.get("admin_privileges")
        if admins is not None and owner not in admins:
            # The owner always administers their own project
            fields["admin_privileges"] = [owner, *admins]
        return await self._projects.update_project(project_id, owner, fields)

    # -- delete -------------------------------------------------------------

    async def remove_projects(self, caller: Caller, owner: str, ids: list[str]) -> RemoveResult:
        """Delete several projects once the caller administers all of them.

        The first denial aborts the whole batch before anything is deleted.
        """
        for project_id in ids:
            (await self._permissions.can_admin(caller, owner, project_id)).raise_for_outcome()
        return await self.remove_by_ids(ids, owner)

    async def remove_by_ids(self, ids: list[str], user: str) -> RemoveResult:
        projects = []
        for project_id in ids:
            project = await self._projects.get_project(project_id, user=user)
            if project is not None:
                projects.append(project)
        return await self._remove(projects)

    async def remove_by_user(self, user: str) -> RemoveResult:
        return await self._remove(await self._projects.find_projects(user=user))

    async def _remove(self, projects: list[dict]) -> RemoveResult:
        """Delete builds then the project row, one project at a time."""
        result = RemoveResult()
        for project in projects:
            project_id = str(project["id"])
            try:
                await self._builds.remove_by_project(project_id, project["username"])
                await self._projects.delete_project(project_id)
            except Exception as exc:
                logger.error("[pid %d] Deleting project %s failed: %s", os.getpid(), project_id, exc)
                result.items.append(RemovedItem(project_id, True, str(exc)))
            else:
                result.items.append(RemovedItem(project_id))
        return result
