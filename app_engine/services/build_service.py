"""Build lifecycle -- creating, linking, editing and removing builds."""

import logging
import os

import asyncpg

from app_engine.errors import LinkFailureError, NotFoundError, ValidationError
from app_engine.repos import build_repo, project_repo
from app_engine.schema.fields import is_valid_id
from app_engine.schema.models import BUILD_SCHEMA
from app_engine.services.common import ListQuery, wrap_errors

logger = logging.getLogger(__name__)


class BuildLifecycle:
    """Owns every write to the builds table."""

    def __init__(self, builds=build_repo, projects=project_repo) -> None:
        self._builds = builds
        self._projects = projects

    # -- primitives used by the project orchestrator ----------------------

    async def create_build(self, user: str, project_id: str | None = None) -> dict:
        """Insert a blank build owned by *user*, optionally already linked."""
        fields = BUILD_SCHEMA.validate({})
        fields["username"] = user
        fields["project_id"] = project_id
        build = await self._builds.create_build(fields)
        logger.debug("Created build %s for %s", build["id"], user)
        return build

    async def link_project(self, build_id: str, project_id: str) -> None:
        """Attach a build to its project; raises :class:`LinkFailureError`."""
        try:
            updated = await self._builds.link_project(build_id, project_id)
        except asyncpg.PostgresError as exc:
            logger.error("[pid %d] Linking build %s failed: %s", os.getpid(), build_id, exc)
            raise LinkFailureError() from exc
        if not updated:
            raise LinkFailureError()

    async def remove_by_project(self, project_id: str, user: str) -> int:
        return await self._builds.delete_builds(user=user, project_id=project_id)

    async def remove_by_user(self, user: str) -> int:
        return await self._builds.delete_builds(user=user)

    async def remove_by_ids(self, ids: list[str], user: str) -> int:
        for build_id in ids:
            if not is_valid_id(build_id):
                raise ValidationError(f"ID '{build_id}' is not a valid ID")
        if not ids:
            return 0
        return await self._builds.delete_builds(user=user, ids=ids)

    # -- endpoint operations ----------------------------------------------

    async def list_builds(
        self,
        owner: str,
        project_id: str,
        build_id: str | None = None,
        query: ListQuery = ListQuery(),
    ) -> tuple[int, list[dict]]:
        with wrap_errors(f"Could not get builds for '{owner}'"):
            if build_id is not None and not is_valid_id(build_id):
                raise ValidationError("Please use a valid object id")
            filters = {"user": owner, "project_id": project_id, "build_id": build_id}
            total = await self._builds.count_builds(**filters)
            rows = await self._builds.find_builds(**filters, **query.page)
        return total, BUILD_SCHEMA.to_json_list(rows, query.verbose)

    async def create_for_project(self, owner: str, project_id: str, *, set_current: bool = False) -> dict:
        """Create a new build for an existing project.

        With *set_current* the project's current build pointer moves to
        the new build.
        """
        with wrap_errors(f"Could not create build for '{owner}'"):
            project = await self._projects.get_project(project_id, user=owner)
            if project is None:
                raise NotFoundError("No project exists with that ID")
            build = await self.create_build(owner, project_id)
            if set_current:
                await self._projects.set_build(project_id, str(build["id"]))
        return BUILD_SCHEMA.to_json(build, verbose=True)

    async def edit_build(self, project_id: str, build_id: str, payload: dict) -> int:
        if not is_valid_id(build_id):
            raise ValidationError("Please use a valid resource ID")
        if not is_valid_id(project_id):
            raise ValidationError("Please use a valid project ID")
        fields = BUILD_SCHEMA.validate(payload, partial=True)
        return await self._builds.update_build(build_id, project_id, fields)
