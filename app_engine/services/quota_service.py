"""Plan-based project quotas."""

from app_engine.auth import Caller
from app_engine.errors import NotFoundError, QuotaExceededError
from app_engine.repos import project_repo, user_details_repo


class QuotaChecker:
    """Decides whether a user may own another project."""

    def __init__(self, user_details=user_details_repo, projects=project_repo) -> None:
        self._user_details = user_details
        self._projects = projects

    async def within_limits(self, caller: Caller, *, exclude_project_id: str | None = None) -> bool:
        """Return True if *caller* is under their plan's project ceiling.

        ``exclude_project_id`` leaves a just-inserted project out of the
        count, so the check can run after the insert.  Raises
        :class:`NotFoundError` when the user has no details row and
        :class:`QuotaExceededError` when the ceiling is reached.
        """
        if caller.is_admin:
            return True

        details = await self._user_details.get_details(caller.username)
        if details is None:
            raise NotFoundError("Not found")

        owned = await self._projects.count_projects(
            user=caller.username, exclude_id=exclude_project_id,
        )
        if owned < details["max_projects"]:
            return True
        raise QuotaExceededError()
