"""Project permission evaluation.

The evaluator is a pure predicate: it returns a :class:`PermissionResult`
and never touches the transport.  ``PermissionResult.raise_for_outcome``
is the boundary adapter that turns a denial into the matching domain
error for the exception handlers to render.

Checks run in a fixed order and stop at the first failure:

1. is there a caller at all?
2. is the project id present and well formed?
3. (globally elevated callers are allowed from here on)
4. does the project exist for the owner named in the path?
   (the owner is allowed from here on)
5. is the caller on one of the privilege lists for the requested level?
"""

import logging
from dataclasses import dataclass
from enum import Enum

from app_engine.auth import Caller
from app_engine.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from app_engine.repos import project_repo
from app_engine.schema.fields import is_valid_id

logger = logging.getLogger(__name__)

MSG_NO_CALLER = "Please login to make this call"
MSG_NO_PROJECT = "Project not specified"
MSG_BAD_PROJECT_ID = "Please use a valid project ID"
MSG_PROJECT_MISSING = "No project exists with that ID"
MSG_NO_PRIVILEGE = "User does not have permissions for project"


class AccessLevel(Enum):
    """Project access tiers and the privilege lists that grant them."""

    READ = ("read_privileges", "write_privileges", "admin_privileges")
    WRITE = ("write_privileges", "admin_privileges")
    ADMIN = ("admin_privileges",)

    @property
    def columns(self) -> tuple[str, ...]:
        return self.value


class Outcome(str, Enum):
    ALLOWED = "allowed"
    UNAUTHENTICATED = "unauthenticated"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    DENIED = "denied"


_OUTCOME_ERRORS = {
    Outcome.UNAUTHENTICATED: UnauthenticatedError,
    Outcome.INVALID: ValidationError,
    Outcome.NOT_FOUND: NotFoundError,
    Outcome.DENIED: ForbiddenError,
}


@dataclass(frozen=True)
class PermissionResult:
    outcome: Outcome
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.ALLOWED

    def raise_for_outcome(self) -> None:
        """Raise the domain error matching a failed check; no-op when allowed."""
        if self.allowed:
            return
        raise _OUTCOME_ERRORS[self.outcome](self.reason)


ALLOWED = PermissionResult(Outcome.ALLOWED)


class PermissionEvaluator:
    """Decides whether a caller may read, write or administer a project."""

    def __init__(self, projects=project_repo) -> None:
        self._projects = projects

    async def check(
        self,
        caller: Caller | None,
        owner: str,
        project_id: str | None,
        level: AccessLevel,
    ) -> PermissionResult:
        if caller is None:
            return PermissionResult(Outcome.UNAUTHENTICATED, MSG_NO_CALLER)
        if not project_id:
            return PermissionResult(Outcome.INVALID, MSG_NO_PROJECT)
        if not is_valid_id(project_id):
            return PermissionResult(Outcome.INVALID, MSG_BAD_PROJECT_ID)
        if caller.is_admin:
            return ALLOWED

        exists = await self._projects.count_projects(user=owner, project_id=project_id)
        if not exists:
            return PermissionResult(Outcome.NOT_FOUND, MSG_PROJECT_MISSING)

        # The row exists under *owner*, so the owner holds every level
        if caller.username == owner:
            return ALLOWED

        if await self._projects.has_privilege(project_id, caller.username, level.columns):
            return ALLOWED

        logger.info(
            "Denied %s access to project %s for user %s",
            level.name.lower(), project_id, caller.username,
        )
        return PermissionResult(Outcome.DENIED, MSG_NO_PRIVILEGE)

    async def can_read(self, caller: Caller | None, owner: str, project_id: str | None) -> PermissionResult:
        return await self.check(caller, owner, project_id, AccessLevel.READ)

    async def can_write(self, caller: Caller | None, owner: str, project_id: str | None) -> PermissionResult:
        return await self.check(caller, owner, project_id, AccessLevel.WRITE)

    async def can_admin(self, caller: Caller | None, owner: str, project_id: str | None) -> PermissionResult:
        return await self.check(caller, owner, project_id, AccessLevel.ADMIN)
