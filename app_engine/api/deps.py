"""Request dependencies -- caller identity, route guards and list options.

A missing or unreadable bearer token means an anonymous caller, never
a transport error; guards then answer with the envelope messages.
"""

import logging

import jwt as pyjwt
from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app_engine.auth import Caller, caller_from_claims, decode_token
from app_engine.config import settings
from app_engine.errors import ForbiddenError, UnauthenticatedError
from app_engine.services.common import ListQuery
from app_engine.services.permission_service import AccessLevel
from app_engine.services.registry import Services

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str | None:
    return credentials.credentials if credentials else None


async def get_caller(token: str | None = Depends(get_token)) -> Caller | None:
    """The optional caller behind the request."""
    if token is None:
        return None
    try:
        payload = decode_token(token)
    except pyjwt.ExpiredSignatureError:
        logger.debug("Expired token treated as anonymous")
        return None
    except pyjwt.PyJWTError as exc:
        logger.warning("Invalid token treated as anonymous: %s", exc)
        return None
    return caller_from_claims(payload)


async def require_caller(caller: Caller | None = Depends(get_caller)) -> Caller:
    if caller is None:
        raise UnauthenticatedError()
    return caller


async def require_admin(caller: Caller = Depends(require_caller)) -> Caller:
    if not caller.is_admin:
        raise ForbiddenError()
    return caller


async def require_editor(user: str, caller: Caller = Depends(require_caller)) -> Caller:
    """The caller must be the user named in the path, or an admin."""
    if caller.username != user and not caller.is_admin:
        raise ForbiddenError()
    return caller


def project_access(level: AccessLevel):
    """Guard for ``/users/{user}/projects/{project}/...`` routes."""

    async def _check(
        user: str,
        project: str,
        caller: Caller | None = Depends(get_caller),
        services: Services = Depends(get_services),
    ) -> Caller:
        result = await services.permissions.check(caller, user, project, level)
        result.raise_for_outcome()
        return caller  # type: ignore[return-value]

    return _check


can_read = project_access(AccessLevel.READ)
can_write = project_access(AccessLevel.WRITE)
can_admin = project_access(AccessLevel.ADMIN)


def _cap_limit(limit: int | None) -> int | None:
    if settings.MAX_PAGE_LIMIT and (not limit or limit > settings.MAX_PAGE_LIMIT):
        return settings.MAX_PAGE_LIMIT
    return limit


def list_query(
    search: str | None = Query(None),
    index: int | None = Query(None, ge=0),
    limit: int | None = Query(None, ge=0),
    verbose: bool = Query(False),
) -> ListQuery:
    """List options as sent; used where the guard already implies trust."""
    return ListQuery(search=search or None, index=index, limit=_cap_limit(limit), verbose=verbose)


def owner_list_query(
    user: str,
    query: ListQuery = Depends(list_query),
    caller: Caller | None = Depends(get_caller),
) -> ListQuery:
    """List options with ``verbose`` honoured only for the path user or an admin."""
    trusted = caller is not None and (caller.is_admin or caller.username == user)
    return ListQuery(
        search=query.search,
        index=query.index,
        limit=query.limit,
        verbose=query.verbose and trusted,
    )
