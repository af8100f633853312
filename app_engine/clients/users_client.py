"""Users service client -- account lookups against the identity service."""

import logging
from urllib.parse import quote

import httpx
from cachetools import TTLCache

from app_engine.config import settings
from app_engine.errors import AppEngineError

logger = logging.getLogger(__name__)

# ── Positive lookups only; a missing user is always re-checked ──────────────

_user_cache: TTLCache[str, dict] = TTLCache(maxsize=1000, ttl=60)

# ── Shared HTTP client (connection pooling) ─────────────────────────────────

_client: httpx.AsyncClient | None = None


class UsersServiceError(AppEngineError):
    """The Users service could not be reached or answered unexpectedly."""


def _get_client() -> httpx.AsyncClient:
    """Return (or create) the shared httpx client for Users service calls."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=settings.USERS_SERVICE_TIMEOUT)
    return _client


async def close_client() -> None:
    """Close the shared HTTP client.  Called during app shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def clear_cache() -> None:
    _user_cache.clear()


async def get_user(username: str, *, token: str | None = None) -> dict | None:
    """Fetch an account from the Users service.

    Returns the user document, or ``None`` when the service reports that
    no such user exists.  The caller's bearer token is forwarded.
    """
    if username in _user_cache:
        return _user_cache[username]

    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    url = f"{settings.USERS_SERVICE_URL.rstrip('/')}/{quote(username, safe='')}"

    try:
        response = await _get_client().get(url, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("Users service unreachable for %s: %s", username, exc)
        raise UsersServiceError("Could not reach the users service") from exc

    if response.status_code == 404:
        return None
    if response.status_code >= 400:
        raise UsersServiceError(f"Users service error ({response.status_code})")

    body = response.json()
    # The service answers with the same {error, message, data} envelope
    if body.get("error") or not body.get("data"):
        return None
    user = body["data"]
    _user_cache[username] = user
    return user
