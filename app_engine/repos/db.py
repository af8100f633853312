"""The process-wide asyncpg pool used by every repo module.

Repos call :func:`get_pool` per operation.  The returned object retries
the shorthand query methods when the server dropped the connection
underneath us (restarts, idle reapers), and JSON columns come back as
Python objects.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any

import asyncpg

from app_engine.config import settings

logger = logging.getLogger(__name__)

_DISCONNECTS = (
    asyncpg.ConnectionDoesNotExistError,
    asyncpg.InterfaceError,
    ConnectionResetError,
)

_MAX_RETRIES = 2
_BASE_BACKOFF = 0.25

_RETRIED_METHODS = frozenset({"fetch", "fetchrow", "fetchval", "execute"})


@dataclass
class _PoolState:
    pool: asyncpg.Pool
    loop: asyncio.AbstractEventLoop
    wrapper: "_ResilientPool"


_state: _PoolState | None = None


def _forget_pool() -> None:
    global _state
    _state = None


class _ResilientPool:
    """Proxy over :class:`asyncpg.Pool`.

    ``fetch``, ``fetchrow``, ``fetchval`` and ``execute`` are retried with
    exponential backoff on connection loss; after the last attempt the
    pool is forgotten so the next :func:`get_pool` builds a new one.
    ``acquire`` and everything else pass straight through.
    """

    __slots__ = ("_pool",)

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    def __getattr__(self, name: str):
        target = getattr(self._pool, name)
        if name in _RETRIED_METHODS:
            return partial(_with_retries, target)
        return target


async def _with_retries(call, *args: Any, **kw: Any):
    attempt = 0
    while True:
        try:
            return await call(*args, **kw)
        except _DISCONNECTS as exc:
            if attempt == _MAX_RETRIES:
                logger.error("Database unreachable after %d attempts: %s", attempt + 1, exc)
                _forget_pool()
                raise
            delay = _BASE_BACKOFF * 2 ** attempt
            attempt += 1
            logger.warning("Database connection lost (%s), retry %d in %.2fs", exc, attempt, delay)
            await asyncio.sleep(delay)


async def _decode_json(conn: asyncpg.Connection) -> None:
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(type_name, encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


async def get_pool() -> _ResilientPool:
    """Return the shared pool, creating it on first use.

    A pool bound to a different event loop (test suites run one loop per
    test) is terminated and replaced.
    """
    global _state
    loop = asyncio.get_running_loop()
    if _state is not None and _state.loop is not loop:
        _state.pool.terminate()
        _state = None
    if _state is None:
        pool = await asyncio.wait_for(
            asyncpg.create_pool(
                dsn=settings.DATABASE_URL,
                min_size=1,
                max_size=settings.DB_POOL_MAX_SIZE,
                command_timeout=30,
                init=_decode_json,
                server_settings={"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)},
            ),
            timeout=20,
        )
        _state = _PoolState(pool, loop, _ResilientPool(pool))
        logger.info("Database pool ready (max %d connections)", settings.DB_POOL_MAX_SIZE)
    return _state.wrapper


async def close_pool() -> None:
    global _state
    if _state is not None:
        state, _state = _state, None
        await state.pool.close()


def affected_rows(status: str) -> int:
    """Row count from an asyncpg command tag such as ``'DELETE 3'``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0
