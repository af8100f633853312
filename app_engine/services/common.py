"""Helpers shared by the service classes."""

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass

import asyncpg

from app_engine.errors import AppEngineError, PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListQuery:
    """Search, pagination and verbosity options for list endpoints."""

    search: str | None = None
    index: int | None = None
    limit: int | None = None
    verbose: bool = False

    @property
    def page(self) -> dict:
        return {"index": self.index, "limit": self.limit}


@contextmanager
def wrap_errors(prefix: str, sep: str = " : "):
    """Re-raise failures inside the block with *prefix* on the message.

    Domain errors keep their type; database errors become
    :class:`PersistenceError` and are logged with the process id.
    """
    try:
        yield
    except AppEngineError as exc:
        raise type(exc)(f"{prefix}{sep}{exc.message}") from exc
    except asyncpg.PostgresError as exc:
        logger.error("[pid %d] %s%s%s", os.getpid(), prefix, sep, exc)
        raise PersistenceError(f"{prefix}{sep}{exc}") from exc
