"""Alembic environment for the app-engine schema (async, asyncpg driver).

The target database comes from ``-x dsn=...`` on the command line, else
from ``DATABASE_URL`` via the application settings.  There is no ORM
metadata: revisions are hand-written DDL, so autogenerate is not used.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from app_engine.config import settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_ASYNC_SCHEMES = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
}


def database_url() -> str:
    dsn = context.get_x_argument(as_dictionary=True).get("dsn") or settings.DATABASE_URL
    if not dsn:
        raise RuntimeError("No database configured: set DATABASE_URL or pass -x dsn=...")
    scheme, sep, rest = dsn.partition("://")
    return f"{_ASYNC_SCHEMES.get(scheme, scheme)}{sep}{rest}"


def _configure(**kw) -> None:
    context.configure(
        target_metadata=None,
        transaction_per_migration=True,
        **kw,
    )


def run_migrations_offline() -> None:
    """Emit the DDL as SQL script instead of applying it."""
    _configure(url=database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _apply(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = database_url()
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_apply)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
