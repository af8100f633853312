"""Plugin repository -- the global plugin catalogue."""

from app_engine.repos.db import affected_rows, get_pool
from app_engine.repos.query import Where, insert_sql, set_clause


def _filters(
    *,
    plugin_id: str | None = None,
    search: str | None = None,
    public_only: bool = False,
) -> Where:
    where = Where()
    where.add_if("id = {}", plugin_id)
    where.add_if("name ~* {}", search or None)
    if public_only:
        where.add("is_public = {}", True)
    return where


async def create_plugin(fields: dict) -> dict:
    pool = await get_pool()
    sql, args = insert_sql("plugins", fields)
    row = await pool.fetchrow(sql, *args)
    return dict(row)


async def count_plugins(
    *,
    plugin_id: str | None = None,
    search: str | None = None,
    public_only: bool = False,
) -> int:
    pool = await get_pool()
    where = _filters(plugin_id=plugin_id, search=search, public_only=public_only)
    return await pool.fetchval(f"SELECT count(*) FROM plugins {where.sql()}", *where.args)


async def find_plugins(
    *,
    plugin_id: str | None = None,
    search: str | None = None,
    public_only: bool = False,
    index: int | None = None,
    limit: int | None = None,
) -> list[dict]:
    pool = await get_pool()
    where = _filters(plugin_id=plugin_id, search=search, public_only=public_only)
    page = where.paginate(index, limit)
    rows = await pool.fetch(
        f"SELECT * FROM plugins {where.sql()} ORDER BY name, id {page}",
        *where.args,
    )
    return [dict(r) for r in rows]


async def update_plugin(plugin_id: str, fields: dict) -> int:
    pool = await get_pool()
    where = _filters(plugin_id=plugin_id)
    assignments = set_clause(fields, where)
    status = await pool.execute(f"UPDATE plugins {assignments} {where.sql()}", *where.args)
    return affected_rows(status)


async def delete_plugin(plugin_id: str) -> int:
    pool = await get_pool()
    status = await pool.execute("DELETE FROM plugins WHERE id = $1", plugin_id)
    return affected_rows(status)
