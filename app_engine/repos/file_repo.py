"""File repository -- metadata for files uploaded through the Users service."""

from app_engine.repos.db import affected_rows, get_pool
from app_engine.repos.query import Where, insert_sql, set_clause


def _filters(
    *,
    user: str,
    project_id: str | None = None,
    search: str | None = None,
    favourite: bool | None = None,
    is_global: bool | None = None,
    bucket: str | None = None,
) -> Where:
    where = Where()
    where.add("username = {}", user)
    where.add("browsable = {}", True)
    where.add_if("project_id = {}", project_id)
    if search:
        where.add("(name ~* {0} OR EXISTS (SELECT 1 FROM unnest(tags) t WHERE t ~* {0}))", search)
    where.add_if("favourite = {}", favourite)
    where.add_if("is_global = {}", is_global)
    where.add_if("bucket_id = {}", bucket)
    return where


async def create_file(fields: dict) -> dict | None:
    """Register an uploaded file; re-delivered uploads are ignored."""
    pool = await get_pool()
    sql, args = insert_sql("files", fields)
    sql = sql.replace(" RETURNING *", " ON CONFLICT (identifier) DO NOTHING RETURNING *")
    row = await pool.fetchrow(sql, *args)
    return dict(row) if row else None


async def count_files(**filters) -> int:
    pool = await get_pool()
    where = _filters(**filters)
    return await pool.fetchval(f"SELECT count(*) FROM files {where.sql()}", *where.args)


async def find_files(*, index: int | None = None, limit: int | None = None, **filters) -> list[dict]:
    pool = await get_pool()
    where = _filters(**filters)
    page = where.paginate(index, limit)
    rows = await pool.fetch(
        f"SELECT * FROM files {where.sql()} ORDER BY created_on, id {page}",
        *where.args,
    )
    return [dict(r) for r in rows]


async def update_file(file_id: str, user: str, fields: dict) -> int:
    pool = await get_pool()
    where = Where().add("id = {}", file_id).add("username = {}", user)
    assignments = set_clause(fields, where)
    status = await pool.execute(f"UPDATE files {assignments} {where.sql()}", *where.args)
    return affected_rows(status)


async def delete_by_identifier(identifier: str) -> int:
    pool = await get_pool()
    status = await pool.execute("DELETE FROM files WHERE identifier = $1", identifier)
    return affected_rows(status)


async def delete_by_user(user: str) -> int:
    pool = await get_pool()
    status = await pool.execute("DELETE FROM files WHERE username = $1", user)
    return affected_rows(status)
