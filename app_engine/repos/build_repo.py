"""Build repository -- database reads and writes for the builds table."""

from app_engine.repos.db import affected_rows, get_pool
from app_engine.repos.query import Where, insert_sql, set_clause


def _filters(
    *,
    user: str | None = None,
    project_id: str | None = None,
    build_id: str | None = None,
) -> Where:
    where = Where()
    where.add_if("username = {}", user)
    where.add_if("project_id = {}", project_id)
    where.add_if("id = {}", build_id)
    return where


async def create_build(fields: dict) -> dict:
    """Insert a new build. Returns the created row as a dict."""
    pool = await get_pool()
    sql, args = insert_sql("builds", fields)
    row = await pool.fetchrow(sql, *args)
    return dict(row)


async def get_build(build_id: str) -> dict | None:
    pool = await get_pool()
    row = await pool.fetchrow("SELECT * FROM builds WHERE id = $1", build_id)
    return dict(row) if row else None


async def count_builds(
    *,
    user: str | None = None,
    project_id: str | None = None,
    build_id: str | None = None,
) -> int:
    pool = await get_pool()
    where = _filters(user=user, project_id=project_id, build_id=build_id)
    return await pool.fetchval(f"SELECT count(*) FROM builds {where.sql()}", *where.args)


async def find_builds(
    *,
    user: str | None = None,
    project_id: str | None = None,
    build_id: str | None = None,
    index: int | None = None,
    limit: int | None = None,
) -> list[dict]:
    """Fetch builds oldest first, filtered and paginated."""
    pool = await get_pool()
    where = _filters(user=user, project_id=project_id, build_id=build_id)
    page = where.paginate(index, limit)
    rows = await pool.fetch(
        f"SELECT * FROM builds {where.sql()} ORDER BY created_on, id {page}",
        *where.args,
    )
    return [dict(r) for r in rows]


async def link_project(build_id: str, project_id: str) -> int:
    """Attach a build to its project. Returns rows updated."""
    pool = await get_pool()
    status = await pool.execute(
        """
        UPDATE builds SET project_id = $2, last_modified = clock_timestamp()
        WHERE id = $1
        """,
        build_id,
        project_id,
    )
    return affected_rows(status)


async def update_build(build_id: str, project_id: str, fields: dict) -> int:
    pool = await get_pool()
    where = _filters(project_id=project_id, build_id=build_id)
    assignments = set_clause(fields, where)
    status = await pool.execute(f"UPDATE builds {assignments} {where.sql()}", *where.args)
    return affected_rows(status)


async def delete_builds(
    *,
    user: str,
    project_id: str | None = None,
    ids: list[str] | None = None,
) -> int:
    """Delete builds owned by *user*, optionally narrowed by project or ids."""
    pool = await get_pool()
    where = _filters(user=user, project_id=project_id)
    where.add_if("id = ANY({}::uuid[])", ids)
    status = await pool.execute(f"DELETE FROM builds {where.sql()}", *where.args)
    return affected_rows(status)
