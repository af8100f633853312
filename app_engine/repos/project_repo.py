"""Project repository -- database reads and writes for the projects table."""

from app_engine.repos.db import affected_rows, get_pool
from app_engine.repos.query import Where, ident, insert_sql, set_clause

PRIVILEGE_COLUMNS = frozenset({"read_privileges", "write_privileges", "admin_privileges"})


def _project_to_dict(row) -> dict:
    return dict(row)


def _filters(
    *,
    user: str | None = None,
    project_id: str | None = None,
    search: str | None = None,
    exclude_id: str | None = None,
) -> Where:
    where = Where()
    where.add_if("username = {}", user)
    where.add_if("id = {}", project_id)
    where.add_if("name ~* {}", search or None)
    where.add_if("id <> {}", exclude_id)
    return where


async def create_project(fields: dict) -> dict:
    """Insert a new project. Returns the created row as a dict."""
    pool = await get_pool()
    sql, args = insert_sql("projects", fields)
    row = await pool.fetchrow(sql, *args)
    return _project_to_dict(row)


async def get_project(project_id: str, user: str | None = None) -> dict | None:
    """Fetch a project by id, optionally requiring a specific owner."""
    pool = await get_pool()
    where = _filters(user=user, project_id=project_id)
    row = await pool.fetchrow(f"SELECT * FROM projects {where.sql()}", *where.args)
    return _project_to_dict(row) if row else None


async def count_projects(
    *,
    user: str | None = None,
    project_id: str | None = None,
    search: str | None = None,
    exclude_id: str | None = None,
) -> int:
    pool = await get_pool()
    where = _filters(user=user, project_id=project_id, search=search, exclude_id=exclude_id)
    return await pool.fetchval(f"SELECT count(*) FROM projects {where.sql()}", *where.args)


async def find_projects(
    *,
    user: str | None = None,
    project_id: str | None = None,
    search: str | None = None,
    index: int | None = None,
    limit: int | None = None,
) -> list[dict]:
    """Fetch projects in creation order, filtered and paginated."""
    pool = await get_pool()
    where = _filters(user=user, project_id=project_id, search=search)
    page = where.paginate(index, limit)
    rows = await pool.fetch(
        f"SELECT * FROM projects {where.sql()} ORDER BY created_on, id {page}",
        *where.args,
    )
    return [_project_to_dict(r) for r in rows]


async def has_privilege(project_id: str, username: str, columns: tuple[str, ...]) -> bool:
    """True when *username* appears in any of the given privilege lists."""
    if not columns or not set(columns) <= PRIVILEGE_COLUMNS:
        raise ValueError(f"Unknown privilege columns: {columns!r}")
    membership = " OR ".join(f"$2 = ANY({ident(c)})" for c in columns)
    pool = await get_pool()
    return await pool.fetchval(
        f"SELECT EXISTS (SELECT 1 FROM projects WHERE id = $1 AND ({membership}))",
        project_id,
        username,
    )


async def update_project(project_id: str, user: str, fields: dict) -> int:
    """Merge *fields* into the project owned by *user*. Returns rows updated."""
    pool = await get_pool()
    where = _filters(user=user, project_id=project_id)
    assignments = set_clause(fields, where)
    status = await pool.execute(f"UPDATE projects {assignments} {where.sql()}", *where.args)
    return affected_rows(status)


async def set_build(project_id: str, build_id: str) -> int:
    """Point the project at a new current build."""
    pool = await get_pool()
    status = await pool.execute(
        """
        UPDATE projects SET build_id = $2, last_modified = clock_timestamp()
        WHERE id = $1
        """,
        project_id,
        build_id,
    )
    return affected_rows(status)


async def delete_project(project_id: str) -> int:
    """Delete a project row. Its resources go with it (ON DELETE CASCADE)."""
    pool = await get_pool()
    status = await pool.execute("DELETE FROM projects WHERE id = $1", project_id)
    return affected_rows(status)
