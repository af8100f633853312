"""Resource repository -- assets, groups, containers and scripts.

All four tables share the same base columns (``id``, ``project_id``,
``username``, ``name``, ``shallow_id``, timestamps); the type-specific
columns come from the validated field dict.  The table is always one
of :data:`RESOURCE_TABLES`.
"""

from app_engine.repos.db import affected_rows, get_pool
from app_engine.repos.query import Where, ident, set_clause

RESOURCE_TABLES = frozenset({"assets", "groups", "containers", "scripts"})


def _table(kind: str) -> str:
    if kind not in RESOURCE_TABLES:
        raise ValueError(f"Unknown resource type: {kind!r}")
    return ident(kind)


def _filters(
    *,
    project_id: str | None = None,
    resource_id: str | None = None,
    search: str | None = None,
    user: str | None = None,
) -> Where:
    where = Where()
    where.add_if("project_id = {}", project_id)
    where.add_if("id = {}", resource_id)
    where.add_if("name ~* {}", search or None)
    where.add_if("username = {}", user)
    return where


async def create_resource(kind: str, fields: dict) -> dict:
    """Insert a resource, numbering it within its project.

    ``shallow_id`` is one more than the number of resources of this type
    already in the project.  A transaction-scoped advisory lock on
    (type, project) serialises concurrent inserts so numbers stay unique.
    """
    table = _table(kind)
    columns = [ident(c) for c in fields]
    args = list(fields.values())
    args.append(fields["project_id"])
    shallow = f"(SELECT count(*) + 1 FROM {table} WHERE project_id = ${len(args)})"
    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    sql = (
        f"INSERT INTO {table} ({', '.join(columns)}, shallow_id) "
        f"VALUES ({placeholders}, {shallow}) RETURNING *"
    )

    pool = await get_pool()
    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute(
                "SELECT pg_advisory_xact_lock(hashtext($1))",
                f"{table}:{fields['project_id']}",
            )
            row = await conn.fetchrow(sql, *args)
    return dict(row)


async def count_resources(
    kind: str,
    *,
    project_id: str | None = None,
    resource_id: str | None = None,
    search: str | None = None,
) -> int:
    pool = await get_pool()
    where = _filters(project_id=project_id, resource_id=resource_id, search=search)
    return await pool.fetchval(
        f"SELECT count(*) FROM {_table(kind)} {where.sql()}", *where.args
    )


async def find_resources(
    kind: str,
    *,
    project_id: str | None = None,
    resource_id: str | None = None,
    search: str | None = None,
    index: int | None = None,
    limit: int | None = None,
) -> list[dict]:
    pool = await get_pool()
    where = _filters(project_id=project_id, resource_id=resource_id, search=search)
    page = where.paginate(index, limit)
    rows = await pool.fetch(
        f"SELECT * FROM {_table(kind)} {where.sql()} ORDER BY created_on, id {page}",
        *where.args,
    )
    return [dict(r) for r in rows]


async def update_resource(kind: str, resource_id: str, project_id: str, fields: dict) -> int:
    pool = await get_pool()
    where = _filters(project_id=project_id, resource_id=resource_id)
    assignments = set_clause(fields, where)
    status = await pool.execute(
        f"UPDATE {_table(kind)} {assignments} {where.sql()}", *where.args
    )
    return affected_rows(status)


async def delete_resources(kind: str, *, user: str, project_id: str, ids: list[str]) -> int:
    """Delete the listed resources of one project owned by *user*."""
    pool = await get_pool()
    where = _filters(project_id=project_id, user=user)
    where.add("id = ANY({}::uuid[])", ids)
    status = await pool.execute(f"DELETE FROM {_table(kind)} {where.sql()}", *where.args)
    return affected_rows(status)
