"""User details repository -- per-account plan and profile metadata."""

from app_engine.repos.db import affected_rows, get_pool
from app_engine.repos.query import Where, set_clause


async def get_details(user: str) -> dict | None:
    pool = await get_pool()
    row = await pool.fetchrow("SELECT * FROM user_details WHERE username = $1", user)
    return dict(row) if row else None


async def create_details(user: str, max_projects: int) -> dict | None:
    """Insert details for *user* unless they already exist.

    Returns the new row, or ``None`` when a row was already present.
    """
    pool = await get_pool()
    row = await pool.fetchrow(
        """
        INSERT INTO user_details (username, max_projects)
        VALUES ($1, $2)
        ON CONFLICT (username) DO NOTHING
        RETURNING *
        """,
        user,
        max_projects,
    )
    return dict(row) if row else None


async def update_details(user: str, fields: dict) -> int:
    pool = await get_pool()
    where = Where().add("username = {}", user)
    assignments = set_clause(fields, where)
    status = await pool.execute(
        f"UPDATE user_details {assignments} {where.sql()}", *where.args
    )
    return affected_rows(status)


async def delete_details(user: str) -> int:
    pool = await get_pool()
    status = await pool.execute("DELETE FROM user_details WHERE username = $1", user)
    return affected_rows(status)
