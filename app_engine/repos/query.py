"""Small helpers for composing parameterised SQL in the repos.

Column names reaching these helpers come from schema declarations,
never from request data; ``ident`` still refuses anything that is not
a plain lowercase identifier.
"""

import re
from typing import Any

_IDENT_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


def ident(name: str) -> str:
    """Return *name* if it is a safe SQL identifier, else raise ValueError."""
    if not _IDENT_RE.match(name):
        raise ValueError(f"Unsafe SQL identifier: {name!r}")
    return name


class Where:
    """Accumulates ``WHERE`` clauses and their positional arguments.

    Each template holds one ``{}`` placeholder that is replaced by the
    next ``$n`` parameter.
    """

    def __init__(self) -> None:
        self.clauses: list[str] = []
        self.args: list[Any] = []

    def add(self, template: str, value: Any) -> "Where":
        self.args.append(value)
        self.clauses.append(template.format(f"${len(self.args)}"))
        return self

    def add_if(self, template: str, value: Any) -> "Where":
        if value is not None:
            self.add(template, value)
        return self

    def sql(self) -> str:
        if not self.clauses:
            return ""
        return "WHERE " + " AND ".join(self.clauses)

    def paginate(self, index: int | None, limit: int | None) -> str:
        """``OFFSET``/``LIMIT`` suffix; appends the values to ``args``."""
        parts: list[str] = []
        if index:
            self.args.append(max(0, int(index)))
            parts.append(f"OFFSET ${len(self.args)}")
        if limit:
            self.args.append(max(0, int(limit)))
            parts.append(f"LIMIT ${len(self.args)}")
        return " ".join(parts)


def insert_sql(table: str, fields: dict) -> tuple[str, list]:
    """``INSERT ... RETURNING *`` for the given column values."""
    columns = [ident(c) for c in fields]
    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    sql = (
        f"INSERT INTO {ident(table)} ({', '.join(columns)}) "
        f"VALUES ({placeholders}) RETURNING *"
    )
    return sql, list(fields.values())


def set_clause(fields: dict, where: Where) -> str:
    """``SET`` clause for an update, parameters numbered after *where*'s.

    Always bumps ``last_modified``; call after the WHERE clauses are
    added so parameter numbers line up.
    """
    assignments: list[str] = []
    for column, value in fields.items():
        where.args.append(value)
        assignments.append(f"{ident(column)} = ${len(where.args)}")
    assignments.append("last_modified = clock_timestamp()")
    return "SET " + ", ".join(assignments)
