"""Tests for app_engine/repos/query.py and the db helpers -- SQL composition."""

import pytest

from app_engine.repos.db import affected_rows
from app_engine.repos.query import Where, ident, insert_sql, set_clause


def test_ident_accepts_plain_names():
    assert ident("admin_privileges") == "admin_privileges"


@pytest.mark.parametrize("name", ["Name", "name; drop table projects", "1abc", "a-b", ""])
def test_ident_rejects_unsafe_names(name):
    with pytest.raises(ValueError):
        ident(name)


def test_where_numbers_parameters():
    where = Where().add("username = {}", "george").add_if("id = {}", None).add_if("name ~* {}", "x")
    assert where.sql() == "WHERE username = $1 AND name ~* $2"
    assert where.args == ["george", "x"]


def test_empty_where():
    assert Where().sql() == ""


def test_paginate_appends_args():
    where = Where().add("username = {}", "george")
    assert where.paginate(10, 5) == "OFFSET $2 LIMIT $3"
    assert where.args == ["george", 10, 5]


def test_paginate_zero_means_unbounded():
    where = Where()
    assert where.paginate(0, 0) == ""
    assert where.args == []


def test_insert_sql():
    sql, args = insert_sql("builds", {"name": "New Build", "username": "george"})
    assert sql == "INSERT INTO builds (name, username) VALUES ($1, $2) RETURNING *"
    assert args == ["New Build", "george"]


def test_set_clause_numbers_after_where():
    where = Where().add("id = {}", "p1").add("username = {}", "george")
    assert set_clause({"name": "x"}, where) == "SET name = $3, last_modified = clock_timestamp()"
    assert where.args == ["p1", "george", "x"]


def test_set_clause_rejects_unsafe_column():
    with pytest.raises(ValueError):
        set_clause({"name = 'x'; --": 1}, Where())


@pytest.mark.parametrize(
    "status, expected",
    [("UPDATE 1", 1), ("DELETE 12", 12), ("INSERT 0 1", 1), ("", 0), (None, 0)],
)
def test_affected_rows(status, expected):
    assert affected_rows(status) == expected
