"""Baseline -- app-engine schema.

Revision ID: 0001_baseline
Revises: None
Create Date: 2026-10-19

Idempotent (IF NOT EXISTS everywhere) so it can run against a database
that was created by hand from the same DDL.
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_RESOURCE_BASE = """
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    project_id      UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    username        VARCHAR(255) NOT NULL,
    name            TEXT NOT NULL DEFAULT '',
    shallow_id      INTEGER NOT NULL,
    created_on      TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
    last_modified   TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
"""


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # -- projects -------------------------------------------------------------
    op.execute("""
        CREATE TABLE IF NOT EXISTS projects (
            id                UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            username          VARCHAR(255) NOT NULL,
            name              TEXT NOT NULL,
            description       TEXT NOT NULL DEFAULT '',
            image             TEXT NOT NULL DEFAULT '',
            category          INTEGER NOT NULL DEFAULT 1,
            sub_category      TEXT NOT NULL DEFAULT '',
            is_public         BOOLEAN NOT NULL DEFAULT false,
            cur_file          UUID,
            rating            DOUBLE PRECISION NOT NULL DEFAULT 0,
            score             DOUBLE PRECISION NOT NULL DEFAULT 0,
            num_raters        INTEGER NOT NULL DEFAULT 0,
            suspicious        BOOLEAN NOT NULL DEFAULT false,
            deleted           BOOLEAN NOT NULL DEFAULT false,
            build_id          UUID,
            project_type      INTEGER NOT NULL DEFAULT 0,
            tags              TEXT[] NOT NULL DEFAULT '{}',
            read_privileges   TEXT[] NOT NULL DEFAULT '{}',
            write_privileges  TEXT[] NOT NULL DEFAULT '{}',
            admin_privileges  TEXT[] NOT NULL DEFAULT '{}',
            plugins           TEXT[] NOT NULL DEFAULT '{}',
            files             TEXT[] NOT NULL DEFAULT '{}',
            created_on        TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
            last_modified     TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_projects_username ON projects(username)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_projects_created_on ON projects(created_on)")

    # -- builds (no FK: a build exists before its project is linked) ----------
    op.execute("""
        CREATE TABLE IF NOT EXISTS builds (
            id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            username        VARCHAR(255) NOT NULL,
            project_id      UUID,
            name            TEXT NOT NULL DEFAULT 'New Build',
            notes           TEXT NOT NULL DEFAULT '',
            version         TEXT NOT NULL DEFAULT '0.0.1',
            html            TEXT NOT NULL DEFAULT '',
            is_public       BOOLEAN NOT NULL DEFAULT false,
            css             TEXT NOT NULL DEFAULT '',
            live_html       TEXT NOT NULL DEFAULT '',
            live_link       TEXT NOT NULL DEFAULT '',
            live_token      TEXT NOT NULL DEFAULT '',
            total_votes     INTEGER NOT NULL DEFAULT 0,
            total_voters    INTEGER NOT NULL DEFAULT 0,
            created_on      TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
            last_modified   TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_builds_project ON builds(project_id, username)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_builds_username ON builds(username)")

    # -- project-scoped resources -------------------------------------------
    op.execute(f"""
        CREATE TABLE IF NOT EXISTS assets (
            {_RESOURCE_BASE},
            class_name      TEXT NOT NULL,
            payload         JSONB NOT NULL DEFAULT '[]'
        )
    """)
    op.execute(f"""
        CREATE TABLE IF NOT EXISTS groups (
            {_RESOURCE_BASE},
            items           INTEGER[] NOT NULL DEFAULT '{{}}'
        )
    """)
    op.execute(f"""
        CREATE TABLE IF NOT EXISTS containers (
            {_RESOURCE_BASE},
            payload         JSONB NOT NULL DEFAULT '{{}}'
        )
    """)
    op.execute(f"""
        CREATE TABLE IF NOT EXISTS scripts (
            {_RESOURCE_BASE},
            on_enter        TEXT NOT NULL DEFAULT '',
            on_initialize   TEXT NOT NULL DEFAULT '',
            on_dispose      TEXT NOT NULL DEFAULT '',
            on_frame        TEXT NOT NULL DEFAULT ''
        )
    """)
    for table in ("assets", "groups", "containers", "scripts"):
        op.execute(
            f"CREATE INDEX IF NOT EXISTS idx_{table}_project ON {table}(project_id, created_on)"
        )

    # -- plugins ---------------------------------------------------------------
    op.execute("""
        CREATE TABLE IF NOT EXISTS plugins (
            id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name            TEXT NOT NULL,
            description     TEXT NOT NULL DEFAULT '',
            plan            INTEGER NOT NULL DEFAULT 1,
            url             TEXT NOT NULL DEFAULT '',
            deployables     TEXT[] NOT NULL DEFAULT '{}',
            image           TEXT NOT NULL DEFAULT '',
            author          VARCHAR(255) NOT NULL DEFAULT '',
            version         TEXT NOT NULL DEFAULT '0.0.1',
            versions        JSONB NOT NULL DEFAULT '[]',
            is_public       BOOLEAN NOT NULL DEFAULT false,
            created_on      TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
            last_modified   TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
    """)

    # -- user details ---------------------------------------------------------
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_details (
            id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            username        VARCHAR(255) NOT NULL UNIQUE,
            bio             TEXT NOT NULL DEFAULT '',
            image           TEXT NOT NULL DEFAULT '',
            plan            INTEGER NOT NULL DEFAULT 1,
            website         TEXT NOT NULL DEFAULT '',
            customer_id     TEXT NOT NULL DEFAULT '',
            max_projects    INTEGER NOT NULL DEFAULT 5,
            created_on      TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
            last_modified   TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
    """)

    # -- files ----------------------------------------------------------------
    op.execute("""
        CREATE TABLE IF NOT EXISTS files (
            id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            username        VARCHAR(255) NOT NULL,
            name            TEXT NOT NULL,
            bucket_id       TEXT NOT NULL DEFAULT '',
            bucket_name     TEXT NOT NULL DEFAULT '',
            url             TEXT NOT NULL DEFAULT '',
            extension       TEXT NOT NULL DEFAULT '',
            identifier      TEXT NOT NULL UNIQUE,
            size            BIGINT NOT NULL DEFAULT 0,
            favourite       BOOLEAN NOT NULL DEFAULT false,
            is_global       BOOLEAN NOT NULL DEFAULT false,
            browsable       BOOLEAN NOT NULL DEFAULT true,
            project_id      UUID REFERENCES projects(id) ON DELETE SET NULL,
            tags            TEXT[] NOT NULL DEFAULT '{}',
            preview_url     TEXT NOT NULL DEFAULT '',
            created_on      TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
            last_modified   TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_files_username ON files(username)")


def downgrade() -> None:
    for table in (
        "files", "user_details", "plugins",
        "scripts", "containers", "groups", "assets",
        "builds", "projects",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
