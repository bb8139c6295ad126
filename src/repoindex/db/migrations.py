"""Forward-only migration runner for the repoindex database schema.

Vec tables (vec_embeddings_*) are NOT migration-managed — use ensure_vec_table().
"""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS connections (
    id              TEXT PRIMARY KEY,
    workspace_id    TEXT NOT NULL,
    repo_url        TEXT NOT NULL,
    repo_name       TEXT NOT NULL,
    default_branch  TEXT NOT NULL DEFAULT 'main',
    status          TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'syncing', 'ready', 'error')),
    file_count      INTEGER NOT NULL DEFAULT 0,
    module_count    INTEGER NOT NULL DEFAULT 0,
    last_synced_at  TEXT,
    error_message   TEXT,
    created_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    UNIQUE (workspace_id, repo_name)
);

CREATE TABLE IF NOT EXISTS modules (
    id              TEXT PRIMARY KEY,
    connection_id   TEXT NOT NULL REFERENCES connections(id) ON DELETE CASCADE,
    workspace_id    TEXT NOT NULL,
    file_path       TEXT NOT NULL,
    module_name     TEXT,
    module_type     TEXT CHECK (module_type IN (
                        'component', 'service', 'model', 'route',
                        'utility', 'config', 'test')),
    language        TEXT,
    raw_content     TEXT,
    content_hash    TEXT,
    dependencies    TEXT NOT NULL DEFAULT '[]',
    exports         TEXT NOT NULL DEFAULT '[]',
    structure       TEXT NOT NULL DEFAULT '{}',
    summary         TEXT,
    embedding       TEXT,
    updated_at      TEXT NOT NULL,
    UNIQUE (connection_id, file_path)
);

CREATE INDEX IF NOT EXISTS idx_modules_type ON modules (connection_id, module_type);

CREATE TABLE IF NOT EXISTS embeddings (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    workspace_id    TEXT NOT NULL,
    source_id       TEXT NOT NULL,
    source_type     TEXT NOT NULL,
    chunk_index     INTEGER NOT NULL DEFAULT 0,
    chunk_text      TEXT NOT NULL,
    metadata        TEXT NOT NULL DEFAULT '{}',
    created_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    UNIQUE (source_id, source_type, chunk_index)
);

CREATE TABLE IF NOT EXISTS artifacts (
    id              TEXT PRIMARY KEY,
    workspace_id    TEXT NOT NULL,
    type            TEXT NOT NULL,
    title           TEXT NOT NULL,
    content         TEXT NOT NULL,
    status          TEXT NOT NULL DEFAULT 'active',
    created_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    updated_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

-- One architecture summary per workspace.
CREATE UNIQUE INDEX IF NOT EXISTS idx_artifacts_architecture
    ON artifacts (workspace_id) WHERE type = 'architecture_summary';
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    Vec tables are NOT managed here — use ensure_vec_table() instead.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
