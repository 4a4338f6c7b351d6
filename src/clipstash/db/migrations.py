"""Forward-only migration runner for the history database schema."""

from __future__ import annotations

import sqlite3

from clipstash.errors import MigrationRequiredError

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

# timestamp is seconds since the epoch (UTC).
_V1_SQL = """
CREATE TABLE IF NOT EXISTS history (
    id                    TEXT PRIMARY KEY,
    timestamp             REAL NOT NULL,
    content_type          TEXT NOT NULL,
    is_pinned             INTEGER NOT NULL DEFAULT 0,
    content_hash          TEXT NOT NULL,
    data_size             INTEGER NOT NULL DEFAULT 0,
    source_app_bundle_id  TEXT,
    source_app_name       TEXT,
    text_content          TEXT,
    plain_text_content    TEXT,
    rtf_data              BLOB,
    html_content          TEXT,
    url_string            TEXT,
    file_url_string       TEXT,
    file_name             TEXT,
    thumbnail_path        TEXT,
    full_image_path       TEXT
);

CREATE INDEX IF NOT EXISTS idx_history_hash_ts ON history (content_hash, timestamp);
CREATE INDEX IF NOT EXISTS idx_history_pinned_ts ON history (is_pinned, timestamp);
"""

# Append-only. Each entry: (version: int, sql: str).
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]

LATEST_VERSION: int = MIGRATIONS[-1][0]


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied schema version (0 for a fresh database)."""
    conn.execute(_CREATE_SCHEMA_VERSION)
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] if row[0] is not None else 0


def run_migrations(conn: sqlite3.Connection, *, auto_migrate: bool = True) -> int:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any known version.

    Args:
        conn: Open connection.
        auto_migrate: When False, pending migrations are not applied and
            MigrationRequiredError is raised instead.

    Returns:
        The schema version after running.

    Raises:
        MigrationRequiredError: If the database is newer than this code, or
            if migrations are pending and *auto_migrate* is False.
    """
    current = current_version(conn)

    if current > LATEST_VERSION:
        raise MigrationRequiredError(current, LATEST_VERSION)
    if current < LATEST_VERSION and not auto_migrate:
        raise MigrationRequiredError(current, LATEST_VERSION)

    for version, sql in MIGRATIONS:
        if version > current:
            conn.execute("BEGIN IMMEDIATE")
            try:
                for statement in _split_statements(sql):
                    conn.execute(statement)
                conn.execute(
                    "INSERT INTO schema_version (version) VALUES (?)", (version,)
                )
            except Exception:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
            current = version

    return current


def _split_statements(sql: str) -> list[str]:
    return [s.strip() for s in sql.split(";") if s.strip()]
