"""Tests for the forward-only migration runner."""

from __future__ import annotations

import pytest

from clipstash.db.connection import Database
from clipstash.db.migrations import LATEST_VERSION, MIGRATIONS, current_version, run_migrations
from clipstash.errors import MigrationRequiredError


def _fresh_conn(tmp_path):
    """Open a new connection without running migrations."""
    return Database(tmp_path / "test.db").connect()


def _table_exists(conn, name: str) -> bool:
    return conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,)
    ).fetchone() is not None


def _columns(conn, table: str) -> set[str]:
    return {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}


# --- Bootstrap ---

def test_fresh_database_is_version_0(tmp_path):
    conn = _fresh_conn(tmp_path)
    assert current_version(conn) == 0
    conn.close()


def test_run_migrations_records_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    assert run_migrations(conn) == LATEST_VERSION
    assert current_version(conn) == MIGRATIONS[-1][0]
    conn.close()


def test_run_migrations_idempotent(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    run_migrations(conn)
    count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert count == len(MIGRATIONS)
    conn.close()


# --- Schema ---

def test_history_table_columns(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert _table_exists(conn, "history")
    assert _columns(conn, "history") == {
        "id", "timestamp", "content_type", "is_pinned", "content_hash", "data_size",
        "source_app_bundle_id", "source_app_name", "text_content", "plain_text_content",
        "rtf_data", "html_content", "url_string", "file_url_string", "file_name",
        "thumbnail_path", "full_image_path",
    }
    conn.close()


def test_history_indexes_created(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    names = {
        r[0]
        for r in conn.execute("SELECT name FROM sqlite_master WHERE type='index'")
    }
    assert {"idx_history_hash_ts", "idx_history_pinned_ts"} <= names
    conn.close()


# --- Version mismatch ---

def test_pending_migration_without_auto_migrate_raises(tmp_path):
    conn = _fresh_conn(tmp_path)
    with pytest.raises(MigrationRequiredError) as exc_info:
        run_migrations(conn, auto_migrate=False)
    assert exc_info.value.current == 0
    assert exc_info.value.expected == LATEST_VERSION
    assert not _table_exists(conn, "history")
    conn.close()


def test_newer_database_raises(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    conn.execute("INSERT INTO schema_version (version) VALUES (?)", (LATEST_VERSION + 1,))
    with pytest.raises(MigrationRequiredError, match="newer"):
        run_migrations(conn)
    conn.close()


def test_up_to_date_without_auto_migrate_ok(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert run_migrations(conn, auto_migrate=False) == LATEST_VERSION
    conn.close()
