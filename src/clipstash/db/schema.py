"""Database schema initialization."""

from __future__ import annotations

import sqlite3

from clipstash.db.migrations import LATEST_VERSION, run_migrations

CURRENT_VERSION = LATEST_VERSION


def initialize(conn: sqlite3.Connection, *, auto_migrate: bool = True) -> None:
    """Initialize the database schema via the migration runner (idempotent)."""
    run_migrations(conn, auto_migrate=auto_migrate)
