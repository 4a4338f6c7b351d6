"""SQLite connection layer for the history database."""

from __future__ import annotations

import sqlite3
from pathlib import Path


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


class Database:
    """Single-file SQLite database holding clipboard history metadata."""

    def __init__(self, db_path: Path | str) -> None:
        """Store the database path. Call connect() to open the connection.

        Args:
            db_path: Path to the SQLite database file (created if missing).
        """
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Open an autocommit connection and return it.

        Transactions are opened explicitly by the repository
        (``BEGIN IMMEDIATE``), so the driver's implicit transaction handling
        is disabled. A deterministic ``casefold()`` SQL function is registered
        for case-insensitive search.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA busy_timeout = 5000")
        return conn

    def __enter__(self) -> sqlite3.Connection:
        """Open the database and return the connection (context manager support)."""
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        """Close the connection when leaving the context manager."""
        if self._conn:
            self._conn.close()
            self._conn = None
