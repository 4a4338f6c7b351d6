"""Repository for all history table operations.

Every mutating method runs as a single ``BEGIN IMMEDIATE`` transaction, so a
reader never observes a partial write. Methods raise ``sqlite3.Error``; the
history store translates those into the typed errors in clipstash.errors.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from clipstash.db.models import ContentType, HistoryRecord

BlobPaths = tuple[str | None, str | None]

_COLUMNS = """
    rowid, id, timestamp, content_type, is_pinned, content_hash, data_size,
    source_app_bundle_id, source_app_name, text_content, plain_text_content,
    rtf_data, html_content, url_string, file_url_string, file_name,
    thumbnail_path, full_image_path
"""


class HistoryRepository:
    """Data access layer for the ``history`` table.

    Wraps an open sqlite3.Connection (opened by Database.connect, i.e. in
    autocommit mode). The connection is owned by the caller and must be
    closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        self._conn.execute("BEGIN IMMEDIATE")
        try:
            yield self._conn
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        self._conn.execute("COMMIT")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, record: HistoryRecord) -> int:
        """Insert *record*. Returns the new rowid (insertion sequence)."""
        with self._transaction() as conn:
            cur = conn.execute(
                """
                INSERT INTO history (
                    id, timestamp, content_type, is_pinned, content_hash, data_size,
                    source_app_bundle_id, source_app_name, text_content,
                    plain_text_content, rtf_data, html_content, url_string,
                    file_url_string, file_name, thumbnail_path, full_image_path
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.timestamp.timestamp(),
                    record.content_type.value,
                    int(record.is_pinned),
                    record.content_hash,
                    record.data_size,
                    record.source_app_id,
                    record.source_app_name,
                    record.text_content,
                    record.plain_text_content,
                    record.rtf_data,
                    record.html_content,
                    record.url_string,
                    record.file_url_string,
                    record.file_name,
                    record.thumbnail_path,
                    record.full_image_path,
                ),
            )
        return cur.lastrowid

    def toggle_pin(self, item_id: str) -> bool | None:
        """Flip ``is_pinned`` for *item_id*. Returns the new value, or None if missing."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT is_pinned FROM history WHERE id = ?", (item_id,)
            ).fetchone()
            if row is None:
                return None
            pinned = not bool(row["is_pinned"])
            conn.execute(
                "UPDATE history SET is_pinned = ? WHERE id = ?", (int(pinned), item_id)
            )
        return pinned

    def delete(self, item_id: str) -> BlobPaths | None:
        """Delete one record. Returns its blob paths, or None if it did not exist."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT thumbnail_path, full_image_path FROM history WHERE id = ?",
                (item_id,),
            ).fetchone()
            if row is None:
                return None
            conn.execute("DELETE FROM history WHERE id = ?", (item_id,))
        return row["thumbnail_path"], row["full_image_path"]

    def delete_unpinned(self) -> list[BlobPaths]:
        """Delete every unpinned record. Returns the blob paths of the deleted rows."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT thumbnail_path, full_image_path FROM history WHERE is_pinned = 0"
            ).fetchall()
            conn.execute("DELETE FROM history WHERE is_pinned = 0")
        return [(r["thumbnail_path"], r["full_image_path"]) for r in rows]

    def evict_oldest_unpinned(self, limit: int) -> list[BlobPaths]:
        """Delete the oldest unpinned records beyond *limit*.

        Oldest first by timestamp, ties broken by insertion order (rowid).
        Returns the blob paths of the evicted rows (empty when within limit).
        """
        with self._transaction() as conn:
            count = conn.execute(
                "SELECT COUNT(*) FROM history WHERE is_pinned = 0"
            ).fetchone()[0]
            excess = count - max(limit, 0)
            if excess <= 0:
                return []
            rows = conn.execute(
                """
                SELECT rowid, thumbnail_path, full_image_path FROM history
                WHERE is_pinned = 0
                ORDER BY timestamp ASC, rowid ASC
                LIMIT ?
                """,
                (excess,),
            ).fetchall()
            rowids = [r["rowid"] for r in rows]
            placeholders = ",".join("?" * len(rowids))
            conn.execute(f"DELETE FROM history WHERE rowid IN ({placeholders})", rowids)
        return [(r["thumbnail_path"], r["full_image_path"]) for r in rows]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, item_id: str) -> HistoryRecord | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM history WHERE id = ?", (item_id,)
        ).fetchone()
        return _row_to_record(row) if row else None

    def list_recent(self, limit: int) -> list[HistoryRecord]:
        """Unpinned records, newest first, at most *limit*."""
        rows = self._conn.execute(
            f"""
            SELECT {_COLUMNS} FROM history WHERE is_pinned = 0
            ORDER BY timestamp DESC, rowid DESC LIMIT ?
            """,
            (max(limit, 0),),
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def list_pinned(self) -> list[HistoryRecord]:
        rows = self._conn.execute(
            f"""
            SELECT {_COLUMNS} FROM history WHERE is_pinned = 1
            ORDER BY timestamp DESC, rowid DESC
            """
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def list_all(self) -> list[HistoryRecord]:
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM history ORDER BY timestamp DESC, rowid DESC"
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def search(self, query: str) -> list[HistoryRecord]:
        """Case-insensitive substring match on ``text_content``, newest first."""
        rows = self._conn.execute(
            f"""
            SELECT {_COLUMNS} FROM history
            WHERE text_content IS NOT NULL
              AND instr(casefold(text_content), ?) > 0
            ORDER BY timestamp DESC, rowid DESC
            """,
            (query.casefold(),),
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def exists_since(self, content_hash: str, cutoff: datetime) -> bool:
        """True if a record with *content_hash* is newer than *cutoff*."""
        row = self._conn.execute(
            "SELECT 1 FROM history WHERE content_hash = ? AND timestamp > ? LIMIT 1",
            (content_hash, cutoff.timestamp()),
        ).fetchone()
        return row is not None

    def count_unpinned(self) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM history WHERE is_pinned = 0"
        ).fetchone()[0]

    def count_pinned(self) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM history WHERE is_pinned = 1"
        ).fetchone()[0]

    def count_by_type(self) -> dict[str, int]:
        rows = self._conn.execute(
            "SELECT content_type, COUNT(*) AS n FROM history GROUP BY content_type"
        ).fetchall()
        return {r["content_type"]: r["n"] for r in rows}

    def blob_paths(self) -> set[str]:
        """Every thumbnail and full-image path referenced by a record."""
        rows = self._conn.execute(
            """
            SELECT thumbnail_path, full_image_path FROM history
            WHERE thumbnail_path IS NOT NULL OR full_image_path IS NOT NULL
            """
        ).fetchall()
        paths: set[str] = set()
        for r in rows:
            paths.update(p for p in (r["thumbnail_path"], r["full_image_path"]) if p)
        return paths


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_record(row: sqlite3.Row) -> HistoryRecord:
    rtf = row["rtf_data"]
    return HistoryRecord(
        rowid=row["rowid"],
        id=row["id"],
        timestamp=datetime.fromtimestamp(row["timestamp"], tz=timezone.utc),
        content_type=ContentType(row["content_type"]),
        is_pinned=bool(row["is_pinned"]),
        content_hash=row["content_hash"],
        data_size=row["data_size"],
        source_app_id=row["source_app_bundle_id"],
        source_app_name=row["source_app_name"],
        text_content=row["text_content"],
        plain_text_content=row["plain_text_content"],
        rtf_data=bytes(rtf) if rtf is not None else None,
        html_content=row["html_content"],
        url_string=row["url_string"],
        file_url_string=row["file_url_string"],
        file_name=row["file_name"],
        thumbnail_path=row["thumbnail_path"],
        full_image_path=row["full_image_path"],
    )
