"""History store: the durable record store for captured clipboard items.

All mutations run on one dedicated writer thread that owns the write
connection, so there is exactly one logical writer. Reads open a short-lived
connection in the calling thread and see a consistent WAL snapshot.

Blob files belong to their record: delete, clear and eviction remove the
record first and then ask the blob store to remove its files. Blob deletion is
best-effort; leftovers are reclaimed by BlobStore.cleanup_orphans().
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, TypeVar

from clipstash.db.connection import Database
from clipstash.db.models import HistoryRecord, utc_now
from clipstash.db.repository import BlobPaths, HistoryRepository
from clipstash.db.schema import initialize
from clipstash.errors import (
    DeleteFailedError,
    FetchFailedError,
    HistoryStoreError,
    ItemNotFoundError,
    SaveFailedError,
)
from clipstash.media.blob_store import BlobStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DEDUP_WINDOW = 60.0


class HistoryStore:
    """Save, query, pin, delete and evict history records.

    Args:
        db_path: SQLite database file (created and migrated if needed).
        blobs: Blob store owning the image files referenced by records.
            None disables blob cleanup (text-only use and tests).
        dedup_window: Seconds during which an identical hash counts as a
            duplicate.
        clock: Returns the current time (timezone-aware). Injected for tests.
        auto_migrate: Apply pending migrations on open. When False, an
            outdated database raises MigrationRequiredError.

    Raises:
        MigrationRequiredError: The database schema does not match this code.
        HistoryStoreError: The database could not be opened.
    """

    def __init__(
        self,
        db_path: Path | str,
        blobs: BlobStore | None = None,
        *,
        dedup_window: float = DEFAULT_DEDUP_WINDOW,
        clock: Callable[[], datetime] = utc_now,
        auto_migrate: bool = True,
    ) -> None:
        self._database = Database(db_path)
        self._blobs = blobs
        self.dedup_window = dedup_window
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="clipstash-writer"
        )
        try:
            self._writer: HistoryRepository = self._executor.submit(
                self._open_writer, auto_migrate
            ).result()
        except HistoryStoreError:
            self._executor.shutdown(wait=True)
            raise
        except (sqlite3.Error, OSError) as exc:
            self._executor.shutdown(wait=True)
            raise HistoryStoreError(
                f"Cannot open history database '{self._database.db_path}': {exc}"
            ) from exc
        self._closed = False

    @property
    def db_path(self) -> Path:
        return self._database.db_path

    def _open_writer(self, auto_migrate: bool) -> HistoryRepository:
        # Runs on the writer thread, which then owns this connection.
        conn = self._database.connect()
        try:
            initialize(conn, auto_migrate=auto_migrate)
        except BaseException:
            conn.close()
            raise
        self._writer_conn = conn
        return HistoryRepository(conn)

    def _write(self, fn: Callable[..., T], *args: Any) -> T:
        return self._executor.submit(fn, *args).result()

    def _read(self, fn: Callable[[HistoryRepository], T]) -> T:
        try:
            conn = self._database.connect()
            try:
                return fn(HistoryRepository(conn))
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise FetchFailedError(exc) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, record: HistoryRecord) -> None:
        """Insert a new record.

        Raises:
            SaveFailedError: On any persistence error (including a reused id).
        """
        try:
            self._write(self._writer.add, record)
        except sqlite3.Error as exc:
            raise SaveFailedError(exc) from exc
        logger.debug("Saved %s record %s", record.content_type.value, record.id)

    def toggle_pin(self, item_id: str) -> bool:
        """Flip the pin flag of *item_id*. Returns the new value.

        Raises:
            ItemNotFoundError: If *item_id* does not exist.
            SaveFailedError: On persistence error.
        """
        try:
            pinned = self._write(self._writer.toggle_pin, item_id)
        except sqlite3.Error as exc:
            raise SaveFailedError(exc) from exc
        if pinned is None:
            raise ItemNotFoundError(item_id)
        return pinned

    def delete(self, item_id: str) -> None:
        """Delete one record, then its blob files.

        Raises:
            ItemNotFoundError: If *item_id* does not exist.
            DeleteFailedError: On persistence error.
        """
        try:
            paths = self._write(self._writer.delete, item_id)
        except sqlite3.Error as exc:
            raise DeleteFailedError(exc) from exc
        if paths is None:
            raise ItemNotFoundError(item_id)
        self._delete_blobs([paths])

    def clear_history(self) -> int:
        """Delete every unpinned record and its blobs. Returns the number deleted."""
        try:
            paths = self._write(self._writer.delete_unpinned)
        except sqlite3.Error as exc:
            raise DeleteFailedError(exc) from exc
        self._delete_blobs(paths)
        logger.info("Cleared %d unpinned record(s)", len(paths))
        return len(paths)

    def enforce_limit(self, limit: int) -> int:
        """Evict the oldest unpinned records beyond *limit*. Returns the number evicted.

        Pinned records are never evicted. Calling again with the same limit
        is a no-op.
        """
        try:
            paths = self._write(self._writer.evict_oldest_unpinned, limit)
        except sqlite3.Error as exc:
            raise DeleteFailedError(exc) from exc
        if paths:
            self._delete_blobs(paths)
            logger.info("Evicted %d record(s) beyond limit %d", len(paths), limit)
        return len(paths)

    def _delete_blobs(self, paths: Iterable[BlobPaths]) -> None:
        if self._blobs is None:
            return
        for thumbnail_path, full_image_path in paths:
            if thumbnail_path or full_image_path:
                self._blobs.delete(thumbnail_path, full_image_path)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, item_id: str) -> HistoryRecord:
        """Return the record for *item_id* (raises ItemNotFoundError)."""
        record = self._read(lambda repo: repo.get(item_id))
        if record is None:
            raise ItemNotFoundError(item_id)
        return record

    def fetch_recent(self, limit: int) -> list[HistoryRecord]:
        """Unpinned records, newest first, truncated to *limit*."""
        return self._read(lambda repo: repo.list_recent(limit))

    def fetch_pinned(self) -> list[HistoryRecord]:
        """Pinned records, newest first."""
        return self._read(lambda repo: repo.list_pinned())

    def search(self, query: str) -> list[HistoryRecord]:
        """Case-insensitive substring search over text content, newest first."""
        return self._read(lambda repo: repo.search(query))

    def is_duplicate(self, content_hash: str) -> bool:
        """True if *content_hash* was stored within the dedup window."""
        cutoff = self._clock() - timedelta(seconds=self.dedup_window)
        return self._read(lambda repo: repo.exists_since(content_hash, cutoff))

    def unpinned_count(self) -> int:
        return self._read(lambda repo: repo.count_unpinned())

    def referenced_blob_paths(self) -> set[str]:
        """Blob paths referenced by any record (valid set for orphan sweeps)."""
        return self._read(lambda repo: repo.blob_paths())

    def stats(self) -> dict[str, Any]:
        def _collect(repo: HistoryRepository) -> dict[str, Any]:
            unpinned = repo.count_unpinned()
            pinned = repo.count_pinned()
            return {
                "total": unpinned + pinned,
                "unpinned": unpinned,
                "pinned": pinned,
                "by_type": repo.count_by_type(),
            }

        return self._read(_collect)

    def export_history(self) -> str:
        """Serialize every record, newest first, as pretty-printed JSON."""
        records = self._read(lambda repo: repo.list_all())
        return json.dumps([export_entry(r) for r in records], indent=2, ensure_ascii=False)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the writer connection and stop the writer thread."""
        if self._closed:
            return
        self._closed = True
        self._executor.submit(self._writer_conn.close).result()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> HistoryStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def export_entry(record: HistoryRecord) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": record.id,
        "timestamp": record.timestamp.timestamp(),
        "contentType": record.content_type.value,
        "isPinned": record.is_pinned,
        "dataSize": record.data_size,
    }
    if record.text_content is not None:
        entry["textContent"] = record.text_content
    if record.source_app_name is not None:
        entry["sourceApp"] = record.source_app_name
    return entry
