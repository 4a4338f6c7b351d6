"""Ingestion coordinator: the only component that sequences the others.

For each capture received from the detector, in order:
  1. Skip it if the history store already holds the same hash within the
     dedup window.
  2. For images, write the thumbnail and full image blobs. Failures here are
     logged and the record is stored without the missing blob.
  3. Build and save the HistoryRecord. A failure loses this capture only.
  4. Enforce the retention limit. A failure is logged and corrected on the
     next ingestion.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from clipstash.capture.classifier import classify
from clipstash.capture.stream import CaptureStream
from clipstash.config import StashConfig
from clipstash.db.models import CapturedContent, ContentType
from clipstash.db.store import HistoryStore
from clipstash.errors import (
    BlobStoreError,
    FetchFailedError,
    HistoryStoreError,
    ImageTooLargeError,
)
from clipstash.ingest.records import build_record
from clipstash.media.blob_store import BlobStore

logger = logging.getLogger(__name__)


class IngestResult(str, Enum):
    STORED = "stored"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class IngestStats:
    """Counters for captures handled by one coordinator."""

    stored: int = 0
    duplicates: int = 0
    failed: int = 0
    evicted: int = 0


def _new_item_id() -> str:
    return str(uuid.uuid4())


class IngestionCoordinator:
    """Consume captures and persist the novel ones.

    Args:
        store: History store for duplicate checks, saves and eviction.
        blobs: Blob store for image thumbnails and full images.
        settings: Live configuration; ``history.limit`` is read on every
            ingestion.
        id_factory: Returns a fresh, unique item id.
    """

    def __init__(
        self,
        store: HistoryStore,
        blobs: BlobStore,
        settings: StashConfig,
        *,
        id_factory: Callable[[], str] = _new_item_id,
    ) -> None:
        self._store = store
        self._blobs = blobs
        self._settings = settings
        self._id_factory = id_factory
        self._thread: threading.Thread | None = None
        self.stats = IngestStats()

    # ------------------------------------------------------------------
    # Consuming a stream
    # ------------------------------------------------------------------

    def run(self, stream: CaptureStream) -> IngestStats:
        """Ingest captures from *stream* until it is closed. Blocks."""
        for capture in stream:
            self.ingest(capture)
        logger.debug("Capture stream closed; ingestion loop finished")
        return self.stats

    def start(self, stream: CaptureStream) -> threading.Thread:
        """Run the ingestion loop on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("IngestionCoordinator is already running")
        self._thread = threading.Thread(
            target=self.run, args=(stream,), name="clipstash-ingest", daemon=True
        )
        self._thread.start()
        return self._thread

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the background loop to finish (after its stream closes)."""
        if self._thread is not None:
            self._thread.join(timeout)

    # ------------------------------------------------------------------
    # One capture
    # ------------------------------------------------------------------

    def ingest(self, capture: CapturedContent) -> IngestResult:
        try:
            duplicate = self._store.is_duplicate(capture.content_hash)
        except FetchFailedError as exc:
            logger.warning("Duplicate check failed, storing capture anyway: %s", exc)
            duplicate = False
        if duplicate:
            logger.debug("Skipping duplicate capture %s", capture.content_hash[:12])
            self.stats.duplicates += 1
            return IngestResult.DUPLICATE

        item_id = self._id_factory()
        content_type = classify(capture)
        thumbnail_path: str | None = None
        full_image_path: str | None = None

        if content_type is ContentType.IMAGE and capture.image:
            thumbnail_path, full_image_path = self._store_image(capture.image, item_id)

        record = build_record(
            capture,
            item_id,
            content_type=content_type,
            thumbnail_path=thumbnail_path,
            full_image_path=full_image_path,
        )
        try:
            self._store.save(record)
        except HistoryStoreError as exc:
            logger.error("Failed to save %s capture: %s", content_type.value, exc)
            self._blobs.delete(thumbnail_path, full_image_path)
            self.stats.failed += 1
            return IngestResult.FAILED

        self.stats.stored += 1
        logger.info(
            "Stored %s record %s (%d bytes)", content_type.value, item_id, record.data_size
        )

        try:
            self.stats.evicted += self._store.enforce_limit(self._settings.history.limit)
        except HistoryStoreError as exc:
            logger.warning("Failed to enforce history limit: %s", exc)

        return IngestResult.STORED

    def _store_image(self, image: bytes, item_id: str) -> tuple[str | None, str | None]:
        thumbnail_path: str | None = None
        full_image_path: str | None = None

        try:
            thumbnail = self._blobs.generate_thumbnail(image)
            thumbnail_path = self._blobs.save_thumbnail(thumbnail, item_id)
        except BlobStoreError as exc:
            logger.warning("Thumbnail for %s not stored: %s", item_id, exc)

        try:
            full_image_path = self._blobs.save_full_image(image, item_id)
        except ImageTooLargeError as exc:
            logger.info("Full image for %s skipped: %s", item_id, exc)
        except BlobStoreError as exc:
            logger.warning("Full image for %s not stored: %s", item_id, exc)

        return thumbnail_path, full_image_path
