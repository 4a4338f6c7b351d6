"""Construct the long-lived core services once and pass them explicitly."""

from __future__ import annotations

from dataclasses import dataclass

from clipstash.capture.detector import ClipboardDetector
from clipstash.capture.reader import ClipboardReader
from clipstash.config import StashConfig
from clipstash.db.store import HistoryStore
from clipstash.ingest.coordinator import IngestionCoordinator
from clipstash.media.blob_store import BlobStore


@dataclass
class Services:
    """The blob store and history store for one data directory."""

    config: StashConfig
    blobs: BlobStore
    store: HistoryStore

    def detector(self, reader: ClipboardReader) -> ClipboardDetector:
        return ClipboardDetector(reader, self.config)

    def coordinator(self) -> IngestionCoordinator:
        return IngestionCoordinator(self.store, self.blobs, self.config)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> Services:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def open_services(config: StashConfig, *, auto_migrate: bool = True) -> Services:
    """Open the blob store and history store under ``config.storage.data_dir``.

    Raises:
        MigrationRequiredError: The history database needs migrating.
        HistoryStoreError: The history database could not be opened.
    """
    images = config.images
    blobs = BlobStore(
        config.storage.data_dir,
        max_image_size=images.max_image_size,
        thumbnail_max_size=images.thumbnail_max_size,
        thumbnail_quality=images.thumbnail_quality,
    )
    store = HistoryStore(
        config.storage.db_path,
        blobs,
        dedup_window=config.history.dedup_window,
        auto_migrate=auto_migrate,
    )
    return Services(config=config, blobs=blobs, store=store)
