"""Tests for IngestionCoordinator."""

from __future__ import annotations

import itertools
from unittest.mock import patch

import pytest

from clipstash.capture.hasher import fingerprint
from clipstash.capture.stream import CaptureStream
from clipstash.db.models import CapturedContent, ContentType
from clipstash.errors import DeleteFailedError, FetchFailedError, SaveFailedError
from clipstash.ingest.coordinator import IngestionCoordinator, IngestResult
from clipstash.media.blob_store import BlobStore


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


@pytest.fixture
def coordinator(store, blobs, config):
    ids = (f"item-{n}" for n in itertools.count())
    return IngestionCoordinator(store, blobs, config, id_factory=lambda: next(ids))


def _text(clock, text: str) -> CapturedContent:
    return CapturedContent(captured_at=clock(), content_hash=fingerprint(text), text=text)


def _image(clock, data: bytes) -> CapturedContent:
    return CapturedContent(captured_at=clock(), content_hash=fingerprint(image=data), image=data)


# ------------------------------------------------------------------
# Storing
# ------------------------------------------------------------------


def test_text_capture_stored(coordinator, store, clock):
    assert coordinator.ingest(_text(clock, "hello")) is IngestResult.STORED
    record = store.get("item-0")
    assert record.content_type is ContentType.PLAIN_TEXT
    assert record.text_content == "hello"
    assert coordinator.stats.stored == 1


def test_image_capture_writes_blobs(coordinator, store, blobs, clock, make_png):
    data = make_png(800, 600)
    coordinator.ingest(_image(clock, data))

    record = store.get("item-0")
    assert record.content_type is ContentType.IMAGE
    assert record.thumbnail_path == "item-0.jpg"
    assert record.full_image_path == "item-0.png"
    assert record.data_size == len(data)
    assert blobs.load_full_image(record.full_image_path) == data
    assert blobs.load_thumbnail(record.thumbnail_path)


def test_oversized_image_keeps_thumbnail_only(store, config, clock, tmp_path, make_png):
    # A real PNG padded past the ceiling; Pillow ignores trailing bytes.
    data = make_png(300, 300) + b"\x00" * (50 * 1024 * 1024)
    small_blobs = BlobStore(tmp_path / "data", max_image_size=20 * 1024 * 1024)
    coordinator = IngestionCoordinator(store, small_blobs, config, id_factory=lambda: "big")

    assert coordinator.ingest(_image(clock, data)) is IngestResult.STORED

    record = store.get("big")
    assert record.thumbnail_path == "big.jpg"
    assert record.full_image_path is None
    assert record.data_size == len(data)
    assert list(small_blobs.images_dir.iterdir()) == []


def test_undecodable_image_keeps_full_image_only(coordinator, store, clock):
    data = b"\x89PNG\r\n\x1a\n" + b"garbage" * 10
    coordinator.ingest(_image(clock, data))
    record = store.get("item-0")
    assert record.thumbnail_path is None
    assert record.full_image_path == "item-0.png"


# ------------------------------------------------------------------
# Duplicates
# ------------------------------------------------------------------


def test_duplicate_within_window_skipped(coordinator, store, clock):
    coordinator.ingest(_text(clock, "same"))
    clock.advance(1)
    assert coordinator.ingest(_text(clock, "same")) is IngestResult.DUPLICATE
    assert store.unpinned_count() == 1
    assert coordinator.stats.duplicates == 1


def test_duplicate_after_window_stored(coordinator, store, clock):
    coordinator.ingest(_text(clock, "same"))
    clock.advance(3600)
    assert coordinator.ingest(_text(clock, "same")) is IngestResult.STORED
    assert store.unpinned_count() == 2


def test_failed_duplicate_check_treated_as_novel(coordinator, store, clock):
    with patch.object(store, "is_duplicate", side_effect=FetchFailedError(RuntimeError("db"))):
        assert coordinator.ingest(_text(clock, "x")) is IngestResult.STORED
    assert store.unpinned_count() == 1


# ------------------------------------------------------------------
# Failures
# ------------------------------------------------------------------


def test_save_failure_drops_capture_and_blobs(coordinator, store, blobs, clock, make_png):
    with patch.object(store, "save", side_effect=SaveFailedError(RuntimeError("disk full"))):
        result = coordinator.ingest(_image(clock, make_png(64, 64)))

    assert result is IngestResult.FAILED
    assert coordinator.stats.failed == 1
    assert list(blobs.thumbnails_dir.iterdir()) == []
    assert list(blobs.images_dir.iterdir()) == []


def test_save_failure_does_not_stop_later_captures(coordinator, store, clock):
    with patch.object(store, "save", side_effect=SaveFailedError(RuntimeError("locked"))):
        coordinator.ingest(_text(clock, "lost"))
    assert coordinator.ingest(_text(clock, "kept")) is IngestResult.STORED
    assert [r.text_content for r in store.fetch_recent(10)] == ["kept"]


def test_enforce_limit_failure_keeps_record(coordinator, store, clock):
    with patch.object(store, "enforce_limit", side_effect=DeleteFailedError(RuntimeError("x"))):
        assert coordinator.ingest(_text(clock, "x")) is IngestResult.STORED
    assert store.unpinned_count() == 1


# ------------------------------------------------------------------
# Retention
# ------------------------------------------------------------------


def test_history_limit_enforced_on_ingest(coordinator, store, config, clock):
    config.history.limit = 10
    for i in range(15):
        coordinator.ingest(_text(clock, f"item {i}"))
        clock.advance(1)
    assert store.unpinned_count() == 10
    assert coordinator.stats.evicted == 5
    assert store.fetch_recent(1)[0].text_content == "item 14"


def test_limit_change_applies_to_next_ingest(coordinator, store, config, clock):
    for i in range(20):
        coordinator.ingest(_text(clock, f"item {i}"))
        clock.advance(1)
    config.history.limit = 10
    coordinator.ingest(_text(clock, "trigger"))
    assert store.unpinned_count() == 10


# ------------------------------------------------------------------
# Stream loop
# ------------------------------------------------------------------


def test_run_drains_stream_until_closed(coordinator, store, clock):
    stream = CaptureStream()
    for text in ("a", "b", "c"):
        stream.put(_text(clock, text))
        clock.advance(1)
    stream.close()

    stats = coordinator.run(stream)

    assert stats.stored == 3
    assert [r.text_content for r in store.fetch_recent(10)] == ["c", "b", "a"]


def test_start_runs_in_background(coordinator, store, clock):
    stream = CaptureStream()
    coordinator.start(stream)
    assert coordinator.is_running
    stream.put(_text(clock, "bg"))
    stream.close()
    coordinator.join(timeout=5)
    assert not coordinator.is_running
    assert store.fetch_recent(1)[0].text_content == "bg"


def test_start_twice_raises(coordinator):
    stream = CaptureStream()
    coordinator.start(stream)
    try:
        with pytest.raises(RuntimeError):
            coordinator.start(stream)
    finally:
        stream.close()
        coordinator.join(timeout=5)
