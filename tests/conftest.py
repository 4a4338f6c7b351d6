"""Shared pytest fixtures."""

from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from PIL import Image

from clipstash.capture.reader import ClipboardReader, SourceApp
from clipstash.config import StashConfig
from clipstash.db.connection import Database
from clipstash.db.schema import initialize
from clipstash.db.store import HistoryStore
from clipstash.media.blob_store import BlobStore

T0 = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock; call it to read the current time."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeClipboard(ClipboardReader):
    """In-memory clipboard. Every set() bumps the change counter."""

    def __init__(self) -> None:
        self.count = 0
        self.text: str | None = None
        self.rtf: bytes | None = None
        self.html: str | None = None
        self.image: bytes | None = None
        self.file_paths: list[str] | None = None
        self.url: str | None = None
        self.extra_types: list[str] = []
        self.source: SourceApp | None = None

    def set(
        self,
        *,
        text: str | None = None,
        rtf: bytes | None = None,
        html: str | None = None,
        image: bytes | None = None,
        file_paths: list[str] | None = None,
        url: str | None = None,
        types: list[str] | None = None,
        source: SourceApp | None = None,
    ) -> None:
        self.text, self.rtf, self.html = text, rtf, html
        self.image, self.file_paths, self.url = image, file_paths, url
        self.extra_types = types or []
        self.source = source
        self.count += 1

    def change_count(self) -> int:
        return self.count

    def types(self) -> list[str]:
        found = list(self.extra_types)
        if self.text is not None:
            found.append("public.utf8-plain-text")
        if self.image is not None:
            found.append("public.png")
        return found

    def read_text(self) -> str | None:
        return self.text

    def read_rtf(self) -> bytes | None:
        return self.rtf

    def read_html(self) -> str | None:
        return self.html

    def read_image(self) -> bytes | None:
        return self.image

    def read_file_paths(self) -> list[str] | None:
        return self.file_paths

    def read_url(self) -> str | None:
        return self.url if self.url is not None else super().read_url()

    def source_app(self) -> SourceApp | None:
        return self.source


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def config(tmp_path: Path) -> StashConfig:
    """Default config rooted at tmp_path/data."""
    cfg = StashConfig()
    cfg.storage.data_dir = tmp_path / "data"
    return cfg


@pytest.fixture
def blobs(config: StashConfig) -> BlobStore:
    return BlobStore(
        config.storage.data_dir,
        max_image_size=config.images.max_image_size,
        thumbnail_max_size=config.images.thumbnail_max_size,
        thumbnail_quality=config.images.thumbnail_quality,
    )


@pytest.fixture
def store(config: StashConfig, blobs: BlobStore, clock: FakeClock):
    """History store with blob cleanup and the fake clock, closed after test."""
    history = HistoryStore(
        config.storage.db_path,
        blobs,
        dedup_window=config.history.dedup_window,
        clock=clock,
    )
    yield history
    history.close()


@pytest.fixture
def tmp_db(tmp_path: Path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "history.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def make_png():
    """Factory producing PNG bytes of the requested size."""

    def _make(width: int = 640, height: int = 480, mode: str = "RGBA") -> bytes:
        out = io.BytesIO()
        Image.new(mode, (width, height), color=(200, 40, 40, 255)[: len(mode)]).save(
            out, format="PNG"
        )
        return out.getvalue()

    return _make


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep CLIPSTASH_* variables from the developer's shell out of tests."""
    for name in ("CLIPSTASH_DATA_DIR", "CLIPSTASH_HISTORY_LIMIT", "CLIPSTASH_POLL_INTERVAL"):
        monkeypatch.delenv(name, raising=False)
