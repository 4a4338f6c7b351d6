"""Tests for HistoryRepository."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from clipstash.db.models import ContentType, HistoryRecord
from clipstash.db.repository import HistoryRepository

T0 = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def repo(tmp_db):
    return HistoryRepository(tmp_db)


def _record(id="r1", seconds=0, text="hello", pinned=False, kind=ContentType.PLAIN_TEXT,
            thumb=None, full=None, hash=None):
    return HistoryRecord(
        id=id,
        timestamp=T0 + timedelta(seconds=seconds),
        content_type=kind,
        content_hash=hash or f"hash-{id}",
        data_size=len(text or ""),
        is_pinned=pinned,
        text_content=text,
        thumbnail_path=thumb,
        full_image_path=full,
    )


# ------------------------------------------------------------------
# add / get
# ------------------------------------------------------------------

def test_add_returns_rowid(repo):
    assert repo.add(_record()) >= 1


def test_get_roundtrip_preserves_fields(repo):
    rec = _record(kind=ContentType.RICH_TEXT)
    rec.rtf_data = b"{\\rtf1 hi}"
    rec.source_app_id = "com.example.editor"
    repo.add(rec)
    got = repo.get("r1")
    assert got == rec
    assert got.timestamp.tzinfo is not None
    assert got.rowid is not None


def test_get_missing_returns_none(repo):
    assert repo.get("nope") is None


def test_duplicate_id_raises(repo):
    repo.add(_record())
    with pytest.raises(sqlite3.IntegrityError):
        repo.add(_record())
    # Failed transaction was rolled back; the connection is usable.
    assert repo.count_unpinned() == 1


# ------------------------------------------------------------------
# Ordering
# ------------------------------------------------------------------

def test_list_recent_newest_first_excludes_pinned(repo):
    repo.add(_record("a", seconds=0))
    repo.add(_record("b", seconds=10, pinned=True))
    repo.add(_record("c", seconds=20))
    assert [r.id for r in repo.list_recent(10)] == ["c", "a"]
    assert [r.id for r in repo.list_pinned()] == ["b"]


def test_list_recent_truncates(repo):
    for i in range(5):
        repo.add(_record(f"r{i}", seconds=i))
    assert [r.id for r in repo.list_recent(2)] == ["r4", "r3"]


def test_list_all_includes_pinned(repo):
    repo.add(_record("a", seconds=0, pinned=True))
    repo.add(_record("b", seconds=1))
    assert [r.id for r in repo.list_all()] == ["b", "a"]


# ------------------------------------------------------------------
# Pin / delete
# ------------------------------------------------------------------

def test_toggle_pin_flips(repo):
    repo.add(_record())
    assert repo.toggle_pin("r1") is True
    assert repo.get("r1").is_pinned is True
    assert repo.toggle_pin("r1") is False


def test_toggle_pin_missing(repo):
    assert repo.toggle_pin("nope") is None


def test_delete_returns_blob_paths(repo):
    repo.add(_record(kind=ContentType.IMAGE, text=None, thumb="r1.jpg", full="r1.png"))
    assert repo.delete("r1") == ("r1.jpg", "r1.png")
    assert repo.get("r1") is None
    assert repo.delete("r1") is None


def test_delete_unpinned_keeps_pinned(repo):
    repo.add(_record("a"))
    repo.add(_record("b", pinned=True))
    repo.add(_record("c", thumb="c.jpg"))
    paths = repo.delete_unpinned()
    assert len(paths) == 2
    assert ("c.jpg", None) in paths
    assert [r.id for r in repo.list_all()] == ["b"]


# ------------------------------------------------------------------
# Eviction
# ------------------------------------------------------------------

def test_evict_oldest_unpinned(repo):
    for i in range(5):
        repo.add(_record(f"r{i}", seconds=i))
    repo.add(_record("pinned-old", seconds=-100, pinned=True))
    evicted = repo.evict_oldest_unpinned(3)
    assert len(evicted) == 2
    ids = {r.id for r in repo.list_all()}
    assert ids == {"r2", "r3", "r4", "pinned-old"}


def test_evict_ties_broken_by_insertion_order(repo):
    repo.add(_record("first", seconds=0))
    repo.add(_record("second", seconds=0))
    repo.add(_record("third", seconds=0))
    repo.evict_oldest_unpinned(2)
    assert {r.id for r in repo.list_all()} == {"second", "third"}


def test_evict_within_limit_noop(repo):
    repo.add(_record())
    assert repo.evict_oldest_unpinned(5) == []
    assert repo.evict_oldest_unpinned(1) == []


# ------------------------------------------------------------------
# Search / dedup / counts
# ------------------------------------------------------------------

def test_search_case_insensitive(repo):
    repo.add(_record("a", text="Quarterly INVOICE", seconds=0))
    repo.add(_record("b", text="lunch plans", seconds=1))
    repo.add(_record("c", text="invoice #42", seconds=2))
    assert [r.id for r in repo.search("Invoice")] == ["c", "a"]


def test_search_skips_records_without_text(repo):
    repo.add(_record("img", text=None, kind=ContentType.IMAGE))
    repo.add(_record("txt", text="anything"))
    assert [r.id for r in repo.search("")] == ["txt"]


def test_exists_since(repo):
    repo.add(_record(hash="h1", seconds=0))
    assert repo.exists_since("h1", T0 - timedelta(seconds=1)) is True
    assert repo.exists_since("h1", T0 + timedelta(seconds=1)) is False
    assert repo.exists_since("other", T0 - timedelta(days=1)) is False


def test_counts_and_blob_paths(repo):
    repo.add(_record("a", kind=ContentType.IMAGE, text=None, thumb="a.jpg", full="a.png"))
    repo.add(_record("b", pinned=True))
    repo.add(_record("c"))
    assert repo.count_unpinned() == 2
    assert repo.count_pinned() == 1
    assert repo.count_by_type() == {"image": 1, "plainText": 2}
    assert repo.blob_paths() == {"a.jpg", "a.png"}
