"""clipstash database layer."""

from clipstash.db.connection import Database
from clipstash.db.migrations import MIGRATIONS, run_migrations
from clipstash.db.models import CapturedContent, ContentType, HistoryRecord
from clipstash.db.repository import HistoryRepository
from clipstash.db.schema import initialize
from clipstash.db.store import HistoryStore

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "CapturedContent",
    "ContentType",
    "HistoryRecord",
    "HistoryRepository",
    "HistoryStore",
]
