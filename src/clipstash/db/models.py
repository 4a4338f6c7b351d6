"""Domain models for the clipstash history store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContentType(str, Enum):
    """Canonical content type of a capture, in classification priority order."""

    IMAGE = "image"
    FILE_REFERENCE = "fileReference"
    URL = "url"
    RICH_TEXT = "richText"
    HTML = "html"
    PLAIN_TEXT = "plainText"

    @property
    def label(self) -> str:
        """Human-readable name, e.g. "file reference"."""
        return _LABELS[self]


_LABELS = {
    ContentType.IMAGE: "image",
    ContentType.FILE_REFERENCE: "file reference",
    ContentType.URL: "url",
    ContentType.RICH_TEXT: "rich text",
    ContentType.HTML: "html",
    ContentType.PLAIN_TEXT: "plain text",
}


@dataclass(frozen=True)
class CapturedContent:
    """One clipboard change with every representation that was available.

    Produced by the detector and consumed once by the ingestion coordinator;
    never persisted directly.
    """

    captured_at: datetime
    content_hash: str
    text: str | None = None
    rtf: bytes | None = None
    html: str | None = None
    image: bytes | None = None
    file_paths: tuple[str, ...] | None = None
    url: str | None = None
    source_app_id: str | None = None
    source_app_name: str | None = None
    types: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True when there is no text, image, file list or URL to keep."""
        return not (self.text or self.image or self.file_paths or self.url)


@dataclass
class HistoryRecord:
    id: str
    timestamp: datetime
    content_type: ContentType
    content_hash: str
    data_size: int
    is_pinned: bool = False
    source_app_id: str | None = None
    source_app_name: str | None = None
    text_content: str | None = None
    plain_text_content: str | None = None
    rtf_data: bytes | None = None
    html_content: str | None = None
    url_string: str | None = None
    file_url_string: str | None = None
    file_name: str | None = None
    thumbnail_path: str | None = None  # relative to the thumbnails/ directory
    full_image_path: str | None = None  # relative to the images/ directory
    rowid: int | None = field(default=None, compare=False)  # set when read back

    @property
    def blob_paths(self) -> tuple[str | None, str | None]:
        return self.thumbnail_path, self.full_image_path

    @property
    def preview(self) -> str:
        """Single-line preview of the record for list views."""
        text = (self.text_content or "").strip()
        if not text:
            return self.content_type.label
        text = " ".join(text.split())
        return text if len(text) <= 100 else text[:100] + "…"
