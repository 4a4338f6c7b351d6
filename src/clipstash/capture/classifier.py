"""Content classification: one canonical type per capture."""

from __future__ import annotations

from clipstash.db.models import CapturedContent, ContentType


def classify(capture: CapturedContent) -> ContentType:
    """Return the content type that drives how *capture* is stored.

    Priority (highest first): image → non-empty file list → URL → rich text
    → HTML → plain text. Plain text is also the answer for an otherwise
    empty capture; the detector discards those before they get here.
    """
    if capture.image:
        return ContentType.IMAGE
    if capture.file_paths:
        return ContentType.FILE_REFERENCE
    if capture.url:
        return ContentType.URL
    if capture.rtf:
        return ContentType.RICH_TEXT
    if capture.html:
        return ContentType.HTML
    return ContentType.PLAIN_TEXT
