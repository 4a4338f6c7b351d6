"""Build a HistoryRecord from a capture: which fields each content type fills."""

from __future__ import annotations

from pathlib import Path

from clipstash.capture.classifier import classify
from clipstash.db.models import CapturedContent, ContentType, HistoryRecord


def _utf8_len(value: str | None) -> int:
    return len(value.encode("utf-8")) if value else 0


def _file_uri(path: str) -> str:
    p = Path(path)
    return p.as_uri() if p.is_absolute() else p.absolute().as_uri()


def build_record(
    capture: CapturedContent,
    item_id: str,
    *,
    content_type: ContentType | None = None,
    thumbnail_path: str | None = None,
    full_image_path: str | None = None,
) -> HistoryRecord:
    """Map *capture* to a record with exactly one primary payload shape.

    ============== ============================================ ===================
    type           fields                                       data_size
    ============== ============================================ ===================
    image          thumbnail_path, full_image_path; no text     len(image bytes)
    fileReference  file_url_string + file_name of the first     0
                   path, text = joined file names
    url            url_string, text = url                       UTF-8 len of url
    richText       rtf_data, text + plain-text mirror           len(rtf bytes)
    html           html_content, text + plain-text mirror       UTF-8 len of html
    plainText      text                                         UTF-8 len of text
    ============== ============================================ ===================
    """
    kind = content_type or classify(capture)
    record = HistoryRecord(
        id=item_id,
        timestamp=capture.captured_at,
        content_type=kind,
        content_hash=capture.content_hash,
        data_size=0,
        source_app_id=capture.source_app_id,
        source_app_name=capture.source_app_name,
    )

    if kind is ContentType.IMAGE:
        record.thumbnail_path = thumbnail_path
        record.full_image_path = full_image_path
        record.data_size = len(capture.image or b"")

    elif kind is ContentType.FILE_REFERENCE:
        paths = capture.file_paths or ()
        if paths:
            record.file_url_string = _file_uri(paths[0])
            record.file_name = Path(paths[0]).name
            record.text_content = ", ".join(Path(p).name for p in paths)

    elif kind is ContentType.URL:
        record.url_string = capture.url
        record.text_content = capture.url
        record.data_size = _utf8_len(capture.url)

    elif kind is ContentType.RICH_TEXT:
        record.rtf_data = capture.rtf
        record.text_content = capture.text
        record.plain_text_content = capture.text
        record.data_size = len(capture.rtf or b"")

    elif kind is ContentType.HTML:
        record.html_content = capture.html
        record.text_content = capture.text
        record.plain_text_content = capture.text
        record.data_size = _utf8_len(capture.html)

    else:
        record.text_content = capture.text
        record.data_size = _utf8_len(capture.text)

    return record
