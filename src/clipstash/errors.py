"""Exception hierarchy for the clipstash core.

Storage and blob failures propagate to callers as these typed errors; the
ingestion coordinator decides which of them are fatal for a single capture.
"""

from __future__ import annotations


class ClipstashError(Exception):
    """Base class for all clipstash errors."""


# ---------------------------------------------------------------------------
# History store
# ---------------------------------------------------------------------------


class HistoryStoreError(ClipstashError):
    """Base class for metadata store failures."""


class ItemNotFoundError(HistoryStoreError):
    """The operation targets a record id that does not exist."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"No history record with id '{item_id}'")
        self.item_id = item_id


class _WrappedStoreError(HistoryStoreError):
    """A persistence I/O error wrapping the underlying cause."""

    action = "access"

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Failed to {self.action} history: {cause}")
        self.cause = cause


class SaveFailedError(_WrappedStoreError):
    action = "save"


class FetchFailedError(_WrappedStoreError):
    action = "fetch"


class DeleteFailedError(_WrappedStoreError):
    action = "delete"


class MigrationRequiredError(HistoryStoreError):
    """The database schema version does not match what this code can use."""

    def __init__(self, current: int, expected: int) -> None:
        if current > expected:
            detail = (
                f"database schema is at version {current}, newer than the "
                f"supported version {expected}"
            )
        else:
            detail = (
                f"database schema is at version {current}, "
                f"version {expected} is required"
            )
        super().__init__(f"Migration required: {detail}")
        self.current = current
        self.expected = expected


# ---------------------------------------------------------------------------
# Blob store
# ---------------------------------------------------------------------------


class BlobStoreError(ClipstashError):
    """Base class for blob store failures."""


class ImageTooLargeError(BlobStoreError):
    """The image exceeds the configured full-image ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Image of {size} bytes exceeds the {limit} byte limit")
        self.size = size
        self.limit = limit


class ThumbnailGenerationError(BlobStoreError):
    """The image bytes could not be decoded or re-encoded as a thumbnail."""


class BlobWriteError(BlobStoreError):
    """Writing a blob file failed."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Failed to write blob '{path}': {cause}")
        self.path = path
        self.cause = cause


# ---------------------------------------------------------------------------
# Clipboard
# ---------------------------------------------------------------------------


class ClipboardUnavailableError(ClipstashError):
    """The OS clipboard could not be read."""
