"""File-backed store for image blobs (thumbnails and full images).

Layout under the data directory::

    thumbnails/<item-id>.jpg
    images/<item-id>.<png|tiff|jpg|dat>

Paths handed out and accepted by this module are file names relative to
their directory. Filenames derive from the item id, so writes for distinct
items never collide.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from clipstash.errors import BlobWriteError, ImageTooLargeError
from clipstash.media.images import image_extension, make_thumbnail

logger = logging.getLogger(__name__)

THUMBNAILS_DIR = "thumbnails"
IMAGES_DIR = "images"
_TMP_SUFFIX = ".tmp"


class BlobStore:
    """Persist, load and delete image blobs addressed by history item id.

    Args:
        root: Application data directory; ``thumbnails/`` and ``images/`` are
            created beneath it.
        max_image_size: Ceiling in bytes for full images.
        thumbnail_max_size: Maximum thumbnail width/height in pixels.
        thumbnail_quality: JPEG quality used for thumbnails.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        max_image_size: int = 20 * 1024 * 1024,
        thumbnail_max_size: int = 200,
        thumbnail_quality: int = 70,
    ) -> None:
        self.root = Path(root)
        self.thumbnails_dir = self.root / THUMBNAILS_DIR
        self.images_dir = self.root / IMAGES_DIR
        self.max_image_size = max_image_size
        self.thumbnail_max_size = thumbnail_max_size
        self.thumbnail_quality = thumbnail_quality
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.root, self.thumbnails_dir, self.images_dir):
            directory.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def generate_thumbnail(self, data: bytes) -> bytes:
        """Return JPEG thumbnail bytes for *data* (raises ThumbnailGenerationError)."""
        return make_thumbnail(
            data, max_size=self.thumbnail_max_size, quality=self.thumbnail_quality
        )

    def save_thumbnail(self, data: bytes, item_id: str) -> str:
        """Write thumbnail bytes for *item_id*. Returns the relative path."""
        filename = f"{item_id}.jpg"
        self._write(self.thumbnails_dir / filename, data)
        return filename

    def save_full_image(self, data: bytes, item_id: str) -> str:
        """Write the original image bytes for *item_id*. Returns the relative path.

        Raises:
            ImageTooLargeError: If *data* exceeds ``max_image_size``.
            BlobWriteError: If the file cannot be written.
        """
        if len(data) > self.max_image_size:
            raise ImageTooLargeError(len(data), self.max_image_size)
        filename = f"{item_id}.{image_extension(data)}"
        self._write(self.images_dir / filename, data)
        return filename

    def _write(self, path: Path, data: bytes) -> None:
        """Write *data* to *path* atomically (temp → rename)."""
        self.ensure_directories()
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=_TMP_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise BlobWriteError(str(path), exc) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_thumbnail(self, path: str) -> bytes | None:
        return _read(self.thumbnails_dir / Path(path).name)

    def load_full_image(self, path: str) -> bytes | None:
        return _read(self.images_dir / Path(path).name)

    def thumbnail_file(self, path: str) -> Path:
        return self.thumbnails_dir / Path(path).name

    def full_image_file(self, path: str) -> Path:
        return self.images_dir / Path(path).name

    # ------------------------------------------------------------------
    # Deletes / maintenance
    # ------------------------------------------------------------------

    def delete(
        self, thumbnail_path: str | None = None, full_image_path: str | None = None
    ) -> None:
        """Remove the given blobs. Best-effort: missing files and OS errors are logged."""
        if thumbnail_path:
            _unlink(self.thumbnail_file(thumbnail_path))
        if full_image_path:
            _unlink(self.full_image_file(full_image_path))

    def cleanup_orphans(self, valid_paths: set[str]) -> int:
        """Delete every blob file whose name is not in *valid_paths*.

        In-progress temp files (``*.tmp``) are left alone. Run this only while
        no ingestion is active: blobs written for a capture whose record is
        not saved yet are not in *valid_paths* and would be removed.

        Returns:
            Number of files removed.
        """
        removed = 0
        for directory in (self.thumbnails_dir, self.images_dir):
            if not directory.is_dir():
                continue
            for entry in directory.iterdir():
                if entry.suffix == _TMP_SUFFIX or not entry.is_file():
                    continue
                if entry.name not in valid_paths:
                    if _unlink(entry):
                        removed += 1
        if removed:
            logger.info("Removed %d orphaned blob file(s)", removed)
        return removed

    def total_storage_size(self) -> int:
        """Total bytes used by thumbnails and full images."""
        total = 0
        for directory in (self.thumbnails_dir, self.images_dir):
            if not directory.is_dir():
                continue
            for entry in directory.iterdir():
                try:
                    if entry.is_file():
                        total += entry.stat().st_size
                except OSError:
                    continue
        return total


def _read(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def _unlink(path: Path) -> bool:
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("Could not delete blob %s: %s", path, exc)
        return False
