"""Content fingerprinting for duplicate suppression."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

LARGE_IMAGE_THRESHOLD = 1024 * 1024
IMAGE_SAMPLE_SIZE = 1024


def fingerprint(
    text: str | None = None,
    image: bytes | None = None,
    file_paths: Sequence[str] | None = None,
    *,
    large_image_threshold: int = LARGE_IMAGE_THRESHOLD,
    sample_size: int = IMAGE_SAMPLE_SIZE,
) -> str:
    """Return the SHA-256 hex digest of a capture's payload.

    The digest covers, in order: the UTF-8 text, the image bytes and the
    joined file paths. Images larger than *large_image_threshold* contribute
    only their first and last *sample_size* bytes.
    """
    digest = hashlib.sha256()
    if text:
        digest.update(text.encode("utf-8"))
    if image:
        if len(image) > large_image_threshold:
            digest.update(image[:sample_size])
            digest.update(image[-sample_size:])
        else:
            digest.update(image)
    if file_paths:
        digest.update("".join(file_paths).encode("utf-8"))
    return digest.hexdigest()
