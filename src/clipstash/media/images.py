"""Image helpers: format sniffing and thumbnail generation (Pillow)."""

from __future__ import annotations

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from clipstash.errors import ThumbnailGenerationError

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_TIFF_LE_SIGNATURE = b"II*\x00"
_TIFF_BE_SIGNATURE = b"MM\x00*"
_JPEG_SIGNATURE = b"\xff\xd8"


def image_extension(data: bytes) -> str:
    """Return the file extension for *data* sniffed from its signature bytes.

    Examples:
        PNG  -> "png"
        TIFF -> "tiff" (either byte order)
        JPEG -> "jpg"
        anything else -> "dat"
    """
    if data.startswith(_PNG_SIGNATURE):
        return "png"
    if data.startswith((_TIFF_LE_SIGNATURE, _TIFF_BE_SIGNATURE)):
        return "tiff"
    if data.startswith(_JPEG_SIGNATURE):
        return "jpg"
    return "dat"


def make_thumbnail(data: bytes, max_size: int = 200, quality: int = 70) -> bytes:
    """Downsize *data* so neither side exceeds *max_size* and encode as JPEG.

    EXIF orientation is applied before resizing. Images with alpha or a
    palette are flattened to RGB, since JPEG has no alpha channel.

    Raises:
        ThumbnailGenerationError: If the bytes cannot be decoded or encoded.
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            image = ImageOps.exif_transpose(source)
            image.thumbnail((max_size, max_size))
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            out = io.BytesIO()
            image.save(out, format="JPEG", quality=quality)
            return out.getvalue()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        raise ThumbnailGenerationError(f"Cannot build thumbnail: {exc}") from exc
