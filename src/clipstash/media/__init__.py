"""Image blob storage and thumbnail helpers."""

from clipstash.media.blob_store import BlobStore
from clipstash.media.images import image_extension, make_thumbnail

__all__ = ["BlobStore", "image_extension", "make_thumbnail"]
