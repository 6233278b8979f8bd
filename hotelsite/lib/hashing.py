"""Content fingerprints and URL helpers for media records."""

import hashlib
from urllib.parse import unquote, urlparse

from hotelsite.db.models import SourceType

# Path fragment of files served by the hosted storage bucket
STORAGE_PATH_MARKER = "/storage/v1/object/"


def compute_content_hash(data: bytes) -> str:
    """SHA-256 hex digest of the file bytes."""
    return hashlib.sha256(data).hexdigest()


def filename_from_url(url: str) -> str:
    """Last path segment of a URL, e.g. ``/a/b/photo.jpg`` -> ``photo.jpg``."""
    path = urlparse(url).path
    return unquote(path.rstrip("/").rsplit("/", 1)[-1])


def infer_source_type(url: str) -> SourceType:
    """Guess where a URL's file lives: our bucket, a site-local copy, or elsewhere."""
    if STORAGE_PATH_MARKER in url:
        return SourceType.UPLOAD
    parsed = urlparse(url)
    if not parsed.scheme and url.startswith("/"):
        return SourceType.MIRRORED
    return SourceType.EXTERNAL
