"""Exceptions raised by the media library services."""

from uuid import UUID


class MediaError(Exception):
    """Base class for media library errors."""


class MediaNotFoundError(MediaError):
    def __init__(self, media_id: UUID) -> None:
        self.media_id = media_id
        super().__init__(f"Media {media_id} not found")


class ProtectedMediaError(MediaError):
    """Raised when a delete would remove a protected (hardcoded) asset."""

    def __init__(self, media_ids: list[UUID]) -> None:
        self.media_ids = media_ids
        ids = ", ".join(str(i) for i in media_ids)
        super().__init__(f"Refusing to delete protected media: {ids}")


class ReferenceRewriteError(MediaError):
    """A content field could not be repointed to the canonical URL."""

    def __init__(self, reference: str, row_ids: list[UUID], cause: Exception) -> None:
        self.reference = reference
        self.row_ids = row_ids
        self.cause = cause
        super().__init__(f"Rewrite of {reference} failed: {cause}")


class ReferenceVerificationError(MediaError):
    """Content rows still point at a URL that is about to be deleted."""

    def __init__(self, remaining: dict[str, list[str]]) -> None:
        self.remaining = remaining
        details = "; ".join(f"{url} in {', '.join(places)}" for url, places in remaining.items())
        super().__init__(f"Duplicate URLs still referenced: {details}")
