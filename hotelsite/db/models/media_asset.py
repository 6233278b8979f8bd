"""Media library model."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotelsite.db.base import Base


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class SourceType(str, Enum):
    """Where a media file lives."""

    UPLOAD = "upload"
    EXTERNAL = "external"
    MIRRORED = "mirrored"
    HARDCODED = "hardcoded"


class MediaAsset(Base):
    """An uploaded or linked image/video tracked by the media library."""

    __tablename__ = "media_assets"
    __table_args__ = (
        Index("ix_media_assets_hash_size", "content_hash", "byte_size"),
    )

    url: Mapped[str] = mapped_column(String(2048), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    caption: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="hotel", index=True)
    media_type: Mapped[str] = mapped_column(String(16), nullable=False, default=MediaType.IMAGE.value)
    source_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=SourceType.UPLOAD.value, index=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Fingerprint of the file bytes (SHA-256 hex), filled on upload or backfill
    content_hash: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    byte_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    original_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Referenced directly by application code; never deleted
    is_protected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    protected_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
