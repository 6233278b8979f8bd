"""Media library service: register, list, update, delete."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotelsite.db.models import MediaAsset, MediaType, SourceType
from hotelsite.db.services.reference_index import build_reference_index
from hotelsite.lib.hashing import compute_content_hash, filename_from_url, infer_source_type
from hotelsite.lib.hooks import (
    AFTER_MEDIA_DELETE,
    AFTER_MEDIA_REGISTER,
    BEFORE_MEDIA_DELETE,
    BEFORE_MEDIA_REGISTER,
    hooks,
)
from hotelsite.lib.media_errors import MediaNotFoundError, ProtectedMediaError

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {"title", "caption", "category", "sort_order", "media_type", "protected_key"}
)


def _media_filters(
    media_type: str | None = None,
    source_type: str | None = None,
    category: str | None = None,
    search: str | None = None,
) -> list:
    filters = []
    if media_type and media_type != "all":
        filters.append(MediaAsset.media_type == media_type)
    if source_type and source_type != "all":
        filters.append(MediaAsset.source_type == source_type)
    if category:
        filters.append(MediaAsset.category == category)
    if search:
        pattern = f"%{search}%"
        filters.append(or_(MediaAsset.title.ilike(pattern), MediaAsset.caption.ilike(pattern)))
    return filters


async def list_media(
    db_session: AsyncSession,
    media_type: str | None = None,
    source_type: str | None = None,
    category: str | None = None,
    search: str | None = None,
    usage: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[MediaAsset]:
    """List media records with optional filtering.

    ``usage`` is ``"used"``, ``"unused"`` or ``None``/``"all"``. It is
    resolved against the content tables after the SQL filters, so
    ``limit``/``offset`` apply to the filtered result.
    """
    query = select(MediaAsset)
    filters = _media_filters(media_type, source_type, category, search)
    if filters:
        query = query.where(and_(*filters))
    query = query.order_by(MediaAsset.sort_order, MediaAsset.created_at.desc())

    if usage not in ("used", "unused"):
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await db_session.execute(query)
        return list(result.scalars().all())

    result = await db_session.execute(query)
    index = await build_reference_index(db_session)
    want_used = usage == "used"
    assets = [a for a in result.scalars().all() if index.is_referenced(a.url) == want_used]
    end = None if limit is None else offset + limit
    return assets[offset:end]


async def count_media(
    db_session: AsyncSession,
    media_type: str | None = None,
    source_type: str | None = None,
    category: str | None = None,
    search: str | None = None,
    usage: str | None = None,
) -> int:
    """Count media records matching the same filters as :func:`list_media`."""
    filters = _media_filters(media_type, source_type, category, search)

    if usage not in ("used", "unused"):
        query = select(func.count()).select_from(MediaAsset)
        if filters:
            query = query.where(and_(*filters))
        result = await db_session.execute(query)
        return result.scalar() or 0

    query = select(MediaAsset.url)
    if filters:
        query = query.where(and_(*filters))
    result = await db_session.execute(query)
    index = await build_reference_index(db_session)
    want_used = usage == "used"
    return sum(1 for url in result.scalars().all() if index.is_referenced(url) == want_used)


async def get_media(db_session: AsyncSession, media_id: UUID) -> MediaAsset | None:
    result = await db_session.execute(select(MediaAsset).where(MediaAsset.id == media_id))
    return result.scalar_one_or_none()


async def register_media(
    db_session: AsyncSession,
    url: str,
    title: str = "",
    caption: str = "",
    category: str = "hotel",
    media_type: str = MediaType.IMAGE.value,
    source_type: str | None = None,
    data: bytes | None = None,
    protected_key: str | None = None,
) -> MediaAsset:
    """Create a media record for ``url``.

    When the file bytes are supplied the content hash and size are recorded
    immediately; otherwise they are left for the hash backfill. Hardcoded
    sources are protected from deletion.
    """
    source = SourceType(source_type) if source_type else infer_source_type(url)

    asset = MediaAsset(
        url=url,
        title=title or filename_from_url(url),
        caption=caption,
        category=category,
        media_type=media_type,
        source_type=source.value,
        is_protected=source is SourceType.HARDCODED,
        protected_key=protected_key,
    )
    if data is not None:
        asset.content_hash = compute_content_hash(data)
        asset.byte_size = len(data)
        asset.original_filename = filename_from_url(url)

    # Callbacks may adjust the unsaved record or raise to refuse it
    await hooks.do_action(BEFORE_MEDIA_REGISTER, asset)
    db_session.add(asset)
    await db_session.commit()
    await db_session.refresh(asset)

    await hooks.do_action(AFTER_MEDIA_REGISTER, asset)
    return asset


async def update_media(
    db_session: AsyncSession,
    media_id: UUID,
    **fields: Any,
) -> MediaAsset:
    """Update editable metadata on a media record. URL and hash are not editable."""
    asset = await get_media(db_session, media_id)
    if asset is None:
        raise MediaNotFoundError(media_id)

    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

    for name, value in fields.items():
        setattr(asset, name, value)

    await db_session.commit()
    await db_session.refresh(asset)
    return asset


async def delete_media(db_session: AsyncSession, media_id: UUID) -> bool:
    """Delete a media record. Protected records are refused.

    Returns False when the record does not exist.
    """
    asset = await get_media(db_session, media_id)
    if asset is None:
        return False
    if asset.is_protected:
        raise ProtectedMediaError([asset.id])

    await hooks.do_action(BEFORE_MEDIA_DELETE, asset)

    url = asset.url
    await db_session.delete(asset)
    await db_session.commit()
    logger.info("Deleted media %s (%s)", media_id, url)

    await hooks.do_action(AFTER_MEDIA_DELETE, media_id=media_id, url=url)
    return True
