"""Media usage lookup, library statistics and unused-media listing."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotelsite.db.models import MediaAsset, MediaType
from hotelsite.db.services.reference_index import ReferenceIndex, build_reference_index
from hotelsite.lib.media_refs import USAGE_TYPES


@dataclass
class UsageLocation:
    type: str
    id: str
    title: str
    field: str


@dataclass
class MediaStats:
    total: int = 0
    used: int = 0
    unused: int = 0
    by_type: dict[str, int] = field(default_factory=lambda: dict.fromkeys(USAGE_TYPES, 0))
    by_media_type: dict[str, int] = field(
        default_factory=lambda: {MediaType.IMAGE.value: 0, MediaType.VIDEO.value: 0}
    )

    def to_dict(self) -> dict:
        return asdict(self)


def usage_for_url(index: ReferenceIndex, url: str) -> list[UsageLocation]:
    return [
        UsageLocation(
            type=location.reference.usage_type,
            id=str(location.row_id),
            title=location.label,
            field=location.reference.field,
        )
        for location in index.locations(url)
    ]


async def find_media_usage(db_session: AsyncSession, url: str) -> list[UsageLocation]:
    """List every content row and field that embeds ``url``."""
    if not url:
        return []
    index = await build_reference_index(db_session)
    return usage_for_url(index, url)


async def media_stats(db_session: AsyncSession) -> MediaStats:
    """Count library records, how many are referenced, and where."""
    result = await db_session.execute(select(MediaAsset.url, MediaAsset.media_type))
    rows = result.all()
    index = await build_reference_index(db_session)

    stats = MediaStats(total=len(rows))
    for url, media_type in rows:
        stats.by_media_type[media_type] = stats.by_media_type.get(media_type, 0) + 1

        locations = index.locations(url)
        if locations:
            stats.used += 1
        else:
            stats.unused += 1
        for location in locations:
            usage_type = location.reference.usage_type
            stats.by_type[usage_type] = stats.by_type.get(usage_type, 0) + 1

    return stats


async def list_unused_media(db_session: AsyncSession) -> list[MediaAsset]:
    """Unprotected records that no content row references, oldest first."""
    index = await build_reference_index(db_session)
    result = await db_session.execute(
        select(MediaAsset)
        .where(MediaAsset.is_protected.is_(False))
        .order_by(MediaAsset.created_at, MediaAsset.id)
    )
    return [asset for asset in result.scalars().all() if not index.is_referenced(asset.url)]
