"""Content-hash backfill for media records created before hashing existed."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from uuid import UUID

import httpx
from sqlalchemy import func, not_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotelsite.db.models import MediaAsset, SourceType
from hotelsite.lib.hashing import compute_content_hash, filename_from_url
from hotelsite.lib.hooks import AFTER_HASH_BACKFILL, hooks
from hotelsite.lib.observability import span

logger = logging.getLogger(__name__)

# Files we cannot (or must not) download
SKIPPED_SOURCES = frozenset({SourceType.HARDCODED.value, SourceType.EXTERNAL.value})


@dataclass
class BackfillError:
    id: str
    url: str
    error: str


@dataclass
class BackfillResult:
    processed: int = 0
    skipped: int = 0
    errors: list[BackfillError] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not (self.processed or self.skipped or self.errors):
            return "All media already has hashes"
        return (
            f"Backfill complete: {self.processed} processed, "
            f"{self.skipped} skipped, {len(self.errors)} errors"
        )

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "processed": self.processed,
            "skipped": self.skipped,
            "errors": len(self.errors),
            "error_details": [asdict(e) for e in self.errors],
        }


async def backfill_media_hashes(
    db_session: AsyncSession,
    client: httpx.AsyncClient,
    batch_size: int = 100,
    exclude_ids: Iterable[UUID] = (),
) -> BackfillResult:
    """Download up to ``batch_size`` unhashed files and record hash, size and filename.

    Relative URLs are resolved against the client's ``base_url``. A failed
    download is recorded and the batch continues. Records that can never be
    downloaded are counted as skipped but never take a slot in the batch, and
    ``exclude_ids`` lets a caller step past records that already failed.
    """
    unhashed = MediaAsset.content_hash.is_(None)
    not_downloadable = or_(MediaAsset.source_type.in_(sorted(SKIPPED_SOURCES)), MediaAsset.url == "")

    query = (
        select(MediaAsset)
        .where(unhashed, not_(not_downloadable))
        .order_by(MediaAsset.created_at, MediaAsset.id)
        .limit(batch_size)
    )
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        query = query.where(MediaAsset.id.not_in(exclude_ids))
    assets = list((await db_session.execute(query)).scalars().all())

    skipped = await db_session.execute(
        select(func.count()).select_from(MediaAsset).where(unhashed, not_downloadable)
    )

    outcome = BackfillResult(skipped=skipped.scalar() or 0)
    with span("media.backfill", batch_size=batch_size, candidates=len(assets)):
        for asset in assets:
            try:
                response = await client.get(asset.url)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.warning("Could not download media %s from %s: %s", asset.id, asset.url, exc)
                outcome.errors.append(BackfillError(str(asset.id), asset.url, str(exc)))
                continue

            data = response.content
            asset.content_hash = compute_content_hash(data)
            asset.byte_size = len(data)
            asset.original_filename = filename_from_url(asset.url)
            outcome.processed += 1
            logger.debug("Hashed media %s (%d bytes)", asset.id, len(data))

        await db_session.commit()
    logger.info(outcome.message)

    await hooks.do_action(AFTER_HASH_BACKFILL, outcome)
    return outcome


async def backfill_all_media_hashes(
    db_session: AsyncSession,
    client: httpx.AsyncClient,
    batch_size: int = 100,
) -> BackfillResult:
    """Run batches until every downloadable record is hashed or has failed once."""
    total = BackfillResult()
    failed: list[UUID] = []
    while True:
        batch = await backfill_media_hashes(db_session, client, batch_size, exclude_ids=failed)
        total.processed += batch.processed
        total.skipped = batch.skipped
        total.errors.extend(batch.errors)
        failed.extend(UUID(error.id) for error in batch.errors)
        if not (batch.processed or batch.errors):
            return total
