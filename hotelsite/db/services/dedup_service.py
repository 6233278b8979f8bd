"""Duplicate media merging.

Records whose files are byte-identical (same content hash and size) are
collapsed onto one canonical record:

1. index every hashed record by ``(content_hash, byte_size)``
2. per group, pick the canonical record
3. repoint every content field holding a duplicate's URL to the canonical URL
4. verify nothing references the duplicates any more
5. delete the duplicates

Steps 3-5 of a group run in a single transaction; a failure anywhere rolls
back the whole group so content never points at a deleted record. Groups
are processed one at a time and a failed group does not stop the run.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotelsite.db.models import MediaAsset
from hotelsite.db.services.reference_index import (
    ReferenceIndex,
    build_reference_index,
    find_references,
)
from hotelsite.lib.hooks import AFTER_DUPLICATE_MERGE, BEFORE_DUPLICATE_MERGE, hooks
from hotelsite.lib.media_errors import (
    ProtectedMediaError,
    ReferenceRewriteError,
    ReferenceVerificationError,
)
from hotelsite.lib.media_refs import MediaReference, replace_urls
from hotelsite.lib import observability

logger = logging.getLogger(__name__)

GroupKey = tuple[str, int | None]


@dataclass(frozen=True)
class MediaRecord:
    """Plain snapshot of the MediaAsset columns the merge needs."""

    id: UUID
    url: str
    content_hash: str | None
    byte_size: int | None
    created_at: datetime
    is_protected: bool = False

    @classmethod
    def from_asset(cls, asset: MediaAsset) -> MediaRecord:
        return cls(
            id=asset.id,
            url=asset.url,
            content_hash=asset.content_hash,
            byte_size=asset.byte_size,
            created_at=asset.created_at,
            is_protected=asset.is_protected,
        )


def _age_key(record: MediaRecord) -> tuple[datetime, str]:
    return (record.created_at, str(record.id))


@dataclass
class DuplicateGroup:
    """Records sharing one fingerprint, split into survivor and removals."""

    key: GroupKey
    canonical: MediaRecord
    to_delete: list[MediaRecord]
    retained: list[MediaRecord] = field(default_factory=list)

    @property
    def content_hash(self) -> str:
        return self.key[0]

    @property
    def members(self) -> list[MediaRecord]:
        return sorted([self.canonical, *self.to_delete, *self.retained], key=_age_key)

    @property
    def replacements(self) -> dict[str, str]:
        """Map of duplicate URL to canonical URL (URLs equal to canonical are skipped)."""
        return {
            record.url: self.canonical.url
            for record in self.to_delete
            if record.url != self.canonical.url
        }

    @property
    def reclaimable_bytes(self) -> int:
        return sum(record.byte_size or 0 for record in self.to_delete)


class GroupStatus(str, Enum):
    PENDING = "pending"
    REWRITING = "rewriting"
    REWRITE_FAILED = "rewrite_failed"
    REWRITE_COMPLETE = "rewrite_complete"
    VERIFY_FAILED = "verify_failed"
    DELETING = "deleting"
    DELETE_FAILED = "delete_failed"
    DONE = "done"


@dataclass
class Rewrite:
    table: str
    field: str
    row_id: UUID
    replaced: int


@dataclass
class GroupOutcome:
    content_hash: str
    canonical_id: UUID
    canonical_url: str
    status: GroupStatus = GroupStatus.PENDING
    byte_size: int | None = None
    deleted_ids: list[UUID] = field(default_factory=list)
    bytes_reclaimed: int = 0
    rewrites: list[Rewrite] = field(default_factory=list)
    error: str | None = None

    @property
    def group_id(self) -> str:
        """Hash and size, the same pair the records were grouped on."""
        if self.byte_size is None:
            return self.content_hash
        return f"{self.content_hash}:{self.byte_size}"

    @property
    def succeeded(self) -> bool:
        return self.status is GroupStatus.DONE

    @property
    def references_rewritten(self) -> int:
        return sum(rewrite.replaced for rewrite in self.rewrites)


@dataclass
class DedupReport:
    """Totals for one merge run."""

    groups_found: int = 0
    outcomes: list[GroupOutcome] = field(default_factory=list)

    def record(self, outcome: GroupOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def groups_merged(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def duplicates_removed(self) -> int:
        return sum(len(o.deleted_ids) for o in self.outcomes if o.succeeded)

    @property
    def bytes_reclaimed(self) -> int:
        return sum(o.bytes_reclaimed for o in self.outcomes if o.succeeded)

    @property
    def references_rewritten(self) -> int:
        return sum(o.references_rewritten for o in self.outcomes if o.succeeded)

    @property
    def failed_groups(self) -> list[str]:
        return [o.group_id for o in self.outcomes if not o.succeeded]

    def summary(self) -> str:
        text = (
            f"Merged {self.groups_merged} of {self.groups_found} duplicate groups, "
            f"removed {self.duplicates_removed} records, "
            f"rewrote {self.references_rewritten} references, "
            f"reclaimed {self.bytes_reclaimed} bytes"
        )
        if self.failed_groups:
            text += f"; {len(self.failed_groups)} groups failed"
        return text

    def to_dict(self) -> dict:
        return {
            "groups_found": self.groups_found,
            "groups_merged": self.groups_merged,
            "duplicates_removed": self.duplicates_removed,
            "references_rewritten": self.references_rewritten,
            "bytes_reclaimed": self.bytes_reclaimed,
            "failed_groups": self.failed_groups,
            "groups": [
                {
                    "content_hash": o.content_hash,
                    "byte_size": o.byte_size,
                    "canonical_id": str(o.canonical_id),
                    "canonical_url": o.canonical_url,
                    "status": o.status.value,
                    "deleted_ids": [str(i) for i in o.deleted_ids],
                    "bytes_reclaimed": o.bytes_reclaimed,
                    "references_rewritten": o.references_rewritten,
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }


async def load_media_records(db_session: AsyncSession) -> list[MediaRecord]:
    """Snapshot every media record. Never filtered, so cross-category duplicates are seen."""
    result = await db_session.execute(
        select(
            MediaAsset.id,
            MediaAsset.url,
            MediaAsset.content_hash,
            MediaAsset.byte_size,
            MediaAsset.created_at,
            MediaAsset.is_protected,
        )
    )
    return [MediaRecord(*row) for row in result.all()]


def build_hash_index(records: Iterable[MediaRecord]) -> dict[GroupKey, list[MediaRecord]]:
    """Group records by ``(content_hash, byte_size)``, keeping only groups of two or more.

    Records without a hash are skipped; members are ordered oldest first.
    """
    buckets: dict[GroupKey, list[MediaRecord]] = defaultdict(list)
    for record in records:
        if not record.content_hash:
            continue
        buckets[(record.content_hash, record.byte_size)].append(record)

    return {
        key: sorted(members, key=_age_key)
        for key, members in buckets.items()
        if len(members) >= 2
    }


def select_canonical(key: GroupKey, members: Iterable[MediaRecord]) -> DuplicateGroup:
    """Choose the surviving record of a group.

    The oldest protected member wins when there is one, since it cannot be
    deleted anyway; otherwise the oldest member wins. Remaining protected
    members are retained, everything else is marked for deletion.
    """
    ordered = sorted(members, key=_age_key)
    if not ordered:
        raise ValueError("Cannot select a canonical record from an empty group")

    protected = [record for record in ordered if record.is_protected]
    canonical = protected[0] if protected else ordered[0]

    others = [record for record in ordered if record.id != canonical.id]
    return DuplicateGroup(
        key=key,
        canonical=canonical,
        to_delete=[record for record in others if not record.is_protected],
        retained=[record for record in others if record.is_protected],
    )


def plan_duplicates(records: Iterable[MediaRecord]) -> list[DuplicateGroup]:
    """Duplicate groups with their canonical choice, oldest canonical first."""
    groups = [select_canonical(key, members) for key, members in build_hash_index(records).items()]
    groups = [group for group in groups if group.to_delete]
    groups.sort(key=lambda group: (_age_key(group.canonical), group.content_hash))
    return groups


async def rewrite_references(
    db_session: AsyncSession,
    replacements: Mapping[str, str],
    index: ReferenceIndex,
) -> list[Rewrite]:
    """Repoint every indexed reference to a key of ``replacements``.

    Tables are handled one at a time and flushed so a failure is attributed
    to the field that caused it. Nothing is committed here.
    """
    rows_by_reference: dict[MediaReference, set[UUID]] = defaultdict(set)
    for url in replacements:
        for location in index.locations(url):
            rows_by_reference[location.reference].add(location.row_id)

    rewrites: list[Rewrite] = []
    for reference, row_ids in rows_by_reference.items():
        try:
            result = await db_session.execute(
                select(reference.model).where(reference.model.id.in_(row_ids))
            )
            for row in result.scalars().all():
                value = getattr(row, reference.field)
                new_value, replaced = replace_urls(
                    value, reference.shape, replacements, reference.item_key
                )
                if not replaced:
                    continue
                setattr(row, reference.field, new_value)
                rewrites.append(Rewrite(reference.table, reference.field, row.id, replaced))
                logger.debug("Rewrote %d URL(s) in %s#%s", replaced, reference, row.id)
            await db_session.flush()
        except Exception as exc:
            raise ReferenceRewriteError(str(reference), sorted(row_ids, key=str), exc) from exc

    return rewrites


async def rewrite_url(
    db_session: AsyncSession,
    dup_url: str,
    canonical_url: str,
    index: ReferenceIndex | None = None,
) -> list[Rewrite]:
    """Repoint every reference of one URL to another. Nothing is committed."""
    if dup_url == canonical_url:
        return []
    if index is None:
        index = await build_reference_index(db_session)
    return await rewrite_references(db_session, {dup_url: canonical_url}, index)


async def verify_unreferenced(db_session: AsyncSession, urls: Iterable[str]) -> None:
    """Raise ReferenceVerificationError if any content row still holds one of ``urls``."""
    remaining = await find_references(db_session, urls)
    if remaining:
        raise ReferenceVerificationError(
            {url: [location.describe() for location in locations] for url, locations in remaining.items()}
        )


async def commit_deletions(db_session: AsyncSession, records: list[MediaRecord]) -> list[UUID]:
    """Delete the given records in one statement. Nothing is committed here.

    The whole batch is refused if any record is protected in the database,
    whatever the caller believed when it selected them.
    """
    ids = [record.id for record in records]
    if not ids:
        return []

    result = await db_session.execute(
        select(MediaAsset.id).where(MediaAsset.id.in_(ids), MediaAsset.is_protected.is_(True))
    )
    protected = list(result.scalars().all())
    if protected:
        raise ProtectedMediaError(protected)

    await db_session.execute(delete(MediaAsset).where(MediaAsset.id.in_(ids)))
    return ids


async def merge_group(
    db_session: AsyncSession,
    group: DuplicateGroup,
    index: ReferenceIndex,
) -> GroupOutcome:
    """Rewrite, verify and delete one group inside a single transaction."""
    outcome = GroupOutcome(
        content_hash=group.content_hash,
        canonical_id=group.canonical.id,
        canonical_url=group.canonical.url,
        byte_size=group.key[1],
    )
    replacements = group.replacements

    with observability.span(
        "media.dedupe.group", content_hash=group.content_hash, members=len(group.members)
    ):
        try:
            await hooks.do_action(BEFORE_DUPLICATE_MERGE, group)

            outcome.status = GroupStatus.REWRITING
            outcome.rewrites = await rewrite_references(db_session, replacements, index)
            outcome.status = GroupStatus.REWRITE_COMPLETE

            await verify_unreferenced(db_session, replacements)

            outcome.status = GroupStatus.DELETING
            deleted = await commit_deletions(db_session, group.to_delete)
            await db_session.commit()
        except Exception as exc:
            await db_session.rollback()
            outcome.status = {
                GroupStatus.PENDING: GroupStatus.REWRITE_FAILED,
                GroupStatus.REWRITING: GroupStatus.REWRITE_FAILED,
                GroupStatus.REWRITE_COMPLETE: GroupStatus.VERIFY_FAILED,
                GroupStatus.DELETING: GroupStatus.DELETE_FAILED,
            }[outcome.status]
            outcome.rewrites = []
            outcome.error = str(exc)
            logger.warning(
                "Duplicate group %s failed (%s); changes rolled back",
                group.content_hash,
                outcome.status.value,
                exc_info=True,
            )
            return outcome

    for dup_url, canonical_url in replacements.items():
        index.repoint(dup_url, canonical_url)

    outcome.status = GroupStatus.DONE
    outcome.deleted_ids = deleted
    outcome.bytes_reclaimed = group.reclaimable_bytes
    observability.info(
        "Merged duplicate group {content_hash}",
        content_hash=group.content_hash,
        canonical_url=group.canonical.url,
        deleted=len(deleted),
        bytes_reclaimed=outcome.bytes_reclaimed,
    )

    try:
        await hooks.do_action(AFTER_DUPLICATE_MERGE, outcome)
    except Exception:
        logger.warning("after_duplicate_merge hook failed for %s", group.content_hash, exc_info=True)
    return outcome


async def merge_duplicates(
    db_session: AsyncSession,
    records: list[MediaRecord] | None = None,
) -> DedupReport:
    """Merge every duplicate group and report the totals.

    Safe to re-run: once merged, no groups remain and nothing is written.
    """
    if records is None:
        records = await load_media_records(db_session)

    groups = plan_duplicates(records)
    report = DedupReport(groups_found=len(groups))
    if not groups:
        logger.info("No duplicate media found")
        return report

    with observability.span("media.dedupe", groups=len(groups)):
        index = await build_reference_index(db_session)
        # End the read transaction so each group starts its own
        await db_session.commit()

        for group in groups:
            report.record(await merge_group(db_session, group, index))

    logger.info(report.summary())
    return report
