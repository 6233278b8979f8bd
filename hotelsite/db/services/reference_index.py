"""In-memory index from media URL to the content rows that embed it."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotelsite.lib.hooks import MEDIA_REFERENCE_FIELDS, hooks
from hotelsite.lib.media_refs import REFERENCE_FIELDS, MediaReference, iter_urls


@dataclass(frozen=True)
class ReferenceLocation:
    """A single (table, row, field) holding a media URL."""

    reference: MediaReference
    row_id: UUID
    label: str

    def describe(self) -> str:
        return f"{self.reference}#{self.row_id}"


class ReferenceIndex:
    """Maps each URL to every location that holds it.

    Built from one scan of the content tables so callers can look up
    referencing rows instead of string-scanning every table per URL.
    """

    def __init__(self) -> None:
        self._by_url: dict[str, list[ReferenceLocation]] = defaultdict(list)

    def add(self, url: str, location: ReferenceLocation) -> None:
        if location not in self._by_url[url]:
            self._by_url[url].append(location)

    def locations(self, url: str) -> list[ReferenceLocation]:
        return list(self._by_url.get(url, ()))

    def is_referenced(self, url: str) -> bool:
        return bool(self._by_url.get(url))

    def urls(self) -> set[str]:
        return {url for url, locations in self._by_url.items() if locations}

    def repoint(self, old_url: str, new_url: str) -> None:
        """Move every location of ``old_url`` under ``new_url``."""
        for location in self._by_url.pop(old_url, []):
            self.add(new_url, location)

    def __len__(self) -> int:
        return sum(len(locations) for locations in self._by_url.values())


async def get_reference_fields() -> tuple[MediaReference, ...]:
    """Registered reference fields, extensible through the MEDIA_REFERENCE_FIELDS filter."""
    return tuple(await hooks.apply_filters(MEDIA_REFERENCE_FIELDS, REFERENCE_FIELDS))


async def build_reference_index(
    db_session: AsyncSession,
    references: Iterable[MediaReference] | None = None,
) -> ReferenceIndex:
    """Scan every reference field once and index the URLs found."""
    if references is None:
        references = await get_reference_fields()

    index = ReferenceIndex()
    for reference in references:
        result = await db_session.execute(
            select(reference.model.id, reference.label_column, reference.column)
        )
        for row_id, label, value in result.all():
            for url in iter_urls(value, reference.shape, reference.item_key):
                index.add(url, ReferenceLocation(reference, row_id, label or ""))

    return index


async def find_references(
    db_session: AsyncSession,
    urls: Iterable[str],
) -> dict[str, list[ReferenceLocation]]:
    """Fresh scan: return the locations still holding any of ``urls``."""
    wanted = set(urls)
    if not wanted:
        return {}
    index = await build_reference_index(db_session)
    return {url: index.locations(url) for url in wanted if index.is_referenced(url)}
