"""Registry of content fields that embed media URLs.

Content rows copy media URLs instead of holding a foreign key, so every
place a URL can live is declared here together with its shape:

- ``SCALAR``: the column holds one URL string
- ``URL_LIST``: a JSON list of URL strings
- ``ITEM_LIST``: a JSON list of objects exposing the URL under ``item_key``
  (bare strings in the list are matched as well)

The helpers below are pure; they never touch the database.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from hotelsite.db.models import (
    Activity,
    BlogPost,
    Meal,
    Package,
    Page,
    RoomType,
    SpaService,
)


class FieldShape(str, Enum):
    SCALAR = "scalar"
    URL_LIST = "url_list"
    ITEM_LIST = "item_list"


@dataclass(frozen=True)
class MediaReference:
    """One (table, field) combination that may hold a media URL."""

    model: type
    field: str
    shape: FieldShape
    usage_type: str
    label_field: str = "title"
    item_key: str = "url"

    @property
    def table(self) -> str:
        return self.model.__tablename__

    @property
    def column(self):
        return getattr(self.model, self.field)

    @property
    def label_column(self):
        return getattr(self.model, self.label_field)

    def __str__(self) -> str:
        return f"{self.table}.{self.field}"


REFERENCE_FIELDS: tuple[MediaReference, ...] = (
    MediaReference(Page, "hero_image", FieldShape.SCALAR, "page"),
    MediaReference(Page, "og_image", FieldShape.SCALAR, "page"),
    MediaReference(Page, "hero_gallery", FieldShape.ITEM_LIST, "page"),
    MediaReference(BlogPost, "featured_image", FieldShape.SCALAR, "blog"),
    MediaReference(RoomType, "hero_image", FieldShape.SCALAR, "room", label_field="name"),
    MediaReference(RoomType, "gallery", FieldShape.URL_LIST, "room", label_field="name"),
    MediaReference(Package, "featured_image", FieldShape.SCALAR, "package"),
    MediaReference(Package, "banner_image", FieldShape.SCALAR, "package"),
    MediaReference(Package, "gallery", FieldShape.URL_LIST, "package"),
    MediaReference(Activity, "image", FieldShape.SCALAR, "activity"),
    MediaReference(Activity, "media_urls", FieldShape.ITEM_LIST, "activity"),
    MediaReference(SpaService, "image", FieldShape.SCALAR, "spa"),
    MediaReference(SpaService, "media_urls", FieldShape.ITEM_LIST, "spa"),
    MediaReference(Meal, "featured_media", FieldShape.SCALAR, "meal"),
    MediaReference(Meal, "media_urls", FieldShape.ITEM_LIST, "meal"),
)

USAGE_TYPES: tuple[str, ...] = ("page", "blog", "room", "package", "activity", "spa", "meal")


def _item_url(item: Any, item_key: str) -> str | None:
    if isinstance(item, str):
        return item
    if isinstance(item, Mapping):
        url = item.get(item_key)
        if isinstance(url, str):
            return url
    return None


def iter_urls(value: Any, shape: FieldShape, item_key: str = "url") -> Iterator[str]:
    """Yield every URL held by a field value, in order."""
    if value is None:
        return
    if shape is FieldShape.SCALAR:
        if isinstance(value, str) and value:
            yield value
        return
    if not isinstance(value, list):
        return
    for item in value:
        if shape is FieldShape.URL_LIST:
            if isinstance(item, str) and item:
                yield item
        else:
            url = _item_url(item, item_key)
            if url:
                yield url


def contains_url(value: Any, shape: FieldShape, url: str, item_key: str = "url") -> bool:
    return any(found == url for found in iter_urls(value, shape, item_key))


def replace_urls(
    value: Any,
    shape: FieldShape,
    replacements: Mapping[str, str],
    item_key: str = "url",
) -> tuple[Any, int]:
    """Swap URLs according to ``replacements``.

    Returns ``(new_value, count)``. Lists are always rebuilt so the ORM sees
    a new object; list order and untouched items are kept as-is, and a
    replaced item object keeps all its other keys.
    """
    if value is None:
        return value, 0

    if shape is FieldShape.SCALAR:
        if isinstance(value, str) and value in replacements:
            return replacements[value], 1
        return value, 0

    if not isinstance(value, list):
        return value, 0

    count = 0
    new_items = []
    for item in value:
        if isinstance(item, str):
            if item in replacements:
                new_items.append(replacements[item])
                count += 1
                continue
        elif shape is FieldShape.ITEM_LIST and isinstance(item, Mapping):
            url = item.get(item_key)
            if isinstance(url, str) and url in replacements:
                new_items.append({**item, item_key: replacements[url]})
                count += 1
                continue
        new_items.append(item)

    return new_items, count
