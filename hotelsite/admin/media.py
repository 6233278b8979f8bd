"""Media library admin controller."""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from litestar import Controller, Request, get, post
from litestar.enums import RequestEncodingType
from litestar.exceptions import NotAuthorizedException, NotFoundException
from litestar.params import Body
from litestar.response import Redirect, Response
from litestar.response import Template as TemplateResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from hotelsite.auth.guards import SESSION_ADMIN_KEY, admin_guard, token_matches
from hotelsite.config import Settings
from hotelsite.db.services.backfill_service import backfill_media_hashes
from hotelsite.db.services.dedup_service import (
    load_media_records,
    merge_duplicates,
    plan_duplicates,
)
from hotelsite.db.services.media_service import (
    count_media,
    delete_media,
    get_media,
    list_media,
    register_media,
)
from hotelsite.db.services.usage_service import find_media_usage, list_unused_media, media_stats
from hotelsite.lib.flash import flash_error, flash_success, flash_warning, get_flash_messages
from hotelsite.lib.http import create_download_client


class MediaRegistration(BaseModel):
    url: str
    title: str = ""
    caption: str = ""
    category: str = "hotel"
    media_type: str = "image"
    source_type: str | None = None
    protected_key: str | None = None


def _serialize_media(asset) -> dict[str, Any]:
    return {
        "id": str(asset.id),
        "url": asset.url,
        "title": asset.title,
        "category": asset.category,
        "media_type": asset.media_type,
        "source_type": asset.source_type,
        "content_hash": asset.content_hash,
        "byte_size": asset.byte_size,
        "is_protected": asset.is_protected,
        "created_at": asset.created_at.isoformat() if asset.created_at else None,
    }


class AdminAuthController(Controller):
    """Exchange the admin token for a session flag."""

    path = "/admin"

    @post("/login")
    async def login(
        self,
        request: Request,
        data: Annotated[dict[str, str], Body(media_type=RequestEncodingType.URL_ENCODED)],
    ) -> Redirect:
        settings: Settings = request.app.state.settings
        if not token_matches(data.get("token"), settings.admin_token):
            raise NotAuthorizedException("Invalid admin token")
        request.session[SESSION_ADMIN_KEY] = True
        return Redirect(path="/admin/media")

    @post("/logout")
    async def logout(self, request: Request) -> Redirect:
        request.session.pop(SESSION_ADMIN_KEY, None)
        return Redirect(path="/")


class MediaAdminController(Controller):
    """Controller for the admin media library."""

    path = "/admin/media"
    guards = [admin_guard]

    @get("/")
    async def media_library(
        self,
        request: Request,
        db_session: AsyncSession,
        page: int = 1,
        media_type: str | None = None,
        source_type: str | None = None,
        category: str | None = None,
        search: str | None = None,
        usage: str | None = None,
    ) -> TemplateResponse:
        """Browse media records."""
        settings: Settings = request.app.state.settings
        per_page = settings.media.library_page_size
        offset = (max(page, 1) - 1) * per_page

        assets = await list_media(
            db_session,
            media_type=media_type,
            source_type=source_type,
            category=category,
            search=search,
            usage=usage,
            limit=per_page,
            offset=offset,
        )
        total = await count_media(
            db_session,
            media_type=media_type,
            source_type=source_type,
            category=category,
            search=search,
            usage=usage,
        )
        total_pages = max(1, (total + per_page - 1) // per_page)

        return TemplateResponse(
            "admin/media/library.html",
            context={
                "flash_messages": get_flash_messages(request),
                "assets": assets,
                "page": page,
                "total_pages": total_pages,
                "total": total,
                "filters": {
                    "media_type": media_type,
                    "source_type": source_type,
                    "category": category,
                    "search": search,
                    "usage": usage,
                },
                "site_name": settings.site_name,
            },
        )

    @post("/")
    async def register(self, db_session: AsyncSession, data: MediaRegistration) -> Response:
        """Add a media record for an already stored file."""
        try:
            asset = await register_media(db_session, **data.model_dump())
        except ValueError as exc:
            return Response(content={"error": str(exc)}, status_code=400)
        return Response(content=_serialize_media(asset), status_code=201)

    @get("/stats")
    async def stats(self, db_session: AsyncSession) -> dict[str, Any]:
        return (await media_stats(db_session)).to_dict()

    @get("/unused")
    async def unused(self, db_session: AsyncSession) -> list[dict[str, Any]]:
        return [_serialize_media(asset) for asset in await list_unused_media(db_session)]

    @get("/usage")
    async def usage(self, db_session: AsyncSession, url: str) -> list[dict[str, str]]:
        """Where a media URL is used across the content tables."""
        return [vars(location) for location in await find_media_usage(db_session, url)]

    @get("/duplicates")
    async def duplicates(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        """Preview duplicate groups and which record each would keep."""
        groups = plan_duplicates(await load_media_records(db_session))
        return TemplateResponse(
            "admin/media/duplicates.html",
            context={
                "flash_messages": get_flash_messages(request),
                "groups": groups,
                "reclaimable_bytes": sum(group.reclaimable_bytes for group in groups),
                "site_name": request.app.state.settings.site_name,
            },
        )

    @post("/duplicates/merge")
    async def merge(self, request: Request, db_session: AsyncSession) -> Redirect:
        """Merge every duplicate group and flash the summary."""
        report = await merge_duplicates(db_session)

        if not report.groups_found:
            flash_success(request, "No duplicate media found.")
        elif report.failed_groups:
            failed = [o for o in report.outcomes if not o.succeeded]
            flash_warning(
                request,
                report.summary(),
                details=[f"{o.group_id}: {o.status.value}" for o in failed],
            )
        else:
            flash_success(request, report.summary())

        return Redirect(path="/admin/media/duplicates")

    @post("/backfill-hashes")
    async def backfill_hashes(self, request: Request, db_session: AsyncSession) -> dict[str, Any]:
        """Hash one batch of media records that have no content hash yet."""
        settings: Settings = request.app.state.settings
        async with create_download_client(settings) as client:
            result = await backfill_media_hashes(
                db_session, client, batch_size=settings.media.backfill_batch_size
            )
        return result.to_dict()

    @get("/{media_id:uuid}")
    async def detail(self, db_session: AsyncSession, media_id: UUID) -> dict[str, Any]:
        asset = await get_media(db_session, media_id)
        if asset is None:
            raise NotFoundException(f"Media {media_id} not found")
        usage = await find_media_usage(db_session, asset.url)
        return {**_serialize_media(asset), "usage": [vars(location) for location in usage]}

    @post("/{media_id:uuid}/delete")
    async def delete(self, request: Request, db_session: AsyncSession, media_id: UUID) -> Redirect:
        """Delete a media record. Protected records raise ProtectedMediaError (409)."""
        deleted = await delete_media(db_session, media_id)

        if deleted:
            flash_success(request, "Media deleted.")
        else:
            flash_error(request, "Media not found.")

        return Redirect(path="/admin/media")
