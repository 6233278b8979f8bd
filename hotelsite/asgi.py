"""ASGI application factory."""

import logging

from advanced_alchemy.extensions.litestar import SQLAlchemyPlugin
from litestar import Litestar, get
from litestar.config.compression import CompressionConfig
from litestar.datastructures import State
from litestar.exceptions import HTTPException

from hotelsite.admin import AdminAuthController, MediaAdminController
from hotelsite.app_config import build_db_config, build_session_config, build_template_config
from hotelsite.config import Settings, get_settings
from hotelsite.lib import observability
from hotelsite.lib.exceptions import (
    http_exception_handler,
    internal_server_error_handler,
    protected_media_handler,
)
from hotelsite.lib.media_errors import ProtectedMediaError

logger = logging.getLogger(__name__)


@get("/health", sync_to_thread=False)
def health() -> dict[str, str]:
    return {"status": "ok"}


def create_app(settings: Settings | None = None, create_all: bool = False) -> Litestar:
    """Create and configure the Litestar application.

    ``create_all`` creates missing tables on startup; deployments normally
    run ``hotelsite db upgrade head`` instead.
    """
    settings = settings or get_settings()
    observability.configure(settings)
    observability.instrument_httpx()

    if not settings.admin_token:
        logger.warning("admin_token is not set; the admin back-office will refuse token logins")

    return Litestar(
        route_handlers=[health, AdminAuthController, MediaAdminController],
        plugins=[SQLAlchemyPlugin(config=build_db_config(settings, create_all=create_all))],
        middleware=[build_session_config(settings).middleware],
        template_config=build_template_config(),
        compression_config=CompressionConfig(backend="gzip"),
        exception_handlers={
            ProtectedMediaError: protected_media_handler,
            HTTPException: http_exception_handler,
            Exception: internal_server_error_handler,
        },
        state=State({"settings": settings}),
        debug=settings.debug,
    )
