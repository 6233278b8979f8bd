"""Application configuration helpers.

Database, session and template configuration each live in their own
function so asgi.py only wires them together.
"""

import hashlib
import os
from pathlib import Path

from advanced_alchemy.config import EngineConfig
from advanced_alchemy.extensions.litestar import AsyncSessionConfig, SQLAlchemyAsyncConfig
from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.middleware.session.client_side import CookieBackendConfig
from litestar.template import TemplateConfig

from hotelsite.config import Settings
from hotelsite.db.base import Base


def build_db_config(settings: Settings, create_all: bool = False) -> SQLAlchemyAsyncConfig:
    """Build the SQLAlchemy async database configuration."""
    if "sqlite" in settings.db.url:
        engine_config = EngineConfig(echo=settings.db.echo)
    else:
        engine_config = EngineConfig(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.pool_overflow,
            pool_timeout=settings.db.pool_timeout,
            echo=settings.db.echo,
        )

    return SQLAlchemyAsyncConfig(
        connection_string=settings.db.url,
        metadata=Base.metadata,
        create_all=create_all,
        session_config=AsyncSessionConfig(expire_on_commit=False),
        engine_config=engine_config,
    )


def build_session_config(settings: Settings) -> CookieBackendConfig:
    """Build the client-side encrypted session configuration."""
    # Hash the secret key to get exactly 32 bytes
    session_secret = hashlib.sha256(settings.secret_key.encode()).digest()
    return CookieBackendConfig(
        secret=session_secret,
        max_age=60 * 60 * 8,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
    )


def _filesizeformat(num_bytes: int | None) -> str:
    size = float(num_bytes or 0)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def build_template_config() -> TemplateConfig:
    """Jinja templates: ./templates overrides the packaged ones."""
    working_dir_templates = Path(os.getcwd()) / "templates"
    template_dir = Path(__file__).parent / "templates"

    def configure_template_engine(engine):
        engine.engine.filters.update({"filesize": _filesizeformat})

    return TemplateConfig(
        directory=[working_dir_templates, template_dir],
        engine=JinjaTemplateEngine,
        engine_callback=configure_template_engine,
    )
