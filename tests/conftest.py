"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import yaml
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hotelsite.config import get_settings
from hotelsite.db.base import Base
from hotelsite.db.models import MediaAsset
from hotelsite.lib.hooks import hooks

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def temp_app_yaml(tmp_path):
    """Create a temporary app.yaml file for testing."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        return config_path

    return _create_config


@pytest.fixture(autouse=True)
def clean_hooks():
    """Start and finish every test with an empty hook registry."""
    hooks.clear()
    yield
    hooks.clear()


@pytest.fixture
def clean_settings():
    """Drop the cached Settings around a test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_request_factory():
    """Factory fixture that returns mock requests with a session dict."""
    def _make(session=None):
        request = MagicMock()
        request.session = session if session is not None else {}
        return request
    return _make


@pytest.fixture
async def engine():
    import hotelsite.db.models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(engine):
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def add_media(db_session):
    """Insert a media record created ``age`` minutes after BASE_TIME."""
    async def _add(
        url: str,
        content_hash: str | None = None,
        byte_size: int | None = None,
        age: int = 0,
        protected: bool = False,
        **fields,
    ) -> MediaAsset:
        asset = MediaAsset(
            url=url,
            title=fields.pop("title", url.rsplit("/", 1)[-1]),
            content_hash=content_hash,
            byte_size=byte_size,
            is_protected=protected,
            created_at=BASE_TIME + timedelta(minutes=age),
            **fields,
        )
        db_session.add(asset)
        await db_session.flush()
        return asset

    return _add


@pytest.fixture
def add_row(db_session):
    """Insert any content row."""
    async def _add(model, **fields):
        row = model(**fields)
        db_session.add(row)
        await db_session.flush()
        return row

    return _add


@pytest.fixture
def read_column(db_session):
    """Read one column straight from the database, bypassing the identity map."""
    async def _read(column, row_id):
        model = column.class_
        result = await db_session.execute(select(column).where(model.id == row_id))
        return result.scalar_one_or_none()

    return _read


@pytest.fixture
def media_ids(db_session):
    """Ids of every media record currently stored."""
    async def _ids() -> set:
        result = await db_session.execute(select(MediaAsset.id))
        return set(result.scalars().all())

    return _ids
