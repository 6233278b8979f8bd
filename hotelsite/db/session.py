"""Database sessions outside the request cycle (CLI commands, scripts)."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hotelsite.config import Settings
from hotelsite.db.base import Base
from hotelsite.lib import observability


@asynccontextmanager
async def session_scope(settings: Settings, create_all: bool = False) -> AsyncIterator[AsyncSession]:
    """Yield a session bound to a fresh engine and dispose the engine afterwards."""
    engine = create_async_engine(settings.db.url, echo=settings.db.echo)
    observability.instrument_sqlalchemy(engine)
    try:
        if create_all:
            import hotelsite.db.models  # noqa: F401

            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with session_maker() as session:
            yield session
    finally:
        await engine.dispose()
