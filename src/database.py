"""Database connection and session management."""

import asyncio
import logging
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from src.config import settings

logger = logging.getLogger(__name__)

_url = make_url(settings.database_url)
IS_SQLITE = _url.get_backend_name() == "sqlite"

if IS_SQLITE and _url.database not in (None, "", ":memory:"):
    Path(_url.database).parent.mkdir(parents=True, exist_ok=True)
    logger.warning(
        "File-backed SQLite at %s; event volume grows quickly. "
        "Set METRICS_CORE_DATABASE_URL to a Postgres URL for production.",
        _url.database,
    )

engine = create_async_engine(settings.database_url, echo=settings.debug)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        yield session


async def init_db():
    """Create the metric_events table (SQLite) or migrate to head (everything else)."""
    import src.entities  # noqa: F401

    if IS_SQLITE:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        return

    from alembic import command
    from alembic.config import Config

    # env.py drives its own event loop, so run it off this one
    await asyncio.to_thread(command.upgrade, Config("alembic.ini"), "head")


async def close_db() -> None:
    await engine.dispose()
