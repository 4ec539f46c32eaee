"""Async engine and sessions for the preference store.

Entities are held in memory by ``EntityStore``; the database only backs
the ``preferences`` table, so a single SQLite file is the normal setup.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from jobsite_crm.app.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""
    pass


settings = get_settings()

_is_sqlite = settings.database_url.startswith("sqlite")


def _engine_kwargs() -> dict:
    if _is_sqlite:
        return {"echo": False, "connect_args": {"check_same_thread": False, "timeout": 30}}
    return {"echo": False, "pool_size": 2, "max_overflow": 2}


engine = create_async_engine(settings.database_url, **_engine_kwargs())

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency: yield an async database session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """Create the preference table if it does not exist yet."""
    import jobsite_crm.domain.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        if _is_sqlite:
            await conn.execute(text("PRAGMA journal_mode=WAL"))


async def dispose_db():
    await engine.dispose()
