import os
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool, StaticPool


engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[sessionmaker] = None
Base = declarative_base()


def _async_url(database_url: str) -> str:
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Return a lazily created SQLAlchemy engine.

    The engine is created on first use from ``database_url`` or, when that is
    omitted, the ``DATABASE_URL`` environment variable. Importing this module
    has no side effects so tests can set the environment variable at runtime.
    """

    global engine, AsyncSessionLocal

    if engine is None:
        database_url = database_url or os.getenv("DATABASE_URL")
        if not database_url:
            raise RuntimeError("DATABASE_URL environment variable is required")

        database_url = _async_url(database_url)
        engine_kwargs = {"echo": False}

        if database_url.startswith("sqlite+aiosqlite://"):
            # In-memory SQLite must reuse the same connection to persist schema/data.
            if ":memory:" in database_url:
                engine_kwargs["poolclass"] = StaticPool
            else:
                engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        engine = create_async_engine(database_url, **engine_kwargs)
        AsyncSessionLocal = sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    return engine


def get_sessionmaker(database_url: str | None = None) -> sessionmaker:
    if AsyncSessionLocal is None:
        get_engine(database_url)

    assert AsyncSessionLocal is not None  # for type checkers
    return AsyncSessionLocal
