import os
import sys
import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Ensure all SQLAlchemy models are registered with the declarative Base so
# metadata.create_all creates every table.
from elo_webhook import db, models  # noqa: F401

os.environ.setdefault("DISABLE_WEBHOOK_RATE_LIMITS", "true")

_CONFIG_VARS = (
    "ELO_RECORD_STORE",
    "ELO_WEBHOOK_SECRET",
    "NOTION_TOKEN",
    "PLAYERS_DB_ID",
    "MATCHES_DB_ID",
    "DATABASE_URL",
    "ELO_OPEN_STATUSES",
    "ELO_PROCESSED_STATUS",
)


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """Start every test without record-store configuration in the environment."""

    for name in _CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DISABLE_WEBHOOK_RATE_LIMITS", "true")
    yield


@pytest.fixture()
def sql_session_maker(tmp_path):
    """File-backed SQLite store with the match and player tables created.

    Each session gets its own connection so concurrent writes behave like
    independent requests against the store.
    """

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'records.db'}",
        poolclass=NullPool,
    )
    async_session_maker = sessionmaker(
        engine, expire_on_commit=False, class_=AsyncSession
    )

    async def init_schema() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(db.Base.metadata.create_all)

    asyncio.run(init_schema())
    yield async_session_maker
    asyncio.run(engine.dispose())
