"""Record store adapters."""

from ..config import STORE_NOTION, STORE_SQL, Settings
from ..exceptions import ConfigurationError
from .base import MatchAudit, MatchRecord, PlayerRecord, RecordRepository


def create_repository(settings: Settings) -> RecordRepository:
    """Build the repository for the record store selected in ``settings``."""

    if settings.record_store == STORE_NOTION:
        from .notion import NotionRecordRepository

        return NotionRecordRepository(
            settings.notion_token or "",
            matches_db_id=settings.matches_db_id or "",
            players_db_id=settings.players_db_id or "",
            properties=settings.properties,
            timeout=settings.notion_timeout,
            max_retries=settings.notion_max_retries,
            retry_base_sleep=settings.notion_retry_base_sleep,
        )
    if settings.record_store == STORE_SQL:
        from ..db import get_sessionmaker
        from .sql import SqlRecordRepository

        return SqlRecordRepository(get_sessionmaker(settings.database_url))
    raise ConfigurationError(f"unknown record store {settings.record_store!r}")


__all__ = [
    "MatchAudit",
    "MatchRecord",
    "PlayerRecord",
    "RecordRepository",
    "create_repository",
]
