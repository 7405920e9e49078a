import os
from dataclasses import dataclass, field

from .exceptions import ConfigurationError


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

SECRET_HEADER = "X-ELO-SECRET"

# Status spellings seen on the live match databases. The terminal value is
# the one this service writes; every open spelling is accepted on read.
DEFAULT_OPEN_STATUSES = ("Offen", "Open", "Nicht begonnen", "Not started")
DEFAULT_PROCESSED_STATUS = "Gewertet"

STORE_NOTION = "notion"
STORE_SQL = "sql"


@dataclass(frozen=True)
class StatusNames:
    """Declared mapping of upstream status spellings."""

    open: tuple[str, ...] = DEFAULT_OPEN_STATUSES
    processed: str = DEFAULT_PROCESSED_STATUS


@dataclass(frozen=True)
class NotionProperties:
    """Property names on the Notion match and player pages."""

    status: str = "Ergebnis"
    legacy_status: str = "Status Ergebnis"
    player_a: str = "Spieler A"
    player_b: str = "Spieler B"
    goals_a: str = "Tore A"
    goals_b: str = "Tore B"
    k_factor: str = "K"
    rating: str = "ELO"
    elo_a_before: str = "ELO A vor"
    elo_b_before: str = "ELO B vor"
    elo_a_after: str = "ELO A nach"
    elo_b_after: str = "ELO B nach"


@dataclass(frozen=True)
class Settings:
    record_store: str
    webhook_secret: str | None = None
    notion_token: str | None = None
    players_db_id: str | None = None
    matches_db_id: str | None = None
    database_url: str | None = None
    notion_timeout: float = 10.0
    notion_max_retries: int = 3
    notion_retry_base_sleep: float = 0.5
    statuses: StatusNames = field(default_factory=StatusNames)
    properties: NotionProperties = field(default_factory=NotionProperties)


def _read_int_env(name: str, default: int, *, min_value: int | None = None) -> int:
    try:
        v = int(os.getenv(name, str(default)))
    except ValueError:
        v = default
    if min_value is not None:
        v = max(min_value, v)
    return v


def _read_float_env(name: str, default: float, *, min_value: float | None = None) -> float:
    try:
        v = float(os.getenv(name, str(default)))
    except ValueError:
        v = default
    if min_value is not None:
        v = max(min_value, v)
    return v


def _load_statuses() -> StatusNames:
    raw_open = os.getenv("ELO_OPEN_STATUSES", "")
    open_names = tuple(s.strip() for s in raw_open.split(",") if s.strip())
    processed = (os.getenv("ELO_PROCESSED_STATUS") or "").strip()
    return StatusNames(
        open=open_names or DEFAULT_OPEN_STATUSES,
        processed=processed or DEFAULT_PROCESSED_STATUS,
    )


def load_settings() -> Settings:
    """Read and validate runtime configuration from the environment.

    Raises ``ConfigurationError`` when the selected record store is missing
    any of its required variables, so the request fails before any record is
    read.
    """

    store = (os.getenv("ELO_RECORD_STORE") or STORE_NOTION).strip().lower()
    secret = os.getenv("ELO_WEBHOOK_SECRET") or None

    if store == STORE_NOTION:
        token = os.getenv("NOTION_TOKEN")
        players_db_id = os.getenv("PLAYERS_DB_ID")
        matches_db_id = os.getenv("MATCHES_DB_ID")
        if not token or not players_db_id or not matches_db_id:
            raise ConfigurationError("Missing NOTION env vars")
        return Settings(
            record_store=store,
            webhook_secret=secret,
            notion_token=token,
            players_db_id=players_db_id,
            matches_db_id=matches_db_id,
            notion_timeout=_read_float_env("NOTION_TIMEOUT_SECONDS", 10.0, min_value=0.1),
            notion_max_retries=_read_int_env("NOTION_MAX_RETRIES", 3, min_value=0),
            notion_retry_base_sleep=_read_float_env(
                "NOTION_RETRY_BASE_SLEEP", 0.5, min_value=0.0
            ),
            statuses=_load_statuses(),
        )

    if store == STORE_SQL:
        database_url = os.getenv("DATABASE_URL")
        if not database_url:
            raise ConfigurationError("DATABASE_URL environment variable is required")
        return Settings(
            record_store=store,
            webhook_secret=secret,
            database_url=database_url,
            statuses=_load_statuses(),
        )

    raise ConfigurationError(
        f"ELO_RECORD_STORE must be '{STORE_NOTION}' or '{STORE_SQL}' (got {store!r})"
    )
