"""Record repository backed by two Notion databases.

Matches and players are Notion pages; each field is a page property. The
Notion API offers no conditional update, so ``commit_match`` re-reads the
match page right before writing and refuses to write when the status moved.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from ..config import NotionProperties
from ..exceptions import NotFoundError, StaleRecordError, UpstreamError
from ..services.status import resolve_status
from .base import MatchAudit, MatchRecord, PlayerRecord

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

_RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

T = TypeVar("T")


def _normalize_id(value: str | None) -> str:
    return (value or "").replace("-", "").lower()


def _status_name(prop: dict[str, Any] | None) -> str | None:
    if not prop:
        return None
    option = prop.get("status") or prop.get("select")
    if isinstance(option, dict):
        return option.get("name")
    return None


def _number(prop: dict[str, Any] | None) -> Any:
    if not prop:
        return None
    return prop.get("number")


def _relation_ids(prop: dict[str, Any] | None) -> tuple[str, ...]:
    if not prop:
        return ()
    return tuple(r["id"] for r in (prop.get("relation") or []) if r.get("id"))


class NotionRecordRepository:
    def __init__(
        self,
        token: str,
        *,
        matches_db_id: str,
        players_db_id: str,
        properties: NotionProperties | None = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_base_sleep: float = 0.5,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._props = properties or NotionProperties()
        self._matches_db_id = _normalize_id(matches_db_id)
        self._players_db_id = _normalize_id(players_db_id)
        self._max_retries = max_retries
        self._base_sleep = retry_base_sleep
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=NOTION_API_URL, timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Notion-Version": NOTION_VERSION,
        }

    # Transport helpers
    def _should_retry(self, err: Exception) -> bool:
        if isinstance(err, httpx.HTTPStatusError):
            return err.response.status_code in _RETRY_STATUS_CODES
        return isinstance(err, httpx.TransportError)

    async def _with_retries(self, op_name: str, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except httpx.HTTPError as err:
                attempt += 1
                if attempt > self._max_retries or not self._should_retry(err):
                    raise
                sleep_time = self._base_sleep * (2 ** min(attempt - 1, 6))
                logger.warning(
                    "Notion %s failed (%s: %s). Retrying %s/%s in %.1fs",
                    op_name,
                    type(err).__name__,
                    err,
                    attempt,
                    self._max_retries,
                    sleep_time,
                )
                await asyncio.sleep(sleep_time)

    async def _request(
        self, method: str, page_id: str, *, kind: str, json: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        async def send() -> dict[str, Any]:
            response = await self._client.request(
                method, f"/pages/{page_id}", headers=self._headers, json=json
            )
            response.raise_for_status()
            return response.json()

        try:
            return await self._with_retries(f"{method} {kind}", send)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise NotFoundError(kind, page_id) from exc
            raise UpstreamError(
                f"Notion {method} {kind} '{page_id}' failed with "
                f"HTTP {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Notion {method} {kind} '{page_id}' failed: {type(exc).__name__}: {exc}"
            ) from exc

    async def _get_page(self, page_id: str, *, kind: str, database_id: str) -> dict[str, Any]:
        page = await self._request("GET", page_id, kind=kind)
        parent = page.get("parent") or {}
        if _normalize_id(parent.get("database_id")) != database_id:
            logger.warning(
                "Page %s is not in the configured %s database (parent=%s)",
                page_id,
                kind,
                parent,
            )
            raise NotFoundError(kind, page_id)
        return page

    async def _update_page(self, page_id: str, properties: dict[str, Any], *, kind: str) -> None:
        await self._request("PATCH", page_id, kind=kind, json={"properties": properties})

    # Repository interface
    async def get_match(self, match_id: str) -> MatchRecord:
        page = await self._get_page(match_id, kind="match", database_id=self._matches_db_id)
        p = page.get("properties") or {}
        return MatchRecord(
            id=match_id,
            status=_status_name(p.get(self._props.status)),
            legacy_status=_status_name(p.get(self._props.legacy_status)),
            player_a_ids=_relation_ids(p.get(self._props.player_a)),
            player_b_ids=_relation_ids(p.get(self._props.player_b)),
            goals_a=_number(p.get(self._props.goals_a)),
            goals_b=_number(p.get(self._props.goals_b)),
            k_factor=_number(p.get(self._props.k_factor)),
        )

    async def get_player(self, player_id: str) -> PlayerRecord:
        page = await self._get_page(player_id, kind="player", database_id=self._players_db_id)
        p = page.get("properties") or {}
        return PlayerRecord(id=player_id, rating=_number(p.get(self._props.rating)))

    async def update_player_rating(self, player_id: str, rating: int) -> None:
        await self._update_page(
            player_id, {self._props.rating: {"number": int(rating)}}, kind="player"
        )

    async def commit_match(
        self, match_id: str, audit: MatchAudit, *, expected_status: str | None
    ) -> None:
        page = await self._get_page(match_id, kind="match", database_id=self._matches_db_id)
        p = page.get("properties") or {}
        primary = p.get(self._props.status)
        legacy = p.get(self._props.legacy_status)
        current = resolve_status(_status_name(primary), _status_name(legacy))
        if current != expected_status:
            raise StaleRecordError(match_id, expected_status, current)

        # Write the terminal status into the slot the status was read from.
        slot_name, slot = self._props.status, primary
        if resolve_status(_status_name(primary), None) is None and legacy is not None:
            slot_name, slot = self._props.legacy_status, legacy
        slot_type = (slot or {}).get("type") or "status"

        await self._update_page(
            match_id,
            {
                self._props.elo_a_before: {"number": audit.elo_a_before},
                self._props.elo_b_before: {"number": audit.elo_b_before},
                self._props.elo_a_after: {"number": audit.elo_a_after},
                self._props.elo_b_after: {"number": audit.elo_b_after},
                self._props.k_factor: {"number": audit.k_factor},
                slot_name: {slot_type: {"name": audit.status}},
            },
            kind="match",
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
