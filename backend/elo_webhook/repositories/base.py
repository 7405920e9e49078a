"""Record store boundary used by the match processor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence


@dataclass(frozen=True)
class MatchRecord:
    """Raw match fields as read from the store.

    Values are passed through untouched; validation happens in the processor
    so every store reports the same errors.
    """

    id: str
    status: str | None = None
    legacy_status: str | None = None
    player_a_ids: Sequence[str] = field(default_factory=tuple)
    player_b_ids: Sequence[str] = field(default_factory=tuple)
    goals_a: Any = None
    goals_b: Any = None
    k_factor: Any = None


@dataclass(frozen=True)
class PlayerRecord:
    id: str
    rating: Any = None


@dataclass(frozen=True)
class MatchAudit:
    """Fields written to the match record when it is rated."""

    elo_a_before: int
    elo_b_before: int
    elo_a_after: int
    elo_b_after: int
    k_factor: float
    status: str


class RecordRepository(Protocol):
    async def get_match(self, match_id: str) -> MatchRecord:
        """Return the match or raise ``NotFoundError``."""

    async def get_player(self, player_id: str) -> PlayerRecord:
        """Return the player or raise ``NotFoundError``."""

    async def update_player_rating(self, player_id: str, rating: int) -> None:
        ...

    async def commit_match(
        self, match_id: str, audit: MatchAudit, *, expected_status: str | None
    ) -> None:
        """Write ``audit`` if the match status still equals ``expected_status``.

        Raises ``StaleRecordError`` when the precondition does not hold.
        """

    async def aclose(self) -> None:
        ...
