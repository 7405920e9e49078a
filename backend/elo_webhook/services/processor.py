from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Union

from ..config import StatusNames
from ..exceptions import PartialCommitError, UpstreamError
from ..repositories.base import MatchAudit, RecordRepository
from .rating import update_ratings
from .status import Eligibility, check_eligibility
from .validation import (
    ValidationError,
    require_goals,
    require_single_link,
    resolve_k_factor,
    resolve_rating,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RatingChange:
    player_id: str
    old: int
    new: int


@dataclass(frozen=True)
class RatingOutcome:
    match_id: str
    player_a: RatingChange
    player_b: RatingChange
    k_factor: float
    processed: bool = True


@dataclass(frozen=True)
class NoOpOutcome:
    match_id: str
    eligibility: Eligibility
    processed: bool = False


ProcessOutcome = Union[RatingOutcome, NoOpOutcome]


class MatchProcessor:
    """Rate a single match and commit the result to the record store.

    The store has no multi-record transactions, so the commit is a saga: both
    player ratings are written first, then the match record is flipped to the
    terminal status with a compare-and-set on the status observed at read
    time. That last write is the commit point. Any failure after the first
    successful write raises ``PartialCommitError`` with the names of the
    writes that did and did not land.
    """

    def __init__(self, repository: RecordRepository, statuses: StatusNames) -> None:
        self._repo = repository
        self._statuses = statuses

    async def process(self, match_id: str) -> ProcessOutcome:
        match = await self._repo.get_match(match_id)

        eligibility = check_eligibility(match, self._statuses)
        if not eligibility.eligible:
            logger.info(
                "Match %s not open (status=%r, state=%s); nothing to do",
                match_id,
                eligibility.status_name,
                eligibility.state.value,
            )
            return NoOpOutcome(match_id=match_id, eligibility=eligibility)

        player_a_id = require_single_link("A", match.player_a_ids)
        player_b_id = require_single_link("B", match.player_b_ids)
        if player_a_id == player_b_id:
            raise ValidationError("Player A and player B must be different players.")

        player_a, player_b = await asyncio.gather(
            self._repo.get_player(player_a_id),
            self._repo.get_player(player_b_id),
        )
        rating_a = resolve_rating(player_a.rating)
        rating_b = resolve_rating(player_b.rating)

        goals_a, goals_b = require_goals(match.goals_a, match.goals_b)
        k_factor = resolve_k_factor(match.k_factor)

        new_a, new_b = update_ratings(rating_a, rating_b, goals_a, goals_b, k_factor)

        outcome = RatingOutcome(
            match_id=match_id,
            player_a=RatingChange(player_id=player_a_id, old=rating_a, new=new_a),
            player_b=RatingChange(player_id=player_b_id, old=rating_b, new=new_b),
            k_factor=k_factor,
        )
        audit = MatchAudit(
            elo_a_before=rating_a,
            elo_b_before=rating_b,
            elo_a_after=new_a,
            elo_b_after=new_b,
            k_factor=k_factor,
            status=self._statuses.processed,
        )
        await self._commit(outcome, audit, expected_status=eligibility.status_name)

        logger.info(
            "Rated match %s: %s %d -> %d, %s %d -> %d (K=%s)",
            match_id,
            player_a_id,
            rating_a,
            new_a,
            player_b_id,
            rating_b,
            new_b,
            k_factor,
        )
        return outcome

    async def _commit(
        self, outcome: RatingOutcome, audit: MatchAudit, *, expected_status: str | None
    ) -> None:
        match_id = outcome.match_id
        ratings = {
            "playerA": {"old": outcome.player_a.old, "new": outcome.player_a.new},
            "playerB": {"old": outcome.player_b.old, "new": outcome.player_b.new},
        }
        writes = {
            f"player:{outcome.player_a.player_id}": self._repo.update_player_rating(
                outcome.player_a.player_id, outcome.player_a.new
            ),
            f"player:{outcome.player_b.player_id}": self._repo.update_player_rating(
                outcome.player_b.player_id, outcome.player_b.new
            ),
        }
        results = await asyncio.gather(*writes.values(), return_exceptions=True)

        committed: list[str] = []
        failed: list[str] = []
        first_error: BaseException | None = None
        for name, result in zip(writes, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failed.append(name)
                first_error = first_error or result
                logger.error("Write %s for match %s failed: %s", name, match_id, result)
            else:
                committed.append(name)

        match_write = f"match:{match_id}"
        if failed:
            if not committed:
                raise UpstreamError(
                    f"rating writes for match '{match_id}' failed: {first_error}"
                ) from first_error
            raise PartialCommitError(
                match_id,
                committed=committed,
                failed=failed + [match_write],
                ratings=ratings,
                cause=first_error,
            ) from first_error

        try:
            await self._repo.commit_match(match_id, audit, expected_status=expected_status)
        except Exception as exc:
            raise PartialCommitError(
                match_id,
                committed=committed,
                failed=[match_write],
                ratings=ratings,
                cause=exc,
            ) from exc
