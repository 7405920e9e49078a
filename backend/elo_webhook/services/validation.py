import math
from typing import Any, Sequence

from .rating import DEFAULT_K_FACTOR, DEFAULT_RATING, round_half_away


class ValidationError(Exception):
    """Raised when a webhook request or a match record is unusable."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def _is_number(value: Any) -> bool:
    # bool is a subclass of int; a checkbox must not pass as a score.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def require_single_link(side: str, links: Sequence[str] | None) -> str:
    """Return the only linked player id for ``side``."""

    ids = [link for link in (links or []) if link]
    if len(ids) != 1:
        raise ValidationError(
            f"Player {side} must have exactly 1 linked player (found {len(ids)})."
        )
    return ids[0]


def require_goals(goals_a: Any, goals_b: Any) -> tuple[float, float]:
    if not _is_number(goals_a) or not _is_number(goals_b):
        raise ValidationError(
            f"Goals A/B must be numbers (got {goals_a!r} and {goals_b!r})."
        )
    return goals_a, goals_b


def resolve_k_factor(value: Any) -> float:
    if not _is_number(value):
        return DEFAULT_K_FACTOR
    return value


def resolve_rating(value: Any) -> int:
    """Return a stored rating as an integer, defaulting unset ratings to 1000."""

    if not _is_number(value):
        return DEFAULT_RATING
    return round_half_away(value)
