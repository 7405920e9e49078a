import math

DEFAULT_K_FACTOR = 20
DEFAULT_RATING = 1000
ELO_SCALE = 400.0


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero.

    Unlike ``round()`` (banker's rounding), ``2.5`` becomes ``3`` and
    ``-2.5`` becomes ``-3``.
    """

    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def outcome_score(goals: float, opponent_goals: float) -> float:
    """Return ``1`` for a win, ``0`` for a loss and ``0.5`` for a draw."""

    if goals > opponent_goals:
        return 1.0
    if goals < opponent_goals:
        return 0.0
    return 0.5


def expected_score(rating: float, opponent_rating: float) -> float:
    """Compute the Elo expected score for one side."""
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / ELO_SCALE))


def _coerce_k(k: object) -> float:
    if isinstance(k, bool) or not isinstance(k, (int, float)):
        return float(DEFAULT_K_FACTOR)
    if not math.isfinite(k):
        return float(DEFAULT_K_FACTOR)
    return float(k)


def update_ratings(
    rating_a: float,
    rating_b: float,
    goals_a: float,
    goals_b: float,
    k: object = DEFAULT_K_FACTOR,
) -> tuple[int, int]:
    """Return the posterior ratings of both players after one match.

    Args:
        rating_a: Current rating of player A.
        rating_b: Current rating of player B.
        goals_a: Goals (or points) scored by player A.
        goals_b: Goals (or points) scored by player B.
        k: K-factor. Anything that is not a finite number falls back to
            ``DEFAULT_K_FACTOR``.

    The function has no side effects; callers validate that ratings and goals
    are finite numbers before calling it.
    """

    k_value = _coerce_k(k)

    score_a = outcome_score(goals_a, goals_b)
    score_b = 1.0 - score_a

    expected_a = expected_score(rating_a, rating_b)
    expected_b = 1.0 - expected_a

    new_a = round_half_away(rating_a + k_value * (score_a - expected_a))
    new_b = round_half_away(rating_b + k_value * (score_b - expected_b))
    return new_a, new_b
