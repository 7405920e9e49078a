"""Unit tests for the pure Elo update."""

from __future__ import annotations

import pytest

from elo_webhook.services.rating import (
    DEFAULT_K_FACTOR,
    expected_score,
    outcome_score,
    round_half_away,
    update_ratings,
)


@pytest.mark.parametrize(
    "rating_a, rating_b",
    [(1000, 1000), (1200, 1000), (800, 1650), (2400, 100)],
)
def test_expected_scores_sum_to_one(rating_a, rating_b) -> None:
    total = expected_score(rating_a, rating_b) + expected_score(rating_b, rating_a)
    assert total == pytest.approx(1.0)


def test_expected_score_equal_ratings_is_half() -> None:
    assert expected_score(1000, 1000) == pytest.approx(0.5)


def test_outcome_score_maps_win_loss_draw() -> None:
    assert outcome_score(3, 1) == 1.0
    assert outcome_score(0, 2) == 0.0
    assert outcome_score(1, 1) == 0.5


def test_win_between_equal_players_moves_half_k() -> None:
    assert update_ratings(1000, 1000, 3, 1, 20) == (1010, 990)


def test_draw_against_weaker_player_costs_favourite() -> None:
    # expected_a = 1 / (1 + 10 ** (-200 / 400)) ~ 0.76
    assert expected_score(1200, 1000) == pytest.approx(0.7597, abs=1e-4)
    assert update_ratings(1200, 1000, 1, 1, 20) == (1195, 1005)


def test_loss_is_mirror_of_win() -> None:
    assert update_ratings(1000, 1000, 0, 2, 20) == (990, 1010)


def test_goal_margin_does_not_change_result() -> None:
    assert update_ratings(1000, 1100, 1, 0, 20) == update_ratings(1000, 1100, 9, 0, 20)


def test_rating_a_is_monotonic_in_goal_difference() -> None:
    previous = None
    for goals_a in range(0, 6):
        new_a, _ = update_ratings(1100, 1000, goals_a, 2, 24)
        if previous is not None:
            assert new_a >= previous
        previous = new_a


def test_update_is_deterministic() -> None:
    results = {update_ratings(1337, 1211, 2, 2, 32) for _ in range(50)}
    assert len(results) == 1


@pytest.mark.parametrize("k", [None, "20", True, float("nan"), float("inf")])
def test_invalid_k_falls_back_to_default(k) -> None:
    assert update_ratings(1000, 1000, 1, 0, k) == update_ratings(
        1000, 1000, 1, 0, DEFAULT_K_FACTOR
    )


def test_custom_k_scales_change() -> None:
    assert update_ratings(1000, 1000, 1, 0, 40) == (1020, 980)


def test_results_are_integers() -> None:
    new_a, new_b = update_ratings(1000.4, 1234.6, 2, 1, 17.5)
    assert isinstance(new_a, int)
    assert isinstance(new_b, int)


def test_round_half_away_from_zero() -> None:
    assert round_half_away(2.5) == 3
    assert round_half_away(3.5) == 4
    assert round_half_away(-2.5) == -3
    assert round_half_away(1004.49) == 1004
    assert round_half_away(0.0) == 0
