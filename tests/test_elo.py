"""Tests for the ELO rating engine."""
import pytest

from scoreboard.services.elo import (
    DEFAULT_K_FACTOR,
    RATING_FLOOR,
    RatingDelta,
    adaptive_k_factor,
    apply_match,
    expected_score,
)


def test_expected_scores_are_complementary():
    for rating_a, rating_b in ((1200, 1200), (1400, 1200), (900, 2100)):
        total = expected_score(rating_a, rating_b) + expected_score(rating_b, rating_a)
        assert total == pytest.approx(1.0)
    assert expected_score(1200, 1200) == pytest.approx(0.5)


def test_even_match_moves_sixteen_points_each_way():
    winner, loser = apply_match(1200, 1200, 21, 15)
    assert winner == RatingDelta(old_rating=1200, new_rating=1216, change=16)
    assert loser == RatingDelta(old_rating=1200, new_rating=1184, change=-16)


def test_loser_side_can_be_first_argument():
    loser, winner = apply_match(1200, 1200, 7, 11)
    assert loser.new_rating == 1184
    assert winner.new_rating == 1216


def test_favourite_gains_little_and_upset_gains_a_lot():
    favourite, underdog = apply_match(1400, 1200, 11, 9)
    assert (favourite.new_rating, underdog.new_rating) == (1408, 1192)
    assert favourite.change == -underdog.change == 8

    favourite, underdog = apply_match(1400, 1200, 9, 11)
    assert (favourite.new_rating, underdog.new_rating) == (1376, 1224)
    assert underdog.change == 24


def test_rating_never_drops_below_floor_and_change_reflects_clamp():
    winner, loser = apply_match(110, 110, 11, 0)
    assert winner.new_rating == 126
    assert loser.new_rating == RATING_FLOOR
    assert loser.change == RATING_FLOOR - 110


def test_separate_k_factor_per_side():
    delta_a, delta_b = apply_match(1200, 1200, 11, 5, k_factor=40, k_factor_b=16)
    assert delta_a.new_rating == 1220
    assert delta_b.new_rating == 1192


def test_tie_is_rejected():
    with pytest.raises(ValueError):
        apply_match(1200, 1200, 11, 11)


def test_adaptive_k_factor_tiers():
    assert adaptive_k_factor(1200, 0) == 40
    assert adaptive_k_factor(2500, 29) == 40
    assert adaptive_k_factor(2500, 30) == 16
    assert adaptive_k_factor(2200, 100) == 24
    assert adaptive_k_factor(1500, 100) == DEFAULT_K_FACTOR


def test_rating_delta_to_dict():
    delta = RatingDelta(old_rating=1200, new_rating=1216, change=16, player_id=3)
    assert delta.to_dict() == {
        'player_id': 3, 'old_rating': 1200, 'new_rating': 1216, 'change': 16,
    }
