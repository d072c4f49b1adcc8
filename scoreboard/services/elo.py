"""
ELO rating engine for singles ping-pong.

- Start: 1200
- K-factor: fixed 32 by default. An adaptive policy (40 for players with
  fewer than 30 games, 16 at 2400+, 24 at 2100+, otherwise 32) is available
  but only used when the app enables it.
- Formula: E = 1 / (1 + 10^((opponent - self) / 400))
           R' = round(R + K * (actual - E)), never below 100

Everything here is pure: no database, no config, no clock.
"""
import math
from dataclasses import dataclass

DEFAULT_RATING = 1200
DEFAULT_K_FACTOR = 32
RATING_FLOOR = 100


@dataclass(frozen=True)
class RatingDelta:
    old_rating: int
    new_rating: int
    change: int
    player_id: int | None = None

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'old_rating': self.old_rating,
            'new_rating': self.new_rating,
            'change': self.change,
        }


def expected_score(rating_self, rating_opponent):
    """Win probability of ``rating_self`` against ``rating_opponent``."""
    return 1.0 / (1.0 + math.pow(10, (rating_opponent - rating_self) / 400.0))


def adaptive_k_factor(rating, games_played):
    """Lower K for experienced and high-rated players."""
    if games_played < 30:
        return 40
    if rating >= 2400:
        return 16
    if rating >= 2100:
        return 24
    return DEFAULT_K_FACTOR


def _new_rating(old, k_factor, actual, expected):
    return max(RATING_FLOOR, round(old + k_factor * (actual - expected)))


def apply_match(rating_a, rating_b, score_a, score_b,
                k_factor=DEFAULT_K_FACTOR, k_factor_b=None):
    """Compute both players' new ratings for a decided match.

    Args:
        rating_a: Current rating of side A.
        rating_b: Current rating of side B.
        score_a: Points scored by side A.
        score_b: Points scored by side B.
        k_factor: K for side A (and B unless ``k_factor_b`` is given).
        k_factor_b: Optional separate K for side B.

    Returns:
        (delta_a, delta_b) as RatingDelta instances.

    Raises:
        ValueError: if the scores are equal. There are no draws; callers
            must reject ties before getting here.
    """
    if score_a == score_b:
        raise ValueError('apply_match needs a decided result, got a tie')
    if k_factor_b is None:
        k_factor_b = k_factor

    actual_a = 1.0 if score_a > score_b else 0.0
    actual_b = 1.0 - actual_a

    new_a = _new_rating(rating_a, k_factor, actual_a, expected_score(rating_a, rating_b))
    new_b = _new_rating(rating_b, k_factor_b, actual_b, expected_score(rating_b, rating_a))

    return (
        RatingDelta(old_rating=rating_a, new_rating=new_a, change=new_a - rating_a),
        RatingDelta(old_rating=rating_b, new_rating=new_b, change=new_b - rating_b),
    )

