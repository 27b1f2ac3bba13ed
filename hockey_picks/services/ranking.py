"""Player scoring probability engine.

Six interchangeable ranking methods turn a skater's season stats into a
0-100 "scoring probability":

- original: Fixed-weight linear sum of raw stats
- zscore: Population z-scores, weighted and mapped around 50
- percentile: Weighted per-metric percentile rank within the pool
- expected: Shot volume x shot quality plus ice time and form
- composite: Offensive, efficiency and usage indices vs pool maximums
- elo: Elo-style rating from a performance score vs the pool's best

None of these are calibrated probabilities; they are heuristic scores that
are clamped to [0, 100] and rounded to two decimals.
"""

import logging
import math
from collections.abc import Callable, Sequence
from enum import StrEnum
from statistics import fmean, pstdev

from hockey_picks.services.normalizer import PlayerSeasonStat

logger = logging.getLogger(__name__)

# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Types
    "RankingMethod",
    "EmptyPopulationError",
    # Constants
    "METRIC_WEIGHTS",
    "NORMALISED_WEIGHTS",
    "POPULATION_METHODS",
    "METHOD_DESCRIPTIONS",
    "METHOD_FUNCTIONS",
    "PROBABILITY_MIN",
    "PROBABILITY_MAX",
    # Helpers
    "clamp_probability",
    "metric_value",
    "performance_score",
    # Ranking methods
    "calculate_weighted_sum",
    "calculate_zscore",
    "calculate_percentile",
    "calculate_expected_goals",
    "calculate_composite_index",
    "calculate_elo_rating",
    # Dispatch
    "resolve_method",
    "calculate_probability",
]

# =============================================================================
# Types
# =============================================================================


class RankingMethod(StrEnum):
    """Identifiers of the available ranking methods."""

    ORIGINAL = "original"
    ZSCORE = "zscore"
    PERCENTILE = "percentile"
    EXPECTED = "expected"
    COMPOSITE = "composite"
    ELO = "elo"


class EmptyPopulationError(ValueError):
    """A population-relative method was given an empty player pool."""


# =============================================================================
# Constants
# =============================================================================

PROBABILITY_MIN = 0.0
PROBABILITY_MAX = 100.0

# Weight per metric for the weighted-sum family. These intentionally sum to
# 1.25, so the original method is a clamped linear score, not a probability.
METRIC_WEIGHTS: dict[str, float] = {
    "goals": 0.30,
    "shots": 0.25,
    "shooting_pct": 0.20,
    "toi_minutes": 0.15,
    "pp_goals": 0.10,
    "points_per_game": 0.10,
    "game_winning_goals": 0.10,
    "plus_minus": 0.05,
}

# Same relative profile rescaled to sum to 1.0 (z-score and percentile)
_WEIGHT_TOTAL = sum(METRIC_WEIGHTS.values())
NORMALISED_WEIGHTS: dict[str, float] = {
    metric: weight / _WEIGHT_TOTAL for metric, weight in METRIC_WEIGHTS.items()
}

# Z-score mapping: weighted z of 0 -> 50%, +/-1 -> 65% / 35%
ZSCORE_CENTER = 50.0
ZSCORE_SCALE = 15.0

# Expected goals method
EXPECTED_GOALS_WEIGHT = 0.4
EXPECTED_TOI_WEIGHT = 0.3
EXPECTED_FORM_WEIGHT = 0.3
EXPECTED_SCALE = 2.0

# Composite index sub-index weights
COMPOSITE_OFFENSIVE_WEIGHT = 0.4
COMPOSITE_EFFICIENCY_WEIGHT = 0.3
COMPOSITE_USAGE_WEIGHT = 0.3

# Elo-style rating
ELO_BASE_RATING = 1500.0
ELO_RANGE = 500.0
ELO_FLOOR = 1000.0

# Methods whose score depends on the rest of the pool
POPULATION_METHODS = frozenset(
    {
        RankingMethod.ZSCORE,
        RankingMethod.PERCENTILE,
        RankingMethod.COMPOSITE,
        RankingMethod.ELO,
    }
)

METHOD_DESCRIPTIONS: dict[RankingMethod, str] = {
    RankingMethod.ORIGINAL: "Original weighted sum method - combines raw stats with fixed weights",
    RankingMethod.ZSCORE: "Z-Score normalization - normalizes each metric to standard deviation units",
    RankingMethod.PERCENTILE: "Percentile-based ranking - ranks players by percentile within each metric",
    RankingMethod.EXPECTED: "Expected goals method - focuses on shot quality and volume",
    RankingMethod.COMPOSITE: "Composite index - combines offensive, efficiency, and usage indices",
    RankingMethod.ELO: "Elo-style rating - creates dynamic ratings based on performance scores",
}


def _validate_weights() -> None:
    """Validate the normalised weight profile sums to 1.0.

    Raises:
        ValueError: If the weights don't sum to 1.0
    """
    total = sum(NORMALISED_WEIGHTS.values())
    if abs(total - 1.0) >= 1e-9:
        raise ValueError(f"NORMALISED_WEIGHTS sums to {total}, not 1.0")


_validate_weights()


# =============================================================================
# 1. Helpers
# =============================================================================


def clamp_probability(value: float) -> float:
    """Clamp a score to [0, 100] and round to two decimals.

    NaN is treated as 0 so a non-finite value can never reach a report.
    """
    if math.isnan(value):
        return PROBABILITY_MIN
    return round(min(max(value, PROBABILITY_MIN), PROBABILITY_MAX), 2)


def metric_value(player: PlayerSeasonStat, metric: str) -> float:
    """Read one of the eight ranking metrics from a stat line."""
    return float(getattr(player, metric))


def _require_pool(pool: Sequence[PlayerSeasonStat], method: RankingMethod) -> None:
    if not pool:
        raise EmptyPopulationError(
            f"Ranking method '{method}' needs a non-empty player pool"
        )


def _ratio(value: float, maximum: float) -> float:
    """value / maximum, or 0.0 when the pool maximum is zero."""
    if maximum == 0:
        return 0.0
    return value / maximum


def performance_score(player: PlayerSeasonStat) -> float:
    """Elo performance score. (points - goals) stands in for assists."""
    return (
        player.goals * 10
        + (player.points - player.goals) * 7
        + player.points * 5
        + player.shooting_pct * 100 * 2
        + player.plus_minus * 3
    )


# =============================================================================
# 2. Ranking Methods
# =============================================================================


def calculate_weighted_sum(
    player: PlayerSeasonStat,
    pool: Sequence[PlayerSeasonStat] | None = None,
) -> float:
    """Original weighted sum method.

    Linear combination of raw stats with METRIC_WEIGHTS. Shooting percentage
    is scaled to a whole number first. Population independent: pool is
    accepted for a uniform signature but ignored.

    Args:
        player: Normalized season stats
        pool: Ignored

    Returns:
        Score clamped to 0-100
    """
    w = METRIC_WEIGHTS
    score = (
        player.toi_minutes * w["toi_minutes"]
        + player.shots * w["shots"]
        + player.shooting_pct * 100 * w["shooting_pct"]
        + player.pp_goals * w["pp_goals"]
        + player.points_per_game * w["points_per_game"]
        + player.plus_minus * w["plus_minus"]
        + player.game_winning_goals * w["game_winning_goals"]
        + player.goals * w["goals"]
    )
    return clamp_probability(score)


def calculate_zscore(
    player: PlayerSeasonStat,
    pool: Sequence[PlayerSeasonStat],
) -> float:
    """Z-score normalization method.

    Each metric is standardized against the pool mean and population
    standard deviation. A metric with zero deviation contributes 0.
    The weighted z-score is mapped with 50 + z * 15.

    Args:
        player: Normalized season stats
        pool: Reference population

    Returns:
        Score clamped to 0-100

    Raises:
        EmptyPopulationError: If pool is empty
    """
    _require_pool(pool, RankingMethod.ZSCORE)

    weighted_z = 0.0
    for metric, weight in NORMALISED_WEIGHTS.items():
        values = [metric_value(p, metric) for p in pool]
        std_dev = pstdev(values)
        if std_dev == 0:
            continue
        z = (metric_value(player, metric) - fmean(values)) / std_dev
        weighted_z += z * weight

    return clamp_probability(ZSCORE_CENTER + weighted_z * ZSCORE_SCALE)


def calculate_percentile(
    player: PlayerSeasonStat,
    pool: Sequence[PlayerSeasonStat],
) -> float:
    """Percentile-based ranking method.

    Per metric, percentile = (n - count strictly greater) / n * 100, so
    tied players share a percentile and the top tie group gets 100.

    Args:
        player: Normalized season stats
        pool: Reference population

    Returns:
        Weighted percentile (0-100)

    Raises:
        EmptyPopulationError: If pool is empty
    """
    _require_pool(pool, RankingMethod.PERCENTILE)

    n = len(pool)
    score = 0.0
    for metric, weight in NORMALISED_WEIGHTS.items():
        value = metric_value(player, metric)
        better_count = sum(1 for p in pool if metric_value(p, metric) > value)
        percentile = (n - better_count) / n * 100
        score += percentile * weight

    return clamp_probability(score)


def calculate_expected_goals(
    player: PlayerSeasonStat,
    pool: Sequence[PlayerSeasonStat] | None = None,
) -> float:
    """Expected goals method.

    expected goals = shots x shooting% (shot volume times shot quality),
    blended with ice time in minutes and points per game, then doubled.
    Population independent.

    Returns:
        Score clamped to 0-100
    """
    shot_quality = player.shooting_pct * 100
    expected_goals = player.shots * shot_quality / 100

    score = (
        expected_goals * EXPECTED_GOALS_WEIGHT
        + player.toi_minutes * EXPECTED_TOI_WEIGHT
        + player.points_per_game * EXPECTED_FORM_WEIGHT
    )
    return clamp_probability(score * EXPECTED_SCALE)


def calculate_composite_index(
    player: PlayerSeasonStat,
    pool: Sequence[PlayerSeasonStat],
) -> float:
    """Composite index method.

    - Offensive: goals, points and shooting% relative to pool maximums
    - Efficiency: shooting% (whole number) and points per game vs max
    - Usage: ice time and shots relative to pool maximums

    A pool maximum of zero makes that ratio contribute 0.

    Returns:
        Weighted composite clamped to 0-100

    Raises:
        EmptyPopulationError: If pool is empty
    """
    _require_pool(pool, RankingMethod.COMPOSITE)

    max_goals = max(p.goals for p in pool)
    max_points = max(p.points for p in pool)
    max_shooting_pct = max(p.shooting_pct for p in pool)
    max_points_per_game = max(p.points_per_game for p in pool)
    max_toi = max(p.toi_per_game for p in pool)
    max_shots = max(p.shots for p in pool)

    offensive_index = (
        _ratio(player.goals, max_goals) * 0.4
        + _ratio(player.points, max_points) * 0.3
        + _ratio(player.shooting_pct, max_shooting_pct) * 0.3
    ) * 100

    efficiency_index = (
        player.shooting_pct * 100 * 0.5
        + _ratio(player.points_per_game, max_points_per_game) * 0.5
    ) * 100

    usage_index = (
        _ratio(player.toi_per_game, max_toi) * 0.7
        + _ratio(player.shots, max_shots) * 0.3
    ) * 100

    score = (
        offensive_index * COMPOSITE_OFFENSIVE_WEIGHT
        + efficiency_index * COMPOSITE_EFFICIENCY_WEIGHT
        + usage_index * COMPOSITE_USAGE_WEIGHT
    )
    return clamp_probability(score)


def calculate_elo_rating(
    player: PlayerSeasonStat,
    pool: Sequence[PlayerSeasonStat],
    base_rating: float = ELO_BASE_RATING,
) -> float:
    """Elo-style rating method.

    rating = base + (performance / best performance in pool) * 500, then
    mapped so 1000 -> 0%, 1500 -> 50%, 2000 -> 100%.

    Returns:
        Score clamped to 0-100

    Raises:
        EmptyPopulationError: If pool is empty
    """
    _require_pool(pool, RankingMethod.ELO)

    max_score = max(performance_score(p) for p in pool)
    rating = base_rating + _ratio(performance_score(player), max_score) * ELO_RANGE

    percentage = (rating - ELO_FLOOR) / 1000 * 100
    return clamp_probability(percentage)


# =============================================================================
# 3. Method Dispatch
# =============================================================================

RankingFunction = Callable[[PlayerSeasonStat, Sequence[PlayerSeasonStat]], float]

METHOD_FUNCTIONS: dict[RankingMethod, RankingFunction] = {
    RankingMethod.ORIGINAL: calculate_weighted_sum,
    RankingMethod.ZSCORE: calculate_zscore,
    RankingMethod.PERCENTILE: calculate_percentile,
    RankingMethod.EXPECTED: calculate_expected_goals,
    RankingMethod.COMPOSITE: calculate_composite_index,
    RankingMethod.ELO: calculate_elo_rating,
}


def resolve_method(method: RankingMethod | str | None) -> RankingMethod:
    """Resolve a method identifier, defaulting to the weighted sum.

    Args:
        method: Enum member, its string value, or None

    Returns:
        Matching RankingMethod, or RankingMethod.ORIGINAL if unrecognized
    """
    if isinstance(method, RankingMethod):
        return method
    if method is None:
        return RankingMethod.ORIGINAL
    try:
        return RankingMethod(str(method).strip().lower())
    except ValueError:
        logger.warning(f"Unknown ranking method '{method}', using original")
        return RankingMethod.ORIGINAL


def calculate_probability(
    player: PlayerSeasonStat,
    pool: Sequence[PlayerSeasonStat],
    method: RankingMethod | str | None = RankingMethod.ORIGINAL,
) -> float:
    """Score a player with the selected ranking method.

    Args:
        player: Normalized season stats
        pool: Reference population (ignored by original and expected)
        method: Ranking method identifier

    Returns:
        Probability in [0, 100]
    """
    return METHOD_FUNCTIONS[resolve_method(method)](player, pool)
