"""Goals vs ice time analysis.

Pure functions with no I/O. Correlation over a constant series is
undefined; it is reported as None rather than NaN.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from statistics import StatisticsError, correlation

from hockey_picks.services.normalizer import PlayerSeasonStat

logger = logging.getLogger(__name__)

MIN_GAMES_FOR_EFFICIENCY = 5
TOP_SCORERS_LIMIT = 20
TOP_EFFICIENT_LIMIT = 10


@dataclass(slots=True, frozen=True)
class IceTimeLine:
    """A player's goals relative to total ice time."""

    name: str
    team: str
    goals: int
    games_played: int
    total_toi_minutes: float
    goals_per_hour: float
    average_toi_minutes: float


@dataclass(slots=True)
class IceTimeAnalysis:
    """Result of analyze_goals_and_toi()."""

    players: list[IceTimeLine]
    correlation: float | None  # None when undefined

    @property
    def top_scorers(self) -> list[IceTimeLine]:
        return self.players[:TOP_SCORERS_LIMIT]

    @property
    def most_efficient(self) -> list[IceTimeLine]:
        eligible = [p for p in self.players if p.games_played >= MIN_GAMES_FOR_EFFICIENCY]
        eligible.sort(key=lambda p: -p.goals_per_hour)
        return eligible[:TOP_EFFICIENT_LIMIT]


def calculate_correlation(x: Sequence[float], y: Sequence[float]) -> float | None:
    """Pearson correlation coefficient.

    Args:
        x: First series
        y: Second series, same length as x

    Returns:
        r in [-1, 1], or None if undefined (length mismatch, fewer than two
        points, or either series has zero variance)
    """
    if len(x) != len(y):
        return None
    try:
        return correlation(x, y)
    except StatisticsError:
        return None


def ice_time_line(player: PlayerSeasonStat) -> IceTimeLine:
    """Goals and ice-time figures for one stat line."""
    total_toi_minutes = player.toi_per_game * player.games_played / 60
    if total_toi_minutes > 0:
        goals_per_hour = player.goals / total_toi_minutes * 60
    else:
        goals_per_hour = 0.0

    return IceTimeLine(
        name=player.full_name,
        team=player.team,
        goals=player.goals,
        games_played=player.games_played,
        total_toi_minutes=total_toi_minutes,
        goals_per_hour=goals_per_hour,
        average_toi_minutes=player.toi_minutes,
    )


def analyze_goals_and_toi(players: Iterable[PlayerSeasonStat]) -> IceTimeAnalysis:
    """Build the goals/ice-time table and its TOI-goals correlation."""
    lines = sorted((ice_time_line(p) for p in players), key=lambda p: -p.goals)

    r = calculate_correlation(
        [p.total_toi_minutes for p in lines],
        [float(p.goals) for p in lines],
    )
    if r is None:
        logger.warning(
            f"Correlation between total TOI and goals is undefined "
            f"({len(lines)} players; constant or too few values)"
        )
    else:
        logger.info(f"Correlation coefficient between total TOI and goals: {r:.3f}")

    return IceTimeAnalysis(players=lines, correlation=r)
