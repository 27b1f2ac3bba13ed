"""Player analysis: ranking method + matchup adjustment -> RankingResult.

Everything here is synchronous and stateless per call so the same small
candidate set can be re-ranked once per method for comparison.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from hockey_picks.services.matchup import (
    Standings,
    apply_advantage,
    calculate_team_advantage,
)
from hockey_picks.services.normalizer import PlayerSeasonStat
from hockey_picks.services.ranking import (
    RankingMethod,
    calculate_probability,
    clamp_probability,
    resolve_method,
)
from hockey_picks.services.schedule import GameFixture

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PlayerStatsSnapshot:
    """Raw stats shown next to a ranking result."""

    goals: int
    points: int
    plus_minus: int
    games_played: int
    team_abbrevs: str
    toi: float  # seconds per game
    season_id: str

    @classmethod
    def from_player(cls, player: PlayerSeasonStat) -> "PlayerStatsSnapshot":
        return cls(
            goals=player.goals,
            points=player.points,
            plus_minus=player.plus_minus,
            games_played=player.games_played,
            team_abbrevs=player.team_abbrevs,
            toi=player.toi_per_game,
            season_id=player.season_id,
        )


@dataclass(slots=True, frozen=True)
class RankingResult:
    """A player's scoring probability under one ranking method."""

    player_id: int
    name: str
    team: str
    position: str
    probability: float
    method: RankingMethod
    stats: PlayerStatsSnapshot
    opponent: str | None = None
    advantage: float = 0.0

    @property
    def formatted_probability(self) -> str:
        """Probability with two decimals, for display only."""
        return f"{self.probability:.2f}"


@dataclass(slots=True)
class RoundsAnalysis:
    """Ranked pick rounds and the top pick of each."""

    method: RankingMethod
    rounds: list[list[RankingResult]] = field(default_factory=list)
    picks: list[str] = field(default_factory=list)

    @property
    def total_players(self) -> int:
        return sum(len(r) for r in self.rounds)


def find_fixture(team: str, fixtures: Iterable[GameFixture]) -> GameFixture | None:
    """Find today's game for a team (at most one per day)."""
    for fixture in fixtures:
        if fixture.involves(team):
            return fixture
    return None


def analyze_player(
    player: PlayerSeasonStat,
    fixtures: Sequence[GameFixture],
    standings: Standings | None,
    pool: Sequence[PlayerSeasonStat],
    method: RankingMethod | str | None = RankingMethod.ORIGINAL,
) -> RankingResult:
    """Score one player and adjust for tonight's matchup.

    The matchup adjustment only applies when the player's team plays
    today; teams missing from the standings get no adjustment.

    Args:
        player: Candidate's season stats
        fixtures: Today's games
        standings: Division standings (None if unavailable)
        pool: Reference population for relative methods
        method: Ranking method identifier (unknown -> original)

    Returns:
        RankingResult with a probability in [0, 100]
    """
    resolved = resolve_method(method)
    probability = calculate_probability(player, pool, resolved)

    team = player.team
    opponent = None
    advantage = 0.0

    fixture = find_fixture(team, fixtures)
    if fixture is not None:
        opponent = fixture.opponent_of(team)
        advantage = calculate_team_advantage(team, opponent, standings)
        probability = apply_advantage(probability, advantage)

    return RankingResult(
        player_id=player.player_id,
        name=player.full_name,
        team=team,
        position=player.position_code,
        probability=clamp_probability(probability),
        method=resolved,
        stats=PlayerStatsSnapshot.from_player(player),
        opponent=opponent,
        advantage=advantage,
    )


def sort_results(results: Iterable[RankingResult]) -> list[RankingResult]:
    """Order results by numeric probability, highest first (stable)."""
    return sorted(results, key=lambda r: -r.probability)


def rank_round(
    candidates: Iterable[PlayerSeasonStat],
    fixtures: Sequence[GameFixture],
    standings: Standings | None,
    pool: Sequence[PlayerSeasonStat],
    method: RankingMethod | str | None = RankingMethod.ORIGINAL,
) -> list[RankingResult]:
    """Rank every candidate of one pick round."""
    return sort_results(
        analyze_player(player, fixtures, standings, pool, method) for player in candidates
    )


def rank_rounds(
    rounds: Iterable[Sequence[PlayerSeasonStat]],
    fixtures: Sequence[GameFixture],
    standings: Standings | None,
    pool: Sequence[PlayerSeasonStat],
    method: RankingMethod | str | None = RankingMethod.ORIGINAL,
) -> RoundsAnalysis:
    """Rank all rounds; the top result of each non-empty round is its pick."""
    resolved = resolve_method(method)
    analysis = RoundsAnalysis(method=resolved)

    for index, candidates in enumerate(rounds, start=1):
        ranked = rank_round(candidates, fixtures, standings, pool, resolved)
        analysis.rounds.append(ranked)
        if ranked:
            analysis.picks.append(ranked[0].name)
        else:
            logger.info(f"Round {index} has no eligible candidates")

    return analysis


def compare_methods(
    candidates: Sequence[PlayerSeasonStat],
    fixtures: Sequence[GameFixture],
    standings: Standings | None,
    pool: Sequence[PlayerSeasonStat],
    methods: Iterable[RankingMethod] = tuple(RankingMethod),
) -> dict[RankingMethod, list[RankingResult]]:
    """Rank the same candidates once per method for side-by-side display."""
    return {
        method: rank_round(candidates, fixtures, standings, pool, method)
        for method in methods
    }


def ranking_differences(
    comparison: dict[RankingMethod, list[RankingResult]],
    first: RankingMethod,
    second: RankingMethod,
    top: int = 3,
) -> list[tuple[str, float, float, float]]:
    """Compare two methods position by position.

    Returns:
        (name at position under first, first prob, second prob, difference)
        for the top N positions present in both rankings
    """
    first_results = comparison.get(first, [])
    second_results = comparison.get(second, [])

    differences = []
    for a, b in zip(first_results[:top], second_results[:top]):
        differences.append(
            (a.name, a.probability, b.probability, round(a.probability - b.probability, 2))
        )
    return differences
