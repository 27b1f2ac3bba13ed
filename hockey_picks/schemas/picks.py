"""Pick snapshot and API response schemas.

These Pydantic models serialize the service dataclasses. They can be
populated directly with model_validate(obj, from_attributes=True).
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from hockey_picks.services.analyzer import RoundsAnalysis
from hockey_picks.services.matchup import TeamStanding
from hockey_picks.services.ranking import RankingMethod
from hockey_picks.services.schedule import GameFixture


class PlayerStatsModel(BaseModel):
    """Raw season stats attached to a ranked player."""

    model_config = ConfigDict(from_attributes=True)

    goals: int
    points: int
    plus_minus: int
    games_played: int
    team_abbrevs: str
    toi: float
    season_id: str


class RankedPlayerModel(BaseModel):
    """A ranked candidate in a pick round."""

    model_config = ConfigDict(from_attributes=True)

    player_id: int
    name: str
    team: str
    position: str
    probability: float = Field(ge=0, le=100)
    method: RankingMethod
    opponent: str | None = None
    advantage: float = 0.0
    stats: PlayerStatsModel


class RoundModel(BaseModel):
    """One ranked pick round."""

    round: int = Field(ge=1)
    players: list[RankedPlayerModel]


class FixtureModel(BaseModel):
    """A game scheduled for the report date."""

    model_config = ConfigDict(from_attributes=True)

    home_team: str
    away_team: str
    start_time: datetime
    venue: str
    game_date: date


class StandingModel(BaseModel):
    """A team's division standing."""

    team: str
    division: str
    points: int
    games_played: int
    rank: int = Field(ge=1)


class SummaryModel(BaseModel):
    """Run summary."""

    total_rounds: int
    total_players_analyzed: int
    ranking_method: RankingMethod
    games_today: int


class PicksSnapshot(BaseModel):
    """Everything recorded for one analysis run."""

    timestamp: datetime
    run_date: date
    todays_games: list[FixtureModel]
    standings: dict[str, list[StandingModel]] | None = None
    final_choices: list[str]
    detailed_analysis: list[RoundModel]
    summary: SummaryModel

    @classmethod
    def build(
        cls,
        analysis: RoundsAnalysis,
        fixtures: Sequence[GameFixture],
        standings: Mapping[str, Sequence[TeamStanding]] | None,
        timestamp: datetime,
    ) -> "PicksSnapshot":
        """Assemble a snapshot from a finished ranking run."""
        return cls(
            timestamp=timestamp,
            run_date=timestamp.date(),
            todays_games=[FixtureModel.model_validate(f) for f in fixtures],
            standings=standings_to_models(standings),
            final_choices=list(analysis.picks),
            detailed_analysis=[
                RoundModel(
                    round=index,
                    players=[RankedPlayerModel.model_validate(r) for r in ranked],
                )
                for index, ranked in enumerate(analysis.rounds, start=1)
            ],
            summary=SummaryModel(
                total_rounds=len(analysis.rounds),
                total_players_analyzed=analysis.total_players,
                ranking_method=analysis.method,
                games_today=len(fixtures),
            ),
        )


def standings_to_models(
    standings: Mapping[str, Sequence[TeamStanding]] | None,
) -> dict[str, list[StandingModel]] | None:
    """Convert grouped standings to response models with ranks."""
    if standings is None:
        return None
    return {
        division: [
            StandingModel(
                team=t.team,
                division=t.division,
                points=t.points,
                games_played=t.games_played,
                rank=index,
            )
            for index, t in enumerate(teams, start=1)
        ]
        for division, teams in standings.items()
    }


class PicksFileInfo(BaseModel):
    """A saved picks snapshot on disk."""

    run_date: str
    filename: str
    size_bytes: int
    modified: datetime


class MethodInfo(BaseModel):
    """A selectable ranking method."""

    method: RankingMethod
    description: str
    population_relative: bool
    is_default: bool = False


class SeasonCacheStatusModel(BaseModel):
    """Cache state of one season's player pool."""

    model_config = ConfigDict(from_attributes=True)

    season_id: str
    cached: bool
    permanent: bool
    size_kb: float | None = None
    captured_on: date | None = None
    corrupted: bool = False


class StandingsCacheStats(BaseModel):
    """In-process standings cache state."""

    cached_dates: list[str]
    last_fetch: float = Field(description="Unix time of the last fetch, 0 if none yet")
    ttl_seconds: int
