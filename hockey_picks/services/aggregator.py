"""Season aggregation - per-season player pools with file caching.

Cache policy:
- Completed seasons never change, so any cached copy is used forever
- Other seasons are only trusted on the day they were captured
- A corrupted cache file is logged and refetched

The combined pool is the plain concatenation of every season's records, so
a player who played both seasons appears once per season.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol

import httpx
from tenacity import RetryError

from hockey_picks.services.data_store import DataStore
from hockey_picks.services.normalizer import (
    PlayerSeasonStat,
    normalize_records,
    teams_from_players,
)

logger = logging.getLogger(__name__)


class StatsProvider(Protocol):
    """Protocol for the skater stats source (NhlApiClient)."""

    async def get_season_player_stats(self, season_id: str) -> list[dict[str, Any]]: ...


class NoPlayerDataError(RuntimeError):
    """No season produced any player data."""


@dataclass(slots=True)
class SeasonPool:
    """Combined ranking population and the teams it covers."""

    players: list[PlayerSeasonStat]
    teams: list[str]
    season_counts: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class SeasonCacheStatus:
    """State of one season's cache file."""

    season_id: str
    cached: bool
    permanent: bool
    size_kb: float | None = None
    captured_on: date | None = None
    corrupted: bool = False


@dataclass(slots=True, frozen=True)
class SeasonLine:
    """A player's headline numbers for one season."""

    season_id: str
    goals: int = 0
    points: int = 0
    games_played: int = 0
    plus_minus: int = 0
    toi: float = 0.0  # seconds per game


@dataclass(slots=True, frozen=True)
class PlayerRollup:
    """A player's seasons side by side plus multi-season totals."""

    player_id: int
    name: str
    seasons: dict[str, SeasonLine]
    goals: int
    points: int
    games_played: int
    plus_minus: int
    toi_per_game: float  # seconds, weighted by games played


def _parse_cache(data: Any) -> tuple[date | None, list[dict[str, Any]]]:
    """Split a season cache file into (captured_on, records)."""
    if isinstance(data, list):
        # Bare record list: no capture date recorded
        captured, records = None, data
    elif isinstance(data, dict) and isinstance(data.get("players"), list):
        captured, records = data.get("captured_on"), data["players"]
    else:
        raise ValueError("season cache is neither a record list nor a cache envelope")

    if captured is not None and not isinstance(captured, str):
        raise ValueError(f"captured_on must be an ISO date string, got {captured!r}")
    if not all(isinstance(record, dict) for record in records):
        raise ValueError("season cache holds non-object player records")
    return (date.fromisoformat(captured) if captured else None), records


class SeasonAggregator:
    """Loads season player pools from cache or the stats provider."""

    def __init__(
        self,
        provider: StatsProvider,
        store: DataStore,
        completed_seasons: Iterable[str] = (),
        today: Callable[[], date] = date.today,
    ) -> None:
        self.provider = provider
        self.store = store
        self.completed_seasons = set(completed_seasons)
        self._today = today

    def is_completed(self, season_id: str) -> bool:
        return season_id in self.completed_seasons

    def _load_cached(self, season_id: str) -> list[dict[str, Any]] | None:
        """Return cached records if the cache is valid under the policy."""
        path = self.store.season_file(season_id)
        if not path.exists():
            return None

        try:
            captured_on, records = _parse_cache(self.store.read_json(path))
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error(f"Error reading cached data for {season_id}: {e}, refetching")
            return None

        if self.is_completed(season_id):
            logger.info(f"Using permanent cache for {season_id} ({len(records)} players)")
            return records

        if captured_on == self._today():
            logger.info(f"Using today's cached data for {season_id} ({len(records)} players)")
            return records

        logger.info(f"Cached data for {season_id} is from {captured_on}, refetching")
        return None

    async def load_season(
        self, season_id: str, force_refresh: bool = False
    ) -> list[PlayerSeasonStat]:
        """Load one season's players, fetching and caching when needed.

        Args:
            season_id: Season identifier, e.g. "20242025"
            force_refresh: Ignore any cache (completed seasons included)

        Returns:
            Normalized players; empty list if the fetch failed
        """
        records = None if force_refresh else self._load_cached(season_id)

        if records is None:
            logger.info(f"Fetching fresh data for {season_id} season")
            try:
                records = await self.provider.get_season_player_stats(season_id)
            except (httpx.HTTPError, RetryError) as e:
                logger.error(
                    f"Error fetching player stats for {season_id}: {type(e).__name__}: {e}"
                )
                return []

            if records:
                self.store.write_json(
                    self.store.season_file(season_id),
                    {
                        "season_id": season_id,
                        "captured_on": self._today().isoformat(),
                        "players": records,
                    },
                )
                logger.info(f"Cached {len(records)} players for {season_id} season")

        return normalize_records(records)

    async def load_pool(
        self, season_ids: Sequence[str], force_refresh: bool = False
    ) -> SeasonPool:
        """Load and concatenate several seasons into one ranking pool.

        Raises:
            NoPlayerDataError: If no season returned any players
        """
        players: list[PlayerSeasonStat] = []
        season_counts: dict[str, int] = {}

        for season_id in season_ids:
            season_players = await self.load_season(season_id, force_refresh)
            season_counts[season_id] = len(season_players)
            players.extend(season_players)

        if not players:
            raise NoPlayerDataError(
                f"No player data available for seasons {', '.join(season_ids)}"
            )

        for season_id, count in season_counts.items():
            share = count / len(players) * 100
            logger.info(f"  {season_id}: {count} players ({share:.1f}%)")
        logger.info(f"Total players loaded: {len(players)}")

        return SeasonPool(
            players=players,
            teams=teams_from_players(players),
            season_counts=season_counts,
        )

    def cache_status(self, season_ids: Iterable[str]) -> list[SeasonCacheStatus]:
        """Describe the cache file of each season."""
        statuses = []
        for season_id in season_ids:
            path = self.store.season_file(season_id)
            permanent = self.is_completed(season_id)
            if not path.exists():
                statuses.append(
                    SeasonCacheStatus(season_id=season_id, cached=False, permanent=permanent)
                )
                continue

            size_kb = round(path.stat().st_size / 1024, 1)
            try:
                captured_on, _records = _parse_cache(self.store.read_json(path))
            except (OSError, ValueError):
                statuses.append(
                    SeasonCacheStatus(
                        season_id=season_id,
                        cached=True,
                        permanent=permanent,
                        size_kb=size_kb,
                        corrupted=True,
                    )
                )
                continue

            statuses.append(
                SeasonCacheStatus(
                    season_id=season_id,
                    cached=True,
                    permanent=permanent,
                    size_kb=size_kb,
                    captured_on=captured_on,
                )
            )
        return statuses


def rollup_player(
    player_id: int,
    pool: Iterable[PlayerSeasonStat],
    season_ids: Sequence[str],
) -> PlayerRollup | None:
    """Combine a player's season lines across seasons.

    Goals, points, games and plus/minus are summed. Time on ice per game is
    averaged weighted by games played, since a 5-game season shouldn't
    count as much as an 80-game one.

    Args:
        player_id: Player identifier
        pool: Combined pool (one record per player per season)
        season_ids: Seasons to report, in display order

    Returns:
        PlayerRollup, or None if the player isn't in the pool
    """
    records = [p for p in pool if p.player_id == player_id]
    if not records:
        return None

    seasons = {season_id: SeasonLine(season_id=season_id) for season_id in season_ids}
    for record in records:
        seasons[record.season_id] = SeasonLine(
            season_id=record.season_id,
            goals=record.goals,
            points=record.points,
            games_played=record.games_played,
            plus_minus=record.plus_minus,
            toi=record.toi_per_game,
        )

    total_games = sum(r.games_played for r in records)
    if total_games > 0:
        toi_per_game = sum(r.toi_per_game * r.games_played for r in records) / total_games
    else:
        toi_per_game = 0.0

    return PlayerRollup(
        player_id=player_id,
        name=records[-1].full_name,
        seasons=seasons,
        goals=sum(r.goals for r in records),
        points=sum(r.points for r in records),
        games_played=total_games,
        plus_minus=sum(r.plus_minus for r in records),
        toi_per_game=toi_per_game,
    )
