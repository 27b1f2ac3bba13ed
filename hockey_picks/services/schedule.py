"""Team schedules and today's fixtures.

Each team's season schedule is cached as one JSON file. Today's games are
derived from every cached schedule, so a game shows up once per team file
and has to be de-duplicated by its home/away pair.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol
from zoneinfo import ZoneInfo

import httpx
from tenacity import RetryError

from hockey_picks.services.data_store import DataStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Toronto"


class ScheduleProvider(Protocol):
    """Protocol for the schedule source (NhlApiClient)."""

    async def get_club_schedule(self, team: str, season_id: str) -> dict[str, Any]: ...


@dataclass(slots=True, frozen=True)
class GameFixture:
    """A scheduled game, start time in the reporting timezone."""

    home_team: str
    away_team: str
    start_time: datetime
    venue: str
    game_date: date

    def involves(self, team: str) -> bool:
        return team in (self.home_team, self.away_team)

    def opponent_of(self, team: str) -> str:
        return self.away_team if self.home_team == team else self.home_team

    def is_home(self, team: str) -> bool:
        return self.home_team == team

    @property
    def display_time(self) -> str:
        """Start time like "7:00 PM"."""
        return self.start_time.strftime("%I:%M %p").lstrip("0")


def _parse_utc(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _nested_default(value: Any) -> str:
    """NHL web API names are either plain strings or {"default": ...}."""
    if isinstance(value, dict):
        return value.get("default", "")
    return value or ""


def parse_schedule_games(
    schedule: dict[str, Any],
    on_date: date,
    tz: ZoneInfo,
) -> list[GameFixture]:
    """Extract the games played on a date from one club schedule.

    Args:
        schedule: Raw club-schedule-season response
        on_date: Calendar date to keep
        tz: Reporting timezone for start times

    Returns:
        GameFixture list (possibly empty)
    """
    fixtures = []
    for game in schedule.get("games", []):
        game_date = (game.get("gameDate") or "").split("T")[0]
        if game_date != on_date.isoformat():
            continue

        start_utc = game.get("startTimeUTC")
        if not start_utc:
            logger.warning(f"Skipping game without start time: {game.get('id')}")
            continue

        fixtures.append(
            GameFixture(
                home_team=game.get("homeTeam", {}).get("abbrev", ""),
                away_team=game.get("awayTeam", {}).get("abbrev", ""),
                start_time=_parse_utc(start_utc).astimezone(tz),
                venue=_nested_default(game.get("venue")),
                game_date=on_date,
            )
        )
    return fixtures


def dedupe_fixtures(fixtures: Iterable[GameFixture]) -> list[GameFixture]:
    """Drop repeated games and sort by start time."""
    games: dict[tuple[str, str], GameFixture] = {}
    for fixture in fixtures:
        games.setdefault((fixture.home_team, fixture.away_team), fixture)
    return sorted(games.values(), key=lambda f: f.start_time)


async def fetch_all_team_schedules(
    provider: ScheduleProvider,
    store: DataStore,
    teams: Iterable[str],
    season_id: str,
    force_refresh: bool = False,
) -> tuple[int, int]:
    """Fetch and cache season schedules for every team.

    Existing schedule files are kept unless force_refresh is set. A failed
    fetch is logged and the remaining teams are still processed.

    Returns:
        (fetched, skipped) counts
    """
    fetched = 0
    skipped = 0

    for team in teams:
        schedule_file = store.schedule_file(team)
        if schedule_file.exists() and not force_refresh:
            logger.debug(f"Schedule for {team} already exists, skipping")
            skipped += 1
            continue

        logger.info(f"Fetching schedule for {team}")
        try:
            data = await provider.get_club_schedule(team, season_id)
        except (httpx.HTTPError, RetryError) as e:
            logger.error(f"Error fetching schedule for {team}: {type(e).__name__}: {e}")
            continue

        store.write_json(schedule_file, data)
        fetched += 1

    logger.info(f"Team schedules: {fetched} fetched, {skipped} skipped")
    return fetched, skipped


def load_todays_fixtures(
    store: DataStore,
    on_date: date,
    timezone: str = DEFAULT_TIMEZONE,
) -> list[GameFixture]:
    """Collect the games on a date from every cached team schedule.

    Unreadable schedule files are logged and skipped.
    """
    tz = ZoneInfo(timezone)
    schedule_files = store.schedule_files()
    logger.info(f"Checking {len(schedule_files)} schedule files for games on {on_date}")

    fixtures: list[GameFixture] = []
    for path in schedule_files:
        try:
            schedule = store.read_json(path)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading schedule file {path.name}: {e}")
            continue
        fixtures.extend(parse_schedule_games(schedule, on_date, tz))

    todays_games = dedupe_fixtures(fixtures)

    if not todays_games:
        if not schedule_files:
            logger.warning(f"No schedule files found in {store.data_dir}")
        else:
            logger.info(f"No games scheduled for {on_date}")
    else:
        for game in todays_games:
            logger.info(
                f"{game.away_team} @ {game.home_team} - {game.display_time} ({game.venue})"
            )

    return todays_games
