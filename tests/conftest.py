"""Shared pytest fixtures for backend tests."""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient

from hockey_picks.services import standings_cache
from hockey_picks.services.data_store import DataStore
from hockey_picks.services.matchup import TeamStanding
from hockey_picks.services.normalizer import PlayerSeasonStat
from hockey_picks.services.schedule import GameFixture

TORONTO = ZoneInfo("America/Toronto")


@pytest.fixture(autouse=True)
def clear_standings_cache():
    """Standings are cached per process; isolate every test."""
    standings_cache.clear_cache()
    yield
    standings_cache.clear_cache()


@pytest.fixture
async def async_client():
    """Async HTTP client for testing the FastAPI app."""
    from hockey_picks.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def store(tmp_path) -> DataStore:
    """DataStore rooted in a temporary directory."""
    return DataStore(tmp_path / "data", tmp_path / "picks")


def make_record(**overrides: Any) -> dict[str, Any]:
    """Raw skater summary record as returned by the NHL stats API."""
    record = {
        "playerId": 8478402,
        "skaterFullName": "Connor McDavid",
        "teamAbbrevs": "EDM",
        "positionCode": "C",
        "seasonId": 20242025,
        "gamesPlayed": 80,
        "goals": 40,
        "assists": 60,
        "points": 100,
        "shots": 250,
        "shootingPct": 0.16,
        "ppGoals": 10,
        "gameWinningGoals": 6,
        "plusMinus": 15,
        "timeOnIcePerGame": 1290.0,
        "pointsPerGame": 1.25,
    }
    record.update(overrides)
    return record


def make_player(**overrides: Any) -> PlayerSeasonStat:
    """Normalized stat line with sensible defaults."""
    fields = {
        "player_id": 1,
        "full_name": "Test Player",
        "team_abbrevs": "TOR",
        "position_code": "C",
        "season_id": "20252026",
        "games_played": 50,
        "goals": 20,
        "assists": 20,
        "points": 40,
        "shots": 150,
        "shooting_pct": 0.133,
        "pp_goals": 5,
        "game_winning_goals": 3,
        "plus_minus": 5,
        "toi_per_game": 1080.0,
        "points_per_game": 0.8,
    }
    fields.update(overrides)
    return PlayerSeasonStat(**fields)


def make_fixture(home: str, away: str, hour: int = 19) -> GameFixture:
    """Game on 2025-01-15 in Toronto time."""
    return GameFixture(
        home_team=home,
        away_team=away,
        start_time=datetime(2025, 1, 15, hour, 0, tzinfo=TORONTO),
        venue="Scotiabank Arena",
        game_date=date(2025, 1, 15),
    )


@pytest.fixture
def player_factory() -> Callable[..., PlayerSeasonStat]:
    return make_player


@pytest.fixture
def record_factory() -> Callable[..., dict[str, Any]]:
    return make_record


@pytest.fixture
def standings() -> dict[str, list[TeamStanding]]:
    """Two small divisions, already ordered best first."""
    return {
        "Atlantic": [
            TeamStanding("TOR", "Atlantic", 70, 50),
            TeamStanding("BOS", "Atlantic", 65, 50),
            TeamStanding("MTL", "Atlantic", 50, 50),
        ],
        "Pacific": [
            TeamStanding("EDM", "Pacific", 68, 50),
            TeamStanding("VAN", "Pacific", 60, 50),
            TeamStanding("SEA", "Pacific", 40, 50),
        ],
    }
