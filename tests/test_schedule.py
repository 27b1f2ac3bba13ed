"""Tests for team schedules and today's fixtures."""

from datetime import date
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import httpx

from hockey_picks.services.schedule import (
    dedupe_fixtures,
    fetch_all_team_schedules,
    load_todays_fixtures,
    parse_schedule_games,
)
from tests.conftest import make_fixture

TORONTO = ZoneInfo("America/Toronto")
GAME_DAY = date(2025, 1, 15)


def game(home: str, away: str, game_date: str = "2025-01-15", start: str = "2025-01-16T00:00:00Z"):
    return {
        "id": hash((home, away, game_date)) & 0xFFFF,
        "gameDate": game_date,
        "startTimeUTC": start,
        "homeTeam": {"abbrev": home},
        "awayTeam": {"abbrev": away},
        "venue": {"default": f"{home} Arena"},
    }


class TestParseScheduleGames:
    """Tests for parse_schedule_games."""

    def test_keeps_only_requested_date(self):
        schedule = {
            "games": [
                game("TOR", "MTL"),
                game("BOS", "TOR", game_date="2025-01-17", start="2025-01-18T00:00:00Z"),
            ]
        }

        fixtures = parse_schedule_games(schedule, GAME_DAY, TORONTO)

        assert len(fixtures) == 1
        fixture = fixtures[0]
        assert fixture.home_team == "TOR"
        assert fixture.away_team == "MTL"
        assert fixture.venue == "TOR Arena"
        assert fixture.game_date == GAME_DAY

    def test_start_time_in_reporting_timezone(self):
        fixtures = parse_schedule_games({"games": [game("TOR", "MTL")]}, GAME_DAY, TORONTO)

        assert fixtures[0].start_time.hour == 19
        assert fixtures[0].display_time == "7:00 PM"

    def test_game_without_start_time_skipped(self):
        entry = game("TOR", "MTL")
        entry["startTimeUTC"] = None

        assert parse_schedule_games({"games": [entry]}, GAME_DAY, TORONTO) == []

    def test_plain_string_venue(self):
        entry = game("TOR", "MTL")
        entry["venue"] = "Scotiabank Arena"

        fixtures = parse_schedule_games({"games": [entry]}, GAME_DAY, TORONTO)

        assert fixtures[0].venue == "Scotiabank Arena"

    def test_empty_schedule(self):
        assert parse_schedule_games({}, GAME_DAY, TORONTO) == []


class TestGameFixture:
    """Tests for GameFixture helpers."""

    def test_opponent_and_home(self):
        fixture = make_fixture("TOR", "MTL")

        assert fixture.involves("MTL")
        assert not fixture.involves("BOS")
        assert fixture.opponent_of("TOR") == "MTL"
        assert fixture.opponent_of("MTL") == "TOR"
        assert fixture.is_home("TOR")
        assert not fixture.is_home("MTL")


class TestDedupeFixtures:
    """Tests for dedupe_fixtures."""

    def test_same_game_from_both_team_files(self):
        late = make_fixture("EDM", "SEA", hour=22)
        early = make_fixture("TOR", "MTL", hour=19)

        fixtures = dedupe_fixtures([late, early, make_fixture("TOR", "MTL", hour=19), late])

        assert fixtures == [early, late]


class TestFetchAllTeamSchedules:
    """Tests for fetch_all_team_schedules."""

    async def test_fetches_missing_and_skips_cached(self, store):
        store.write_json(store.schedule_file("TOR"), {"games": []})
        provider = AsyncMock()
        provider.get_club_schedule.return_value = {"games": [game("BOS", "MTL")]}

        fetched, skipped = await fetch_all_team_schedules(
            provider, store, ["BOS", "TOR"], "20252026"
        )

        assert (fetched, skipped) == (1, 1)
        provider.get_club_schedule.assert_awaited_once_with("BOS", "20252026")
        assert store.schedule_file("BOS").exists()

    async def test_force_refresh(self, store):
        store.write_json(store.schedule_file("TOR"), {"games": []})
        provider = AsyncMock()
        provider.get_club_schedule.return_value = {"games": [game("TOR", "MTL")]}

        fetched, skipped = await fetch_all_team_schedules(
            provider, store, ["TOR"], "20252026", force_refresh=True
        )

        assert (fetched, skipped) == (1, 0)
        assert store.read_json(store.schedule_file("TOR"))["games"]

    async def test_failed_team_does_not_stop_others(self, store):
        provider = AsyncMock()

        async def fetch(team: str, season_id: str):
            if team == "BOS":
                raise httpx.ConnectError("boom")
            return {"games": []}

        provider.get_club_schedule.side_effect = fetch

        fetched, skipped = await fetch_all_team_schedules(
            provider, store, ["BOS", "TOR"], "20252026"
        )

        assert (fetched, skipped) == (1, 0)
        assert not store.schedule_file("BOS").exists()
        assert store.schedule_file("TOR").exists()


class TestLoadTodaysFixtures:
    """Tests for load_todays_fixtures."""

    def test_reads_every_schedule_file(self, store):
        store.write_json(store.schedule_file("TOR"), {"games": [game("TOR", "MTL")]})
        store.write_json(store.schedule_file("MTL"), {"games": [game("TOR", "MTL")]})
        store.write_json(
            store.schedule_file("EDM"),
            {"games": [game("EDM", "SEA", start="2025-01-16T03:00:00Z")]},
        )

        fixtures = load_todays_fixtures(store, GAME_DAY)

        assert [(f.home_team, f.away_team) for f in fixtures] == [("TOR", "MTL"), ("EDM", "SEA")]

    def test_unreadable_file_skipped(self, store):
        store.write_json(store.schedule_file("TOR"), {"games": [game("TOR", "MTL")]})
        store.schedule_file("BOS").write_text("{broken")

        fixtures = load_todays_fixtures(store, GAME_DAY)

        assert len(fixtures) == 1

    def test_no_schedule_files(self, store):
        assert load_todays_fixtures(store, GAME_DAY) == []
