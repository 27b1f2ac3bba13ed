"""Tests for division standings and the matchup advantage."""

import pytest

from hockey_picks.services.matchup import (
    CROSS_DIVISION_FACTOR,
    SAME_DIVISION_FACTOR,
    apply_advantage,
    calculate_team_advantage,
    find_team_rank,
    group_standings,
)


class TestGroupStandings:
    """Tests for group_standings."""

    def test_groups_and_sorts_by_points_then_games(self):
        rows = [
            {"teamAbbrev": {"default": "BOS"}, "divisionName": "Atlantic", "points": 60, "gamesPlayed": 50},
            {"teamAbbrev": {"default": "TOR"}, "divisionName": "Atlantic", "points": 60, "gamesPlayed": 48},
            {"teamAbbrev": {"default": "MTL"}, "divisionName": "Atlantic", "points": 70, "gamesPlayed": 50},
            {"teamAbbrev": {"default": "EDM"}, "divisionName": "Pacific", "points": 65, "gamesPlayed": 50},
        ]

        standings = group_standings(rows)

        assert set(standings) == {"Atlantic", "Pacific"}
        assert [t.team for t in standings["Atlantic"]] == ["MTL", "TOR", "BOS"]
        assert standings["Pacific"][0].points == 65

    def test_plain_string_abbrev_and_missing_division(self):
        standings = group_standings([{"teamAbbrev": "SEA", "points": "10", "gamesPlayed": None}])

        assert standings["Unknown"][0].team == "SEA"
        assert standings["Unknown"][0].points == 10
        assert standings["Unknown"][0].games_played == 0

    def test_rows_without_team_skipped(self):
        assert group_standings([{"divisionName": "Atlantic", "points": 10}]) == {}


class TestFindTeamRank:
    """Tests for find_team_rank."""

    def test_rank_is_one_based(self, standings):
        assert find_team_rank("TOR", standings) == (1, "Atlantic")
        assert find_team_rank("SEA", standings) == (3, "Pacific")

    def test_missing_team(self, standings):
        assert find_team_rank("XYZ", standings) is None

    def test_no_standings(self):
        assert find_team_rank("TOR", None) is None
        assert find_team_rank("TOR", {}) is None


class TestTeamAdvantage:
    """Tests for calculate_team_advantage."""

    def test_same_division_two_places(self, standings):
        """TOR (1st) vs MTL (3rd): 2 * 0.05."""
        assert calculate_team_advantage("TOR", "MTL", standings) == pytest.approx(0.10)

    def test_cross_division_two_places(self, standings):
        """TOR (1st Atlantic) vs SEA (3rd Pacific): 2 * 0.03."""
        assert calculate_team_advantage("TOR", "SEA", standings) == pytest.approx(0.06)

    def test_worse_team_gets_negative_delta(self, standings):
        assert calculate_team_advantage("MTL", "TOR", standings) == pytest.approx(
            -2 * SAME_DIVISION_FACTOR
        )
        assert calculate_team_advantage("VAN", "BOS", standings) == 0.0

    def test_cross_division_factor(self, standings):
        assert calculate_team_advantage("SEA", "TOR", standings) == pytest.approx(
            -2 * CROSS_DIVISION_FACTOR
        )

    def test_missing_team_is_zero(self, standings):
        assert calculate_team_advantage("TOR", "XYZ", standings) == 0.0
        assert calculate_team_advantage("XYZ", "TOR", standings) == 0.0

    def test_no_standings_is_zero(self):
        assert calculate_team_advantage("TOR", "MTL", None) == 0.0


class TestApplyAdvantage:
    """Tests for apply_advantage."""

    def test_multiplicative(self):
        assert apply_advantage(50.0, 0.10) == 55.0
        assert apply_advantage(50.0, -0.10) == 45.0

    def test_reclamped(self):
        assert apply_advantage(98.0, 0.10) == 100.0
        assert apply_advantage(10.0, -1.5) == 0.0
