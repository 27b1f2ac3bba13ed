"""Tests for the player analyzer: ranking, matchup adjustment and rounds."""

import pytest

from hockey_picks.services.analyzer import (
    PlayerStatsSnapshot,
    RankingResult,
    analyze_player,
    compare_methods,
    find_fixture,
    rank_round,
    rank_rounds,
    ranking_differences,
    sort_results,
)
from hockey_picks.services.ranking import RankingMethod, calculate_probability
from tests.conftest import make_fixture, make_player


def result(name: str, probability: float) -> RankingResult:
    player = make_player(full_name=name)
    return RankingResult(
        player_id=player.player_id,
        name=name,
        team=player.team,
        position=player.position_code,
        probability=probability,
        method=RankingMethod.ORIGINAL,
        stats=PlayerStatsSnapshot.from_player(player),
    )


class TestFindFixture:
    """Tests for find_fixture."""

    def test_home_or_away(self):
        fixtures = [make_fixture("TOR", "MTL"), make_fixture("EDM", "SEA")]

        assert find_fixture("MTL", fixtures) is fixtures[0]
        assert find_fixture("EDM", fixtures) is fixtures[1]
        assert find_fixture("BOS", fixtures) is None


class TestAnalyzePlayer:
    """Tests for analyze_player."""

    def test_no_game_today_leaves_probability_unchanged(self, standings):
        player = make_player(team_abbrevs="BOS")
        pool = [player]

        analysis = analyze_player(player, [make_fixture("TOR", "MTL")], standings, pool)

        assert analysis.probability == calculate_probability(player, pool)
        assert analysis.opponent is None
        assert analysis.advantage == 0.0

    def test_matchup_adjusts_probability(self, standings):
        player = make_player(team_abbrevs="TOR")
        pool = [player]
        raw = calculate_probability(player, pool)

        analysis = analyze_player(player, [make_fixture("MTL", "TOR")], standings, pool)

        assert analysis.opponent == "MTL"
        assert analysis.advantage == pytest.approx(0.10)
        assert analysis.probability == round(raw * 1.10, 2)

    def test_opponent_missing_from_standings(self, standings):
        player = make_player(team_abbrevs="TOR")
        pool = [player]

        analysis = analyze_player(player, [make_fixture("TOR", "UTA")], standings, pool)

        assert analysis.opponent == "UTA"
        assert analysis.advantage == 0.0
        assert analysis.probability == calculate_probability(player, pool)

    def test_no_standings(self):
        player = make_player(team_abbrevs="TOR")

        analysis = analyze_player(player, [make_fixture("TOR", "MTL")], None, [player])

        assert analysis.advantage == 0.0

    def test_uses_current_team_of_traded_player(self, standings):
        player = make_player(team_abbrevs="EDM,MTL")

        analysis = analyze_player(player, [make_fixture("TOR", "MTL")], standings, [player])

        assert analysis.team == "MTL"
        assert analysis.opponent == "TOR"

    def test_records_resolved_method(self, standings):
        player = make_player()

        analysis = analyze_player(player, [], standings, [player], "bogus")

        assert analysis.method == RankingMethod.ORIGINAL

    def test_stats_snapshot(self):
        player = make_player(goals=12, toi_per_game=1000.0, season_id="20242025")

        analysis = analyze_player(player, [], None, [player])

        assert analysis.stats.goals == 12
        assert analysis.stats.toi == 1000.0
        assert analysis.stats.season_id == "20242025"


class TestSorting:
    """Tests for result ordering."""

    def test_numeric_not_lexicographic(self):
        """9.5 sorts below 10.2 (a string sort would reverse them)."""
        ranked = sort_results([result("A", 9.5), result("B", 10.2), result("C", 100.0)])

        assert [r.name for r in ranked] == ["C", "B", "A"]

    def test_stable_for_ties(self):
        ranked = sort_results([result("A", 10.0), result("B", 10.0)])

        assert [r.name for r in ranked] == ["A", "B"]

    def test_formatted_probability(self):
        assert result("A", 9.5).formatted_probability == "9.50"


class TestRankRounds:
    """Tests for rank_round / rank_rounds."""

    def test_round_sorted_highest_first(self):
        candidates = [
            make_player(player_id=1, full_name="Low", goals=5, shots=50),
            make_player(player_id=2, full_name="High", goals=40, shots=300),
        ]

        ranked = rank_round(candidates, [], None, candidates)

        assert [r.name for r in ranked] == ["High", "Low"]

    def test_picks_are_top_of_each_round(self):
        rounds = [
            [make_player(player_id=1, full_name="A", goals=5), make_player(player_id=2, full_name="B", goals=30)],
            [],
            [make_player(player_id=3, full_name="C")],
        ]
        pool = [p for r in rounds for p in r]

        analysis = rank_rounds(rounds, [], None, pool, "zscore")

        assert analysis.method == RankingMethod.ZSCORE
        assert analysis.picks == ["B", "C"]
        assert len(analysis.rounds) == 3
        assert analysis.rounds[1] == []
        assert analysis.total_players == 3


class TestCompareMethods:
    """Tests for compare_methods / ranking_differences."""

    def test_one_ranking_per_method(self):
        candidates = [make_player(player_id=i, goals=i * 5) for i in range(1, 4)]

        comparison = compare_methods(candidates, [], None, candidates)

        assert set(comparison) == set(RankingMethod)
        for method, ranked in comparison.items():
            assert len(ranked) == 3
            assert all(r.method == method for r in ranked)

    def test_ranking_differences(self):
        comparison = {
            RankingMethod.ORIGINAL: [result("A", 30.0), result("B", 20.0)],
            RankingMethod.ZSCORE: [result("B", 60.0), result("A", 40.0)],
        }

        differences = ranking_differences(
            comparison, RankingMethod.ORIGINAL, RankingMethod.ZSCORE
        )

        assert differences == [("A", 30.0, 60.0, -30.0), ("B", 20.0, 40.0, -20.0)]

    def test_ranking_differences_missing_method(self):
        assert ranking_differences({}, RankingMethod.ORIGINAL, RankingMethod.ELO) == []
