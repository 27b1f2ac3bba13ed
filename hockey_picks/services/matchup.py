"""Matchup advantage from division standings.

A player's score is nudged up when the player's team sits above tonight's
opponent in the standings and down when it sits below:
- Same division: 5% per position difference
- Different divisions: 3% per position difference
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from hockey_picks.services.normalizer import safe_int
from hockey_picks.services.ranking import clamp_probability

logger = logging.getLogger(__name__)

SAME_DIVISION_FACTOR = 0.05
CROSS_DIVISION_FACTOR = 0.03


@dataclass(slots=True, frozen=True)
class TeamStanding:
    """A team's line in the league standings."""

    team: str
    division: str
    points: int
    games_played: int


Standings = Mapping[str, Sequence[TeamStanding]]


def _team_abbrev(row: dict[str, Any]) -> str:
    abbrev = row.get("teamAbbrev")
    if isinstance(abbrev, dict):
        return abbrev.get("default", "")
    return abbrev or ""


def group_standings(rows: Iterable[dict[str, Any]]) -> dict[str, list[TeamStanding]]:
    """Group raw standings rows by division and sort each division.

    Teams are ordered by points descending, then games played ascending
    (fewer games for the same points ranks higher).

    Args:
        rows: Entries of the standings endpoint's "standings" array

    Returns:
        Dict mapping division name to its ordered TeamStanding list
    """
    divisions: dict[str, list[TeamStanding]] = {}
    for row in rows:
        team = _team_abbrev(row)
        if not team:
            logger.warning(f"Skipping standings row without team abbreviation: {row}")
            continue
        standing = TeamStanding(
            team=team,
            division=row.get("divisionName") or "Unknown",
            points=safe_int(row.get("points")),
            games_played=safe_int(row.get("gamesPlayed")),
        )
        divisions.setdefault(standing.division, []).append(standing)

    for teams in divisions.values():
        teams.sort(key=lambda t: (-t.points, t.games_played))

    return divisions


def find_team_rank(team: str, standings: Standings | None) -> tuple[int, str] | None:
    """Find a team's 1-based rank within its division.

    Returns:
        (rank, division) tuple, or None if the team isn't in the standings
    """
    if not standings:
        return None
    for division, teams in standings.items():
        for index, standing in enumerate(teams):
            if standing.team == team:
                return index + 1, division
    return None


def calculate_team_advantage(
    player_team: str,
    opposing_team: str,
    standings: Standings | None,
) -> float:
    """Signed multiplier delta from the two teams' division ranks.

    A lower rank number than the opponent yields a positive delta.

    Args:
        player_team: Abbreviation of the player's team
        opposing_team: Abbreviation of tonight's opponent
        standings: Division standings from group_standings()

    Returns:
        Delta to apply as probability * (1 + delta); 0.0 if either team
        is missing from the standings
    """
    player_rank = find_team_rank(player_team, standings)
    opposing_rank = find_team_rank(opposing_team, standings)

    if player_rank is None or opposing_rank is None:
        return 0.0

    rank_difference = opposing_rank[0] - player_rank[0]
    if player_rank[1] == opposing_rank[1]:
        return rank_difference * SAME_DIVISION_FACTOR
    return rank_difference * CROSS_DIVISION_FACTOR


def apply_advantage(probability: float, delta: float) -> float:
    """Apply a matchup delta multiplicatively and re-clamp."""
    return clamp_probability(probability * (1 + delta))
