"""Player record normalization.

Maps raw skater summary records from the NHL stats API onto the canonical
metric set used by every ranking method.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


def safe_int(val: Any, default: int = 0) -> int:
    """Safely convert API value to int, handling None and empty strings."""
    if val is None or val == "":
        return default
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def safe_float(val: Any, default: float = 0.0) -> float:
    """Safely convert API value to float, handling None and empty strings."""
    if val is None or val == "":
        return default
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


def current_team(team_abbrevs: str) -> str:
    """Return the most recent team from a comma-separated team list.

    Traded players carry every team they played for in the season, e.g.
    "NYR,TOR"; the last entry is their current club.
    """
    if not team_abbrevs:
        return ""
    return team_abbrevs.split(",")[-1].strip()


@dataclass(slots=True, frozen=True)
class PlayerSeasonStat:
    """One skater's regular season statistics."""

    player_id: int
    full_name: str
    team_abbrevs: str
    position_code: str  # L, C, R or D
    season_id: str
    games_played: int
    goals: int
    assists: int
    points: int
    shots: int
    shooting_pct: float  # fraction 0-1
    pp_goals: int
    game_winning_goals: int
    plus_minus: int
    toi_per_game: float  # seconds
    points_per_game: float

    @property
    def team(self) -> str:
        return current_team(self.team_abbrevs)

    @property
    def toi_minutes(self) -> float:
        return self.toi_per_game / 60

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> "PlayerSeasonStat":
        """Build a stat line from a skater summary record.

        Missing or null numeric fields become 0. Points per game is derived
        from points and games played when the API omits it.
        """
        games_played = max(safe_int(record.get("gamesPlayed")), 0)
        goals = safe_int(record.get("goals"))
        points = safe_int(record.get("points"))

        assists = record.get("assists")
        assists = safe_int(assists) if assists is not None else points - goals

        points_per_game = record.get("pointsPerGame")
        if points_per_game is None:
            points_per_game = points / games_played if games_played > 0 else 0.0

        shooting_pct = min(max(safe_float(record.get("shootingPct")), 0.0), 1.0)

        return cls(
            player_id=safe_int(record.get("playerId")),
            full_name=record.get("skaterFullName") or "",
            team_abbrevs=record.get("teamAbbrevs") or "",
            position_code=record.get("positionCode") or "",
            season_id=str(record.get("seasonId") or ""),
            games_played=games_played,
            goals=goals,
            assists=assists,
            points=points,
            shots=safe_int(record.get("shots")),
            shooting_pct=shooting_pct,
            pp_goals=safe_int(record.get("ppGoals")),
            game_winning_goals=safe_int(record.get("gameWinningGoals")),
            plus_minus=safe_int(record.get("plusMinus")),
            toi_per_game=safe_float(record.get("timeOnIcePerGame")),
            points_per_game=safe_float(points_per_game),
        )

    def to_api(self) -> dict[str, Any]:
        """Serialize back to the skater summary record shape."""
        return {
            "playerId": self.player_id,
            "skaterFullName": self.full_name,
            "teamAbbrevs": self.team_abbrevs,
            "positionCode": self.position_code,
            "seasonId": self.season_id,
            "gamesPlayed": self.games_played,
            "goals": self.goals,
            "assists": self.assists,
            "points": self.points,
            "shots": self.shots,
            "shootingPct": self.shooting_pct,
            "ppGoals": self.pp_goals,
            "gameWinningGoals": self.game_winning_goals,
            "plusMinus": self.plus_minus,
            "timeOnIcePerGame": self.toi_per_game,
            "pointsPerGame": self.points_per_game,
        }


def normalize_records(records: Iterable[dict[str, Any]]) -> list[PlayerSeasonStat]:
    """Normalize a list of raw skater summary records."""
    return [PlayerSeasonStat.from_api(r) for r in records]


def teams_from_players(players: Iterable[PlayerSeasonStat]) -> list[str]:
    """Sorted unique list of current teams across the given players."""
    return sorted({p.team for p in players if p.team})
