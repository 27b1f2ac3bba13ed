"""HTML email report of the day's ranked pick rounds."""

import asyncio
import logging
import smtplib
import ssl
from collections.abc import Sequence
from datetime import date
from email.message import EmailMessage
from html import escape

from hockey_picks.services.aggregator import rollup_player
from hockey_picks.services.analyzer import RankingResult, RoundsAnalysis, find_fixture
from hockey_picks.services.matchup import Standings, find_team_rank
from hockey_picks.services.normalizer import PlayerSeasonStat
from hockey_picks.services.ranking import METRIC_WEIGHTS
from hockey_picks.services.schedule import GameFixture

logger = logging.getLogger(__name__)

TOP_PICKS_DETAILED = 3
TOP_PICK_HIGHLIGHT = "#FFEB3B"

POSITION_NAMES = {
    "L": "Left Wing",
    "C": "Center",
    "R": "Right Wing",
    "D": "Defense",
}

# (metric key, label, description) in display order
WEIGHTING_RULES = [
    ("goals", "Goals", "Total goals scored this season"),
    ("shots", "Shots on Goal", "Total shots on goal"),
    ("shooting_pct", "Shooting Percentage", "Percentage of shots that result in goals"),
    ("toi_minutes", "Time on Ice", "Average time on ice per game"),
    ("pp_goals", "Power Play Goals", "Goals scored during power plays"),
    ("points_per_game", "Points Per Game", "Average points scored per game"),
    ("game_winning_goals", "Game Winning Goals", "Goals that were game winners"),
    ("plus_minus", "Plus/Minus", "Goal differential while on ice at even strength"),
]

TABLE_STYLE = 'border="1" style="border-collapse: collapse; width: 100%;"'


def ordinal_suffix(num: int) -> str:
    """English ordinal suffix: 1 -> "st", 12 -> "th", 23 -> "rd"."""
    if 11 <= num % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(num % 10, "th")


def full_position(code: str) -> str:
    return POSITION_NAMES.get(code, code)


def format_toi(seconds: float) -> str:
    """Seconds per game as m:ss, "-" when zero."""
    if seconds <= 0:
        return "-"
    minutes, secs = divmod(round(seconds), 60)
    return f"{minutes}:{secs:02d}"


def season_label(season_id: str) -> str:
    """20242025 -> 24-25."""
    if len(season_id) == 8 and season_id.isdigit():
        return f"{season_id[2:4]}-{season_id[6:8]}"
    return season_id


def _schedule_section(fixtures: Sequence[GameFixture]) -> str:
    parts = ["<h3>Today's NHL Schedule</h3>"]
    if not fixtures:
        parts.append("<p>No games scheduled for today.</p>")
        return "\n".join(parts)

    parts.append(f"<table {TABLE_STYLE}>")
    parts.append("<tr><th>Time</th><th>Matchup</th><th>Venue</th></tr>")
    for game in fixtures:
        parts.append(
            f"<tr><td>{escape(game.display_time)}</td>"
            f"<td>{escape(game.away_team)} @ {escape(game.home_team)}</td>"
            f"<td>{escape(game.venue)}</td></tr>"
        )
    parts.append("</table>")
    return "\n".join(parts)


def _pick_details(
    index: int,
    result: RankingResult,
    fixtures: Sequence[GameFixture],
    standings: Standings | None,
) -> str:
    stats = result.stats
    plus_minus = f"+{stats.plus_minus}" if stats.plus_minus > 0 else str(stats.plus_minus)
    header = (
        f"<strong>{index}. {escape(result.name)} ({escape(result.position)} - "
        f"{escape(result.team)}) - {result.formatted_probability}%</strong><br>"
    )
    items = [f"Position: {escape(full_position(result.position))}"]

    fixture = find_fixture(result.team, fixtures)
    if fixture is None:
        items += [
            "No game scheduled for today",
            f"Season stats: {stats.goals} goals, {stats.points} points "
            f"in {stats.games_played} games",
            f"Average ice time per game: {format_toi(stats.toi)}",
        ]
    else:
        opponent = fixture.opponent_of(result.team)
        team_rank = find_team_rank(result.team, standings)
        opponent_rank = find_team_rank(opponent, standings)
        team_text = (
            f"{team_rank[0]}{ordinal_suffix(team_rank[0])} in {escape(team_rank[1])}"
            if team_rank
            else "Not available"
        )
        opponent_text = (
            f"{opponent_rank[0]}{ordinal_suffix(opponent_rank[0])} in their division"
            if opponent_rank
            else "Not available"
        )
        items += [
            f"Season Performance: {stats.goals} goals, {stats.points} points "
            f"in {stats.games_played} games",
            f"Average ice time per game: {format_toi(stats.toi)}",
            f"Playing {'home' if fixture.is_home(result.team) else 'away'} "
            f"against {escape(opponent)}",
            f"Team standing: {team_text}",
            f"Opponent standing: {opponent_text}",
            f"Plus/Minus: {plus_minus}",
        ]

    return header + "<ul>" + "".join(f"<li>{item}</li>" for item in items) + "</ul>"


def _round_table(
    ranked: Sequence[RankingResult],
    pool: Sequence[PlayerSeasonStat],
    season_ids: Sequence[str],
) -> str:
    columns = [("Goals", "goals"), ("Points", "points"), ("Games", "games_played"), ("+/-", "plus_minus")]
    headers = ["Rank", "Player", "Pos", "Probability"]
    for label, _attr in columns:
        headers += [f"{label} ({season_label(s)})" for s in season_ids]
    headers += [f"Avg TOI ({season_label(s)})" for s in season_ids]
    headers.append("Team")

    rows = [f"<table {TABLE_STYLE}>", "<tr>" + "".join(f"<th>{h}</th>" for h in headers) + "</tr>"]
    for index, result in enumerate(ranked, start=1):
        rollup = rollup_player(result.player_id, pool, season_ids)
        cells = [str(index), escape(result.name), escape(result.position), f"{result.formatted_probability}%"]
        for _label, attr in columns:
            for season_id in season_ids:
                value = getattr(rollup.seasons[season_id], attr) if rollup else 0
                cells.append(str(value) if value else "-")
        for season_id in season_ids:
            cells.append(format_toi(rollup.seasons[season_id].toi) if rollup else "-")
        cells.append(escape(result.team))

        highlight = f' style="background-color: {TOP_PICK_HIGHLIGHT};"' if index == 1 else ""
        rows.append(f"<tr{highlight}>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>")
    rows.append("</table>")
    return "\n".join(rows)


def _weighting_rules_section() -> str:
    rows = "".join(
        f"<tr><td>{label}</td><td>{METRIC_WEIGHTS[key] * 100:.0f}%</td><td>{description}</td></tr>"
        for key, label, description in WEIGHTING_RULES
    )
    return (
        '<hr style="margin-top: 30px;">'
        '<div style="font-size: 0.8em; color: #666;">'
        "<h4>Player Scoring Probability Weighting Rules:</h4>"
        '<table style="width: 100%; border-collapse: collapse;">'
        "<tr><th>Metric</th><th>Weight</th><th>Description</th></tr>"
        f"{rows}</table>"
        "<h4>Additional Adjustments:</h4><ul>"
        "<li>Teams in better standings positions receive an advantage when playing "
        "against lower-ranked teams: 5% per position in the same division, 3% per "
        "position across divisions</li>"
        "<li>All probabilities are normalized to stay within a 0-100% range</li>"
        "<li>Players marked as injured are automatically excluded from consideration</li>"
        "</ul>"
        '<p style="font-style: italic;">These weights and adjustments produce a heuristic '
        "score; the actual likelihood of scoring may vary based on factors not captured "
        "in this model.</p></div>"
    )


def build_report_html(
    analysis: RoundsAnalysis,
    fixtures: Sequence[GameFixture],
    standings: Standings | None,
    pool: Sequence[PlayerSeasonStat],
    season_ids: Sequence[str],
) -> str:
    """Render the full HTML report body.

    Args:
        analysis: Ranked rounds and picks
        fixtures: Today's games
        standings: Division standings (None if unavailable)
        pool: Combined player pool, for per-season columns
        season_ids: Seasons to show as columns

    Returns:
        HTML string
    """
    parts = ["<h2>Tim's Player Analysis Report</h2>", _schedule_section(fixtures)]

    for round_index, ranked in enumerate(analysis.rounds, start=1):
        parts.append(f"<h3>Round {round_index}</h3>")
        parts.append("<h4>Top Picks Analysis</h4>")
        parts.append('<div style="margin-bottom: 20px;">')
        for index, result in enumerate(ranked[:TOP_PICKS_DETAILED], start=1):
            parts.append(_pick_details(index, result, fixtures, standings))
        parts.append("</div>")
        parts.append("<h4>All Players in Round</h4>")
        parts.append(_round_table(ranked, pool, season_ids))

    parts.append("<h3>Final Choices</h3><ul>")
    parts.extend(
        f"<li>Round {index}: {escape(name)}</li>"
        for index, name in enumerate(analysis.picks, start=1)
    )
    parts.append("</ul>")
    parts.append(f"<p>Ranking method: {escape(str(analysis.method))}</p>")
    parts.append(_weighting_rules_section())
    return "\n".join(parts)


class EmailReporter:
    """Sends the HTML report over SMTP with SSL (Gmail app password)."""

    def __init__(
        self,
        user: str,
        password: str,
        recipients: Sequence[str],
        host: str = "smtp.gmail.com",
        port: int = 465,
    ) -> None:
        self.user = user
        self.password = password
        self.recipients = list(recipients)
        self.host = host
        self.port = port

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password and self.recipients)

    def build_message(self, html: str, report_date: date) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = f"NHL Player Analysis Report - {report_date.isoformat()}"
        message["From"] = self.user
        message["To"] = ", ".join(self.recipients)
        message.set_content("This report is best viewed in an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def _send(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(self.host, self.port, context=context) as smtp:
            smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def send(self, html: str, report_date: date) -> None:
        """Send the report.

        Raises:
            smtplib.SMTPException: If delivery fails
        """
        message = self.build_message(html, report_date)
        await asyncio.to_thread(self._send, message)
        logger.info(f"Analysis report email sent to {len(self.recipients)} recipients")
