"""Daily picks run - orchestrates data loading, ranking, saving and reporting.

Steps:
1. Load the season player pool (cached per season)
2. Log the goals vs ice time analysis
3. Refresh team schedules and find today's games
4. Fetch division standings
5. Scrape injuries and pick rounds, drop injured candidates
6. Optionally compare all ranking methods on the first round
7. Rank every round with the selected method
8. Save a JSON snapshot and email the report
"""

import logging
import smtplib
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol
from zoneinfo import ZoneInfo

import httpx
from tenacity import RetryError

from hockey_picks.config import Settings
from hockey_picks.schemas.picks import PicksSnapshot
from hockey_picks.services.aggregator import SeasonAggregator, SeasonPool
from hockey_picks.services.analyzer import (
    RankingResult,
    RoundsAnalysis,
    compare_methods,
    rank_rounds,
    ranking_differences,
)
from hockey_picks.services.data_store import DataStore
from hockey_picks.services.matchup import TeamStanding
from hockey_picks.services.normalizer import PlayerSeasonStat
from hockey_picks.services.picks_store import save_picks_snapshot
from hockey_picks.services.ranking import (
    METHOD_DESCRIPTIONS,
    RankingMethod,
    resolve_method,
)
from hockey_picks.services.report import EmailReporter, build_report_html
from hockey_picks.services.schedule import (
    GameFixture,
    fetch_all_team_schedules,
    load_todays_fixtures,
)
from hockey_picks.services.scrapers import ScrapedPlayer, build_pick_rounds
from hockey_picks.services.standings_cache import get_cached_standings
from hockey_picks.services.stats_analysis import analyze_goals_and_toi

logger = logging.getLogger(__name__)


class NhlClientProtocol(Protocol):
    """Protocol for the NHL API client dependency."""

    async def get_season_player_stats(self, season_id: str) -> list[dict[str, Any]]: ...
    async def get_club_schedule(self, team: str, season_id: str) -> dict[str, Any]: ...
    async def get_standings(
        self, on_date: str, fallback_date: str | None = None
    ) -> dict[str, Any]: ...


class ScraperProtocol(Protocol):
    """Protocol for the injury / pick round scraper dependency."""

    async def get_injured_players(self) -> list[ScrapedPlayer]: ...
    async def get_pick_rounds(self) -> list[list[ScrapedPlayer]]: ...


class ReporterProtocol(Protocol):
    """Protocol for the report sink."""

    @property
    def configured(self) -> bool: ...
    async def send(self, html: str, report_date: Any) -> None: ...


@dataclass(slots=True)
class DailyRunResult:
    """Everything produced by one daily run."""

    pool: SeasonPool
    fixtures: list[GameFixture]
    standings: dict[str, list[TeamStanding]] | None
    analysis: RoundsAnalysis
    comparison: dict[RankingMethod, list[RankingResult]] | None = None
    snapshot_path: Path | None = None
    email_sent: bool = False


class DailyPicksService:
    """Runs the daily ranking pipeline against injected collaborators."""

    def __init__(
        self,
        settings: Settings,
        client: NhlClientProtocol,
        scraper: ScraperProtocol,
        reporter: ReporterProtocol | None = None,
        store: DataStore | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.client = client
        self.scraper = scraper
        self.reporter = reporter
        self.store = store or DataStore(settings.data_dir, settings.picks_dir)
        self.tz = ZoneInfo(settings.reporting_timezone)
        self._now = now or (lambda: datetime.now(self.tz))
        self.aggregator = SeasonAggregator(
            client,
            self.store,
            completed_seasons=settings.completed_seasons_list,
            today=lambda: self._now().date(),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: NhlClientProtocol,
        scraper: ScraperProtocol,
    ) -> "DailyPicksService":
        """Build the service with an email reporter from settings."""
        reporter = EmailReporter(
            user=settings.email_user,
            password=settings.email_app_password,
            recipients=settings.email_recipients_list,
            host=settings.smtp_host,
            port=settings.smtp_port,
        )
        return cls(settings, client, scraper, reporter=reporter)

    def log_cache_status(self) -> None:
        """Log the cache state of every configured season."""
        for status in self.aggregator.cache_status(self.settings.season_ids):
            if not status.cached:
                logger.info(f"{status.season_id}: not cached (will fetch fresh)")
            elif status.corrupted:
                logger.warning(f"{status.season_id}: cache corrupted")
            else:
                kind = "permanent" if status.permanent else "temporary"
                logger.info(
                    f"{status.season_id}: cached ({status.size_kb} KB, {kind}, "
                    f"captured {status.captured_on or 'unknown'})"
                )

    async def load_standings(self) -> dict[str, list[TeamStanding]] | None:
        """Fetch grouped standings, or None if the API is unavailable."""
        today = self._now().date().isoformat()
        fallback = self.settings.standings_fallback_date

        async def fetch(on_date: str) -> dict[str, Any]:
            return await self.client.get_standings(on_date, fallback)

        try:
            return await get_cached_standings(today, fetch)
        except (httpx.HTTPError, RetryError) as e:
            logger.error(
                f"Error fetching standings: {type(e).__name__}: {e}. "
                "Standings will not be available in the report"
            )
            return None

    async def load_pick_rounds(self, pool: SeasonPool) -> list[list[PlayerSeasonStat]]:
        """Scrape candidates and resolve them against the pool."""
        injured = await self.scraper.get_injured_players()
        scraped_rounds = await self.scraper.get_pick_rounds()
        return build_pick_rounds(scraped_rounds, pool.players, [p.name for p in injured])

    def _log_method_comparison(
        self, comparison: dict[RankingMethod, list[RankingResult]]
    ) -> None:
        for method, ranked in comparison.items():
            logger.info(f"--- {method.upper()} METHOD ---")
            for index, result in enumerate(ranked, start=1):
                logger.info(
                    f"{index}. {result.name} ({result.team}) - {result.formatted_probability}%"
                )
        for name, first, second, diff in ranking_differences(
            comparison, RankingMethod.ORIGINAL, RankingMethod.ZSCORE
        ):
            logger.info(f"{name}: original={first:.2f}%, zscore={second:.2f}% (diff: {diff:.2f}%)")

    def _log_rounds(self, analysis: RoundsAnalysis) -> None:
        for round_index, ranked in enumerate(analysis.rounds, start=1):
            logger.info(f"Round {round_index} (using {analysis.method} method):")
            for index, result in enumerate(ranked, start=1):
                logger.info(
                    f"{index}. {result.name} ({result.team}) - {result.formatted_probability}%"
                )
        for index, pick in enumerate(analysis.picks, start=1):
            logger.info(f"Round {index}: {pick}")

    async def run(
        self,
        method: RankingMethod | str | None = None,
        send_email: bool | None = None,
        save_picks: bool | None = None,
        show_comparison: bool | None = None,
        force_refresh_schedules: bool | None = None,
    ) -> DailyRunResult:
        """Run the full pipeline.

        Arguments left as None fall back to settings.

        Raises:
            NoPlayerDataError: If no season data could be loaded
        """
        settings = self.settings
        selected = resolve_method(method or settings.default_ranking_method)
        send_email = settings.email_enabled if send_email is None else send_email
        save_picks = settings.save_picks_to_files if save_picks is None else save_picks
        if show_comparison is None:
            show_comparison = settings.show_method_comparison
        if force_refresh_schedules is None:
            force_refresh_schedules = settings.force_refresh_schedules

        self.store.ensure_dirs()
        self.log_cache_status()

        # 1-2. Player pool and ice time analysis
        pool = await self.aggregator.load_pool(settings.season_ids)
        analyze_goals_and_toi(pool.players)

        # 3. Schedules and today's games
        await fetch_all_team_schedules(
            self.client,
            self.store,
            pool.teams,
            settings.current_season,
            force_refresh=force_refresh_schedules,
        )
        now = self._now()
        fixtures = load_todays_fixtures(self.store, now.date(), settings.reporting_timezone)

        # 4. Standings
        standings = await self.load_standings()

        # 5. Candidates
        rounds = await self.load_pick_rounds(pool)

        if settings.show_method_descriptions:
            for m, description in METHOD_DESCRIPTIONS.items():
                logger.info(f"{m.upper()}: {description}")

        # 6. Method comparison on the first round
        comparison = None
        if show_comparison and rounds and rounds[0]:
            comparison = compare_methods(
                rounds[0][: settings.comparison_size], fixtures, standings, pool.players
            )
            self._log_method_comparison(comparison)

        # 7. Final ranking
        analysis = rank_rounds(rounds, fixtures, standings, pool.players, selected)
        self._log_rounds(analysis)

        result = DailyRunResult(
            pool=pool,
            fixtures=fixtures,
            standings=standings,
            analysis=analysis,
            comparison=comparison,
        )

        # 8. Snapshot and report
        if save_picks:
            snapshot = PicksSnapshot.build(analysis, fixtures, standings, now)
            result.snapshot_path = save_picks_snapshot(self.store, snapshot)

        if send_email:
            result.email_sent = await self._send_report(result)

        return result

    async def _send_report(self, result: DailyRunResult) -> bool:
        if self.reporter is None or not self.reporter.configured:
            logger.warning("Email not configured (EMAIL_USER, EMAIL_APP_PASSWORD, EMAIL_RECIPIENTS)")
            return False

        html = build_report_html(
            result.analysis,
            result.fixtures,
            result.standings,
            result.pool.players,
            self.settings.season_ids,
        )
        try:
            await self.reporter.send(html, self._now().date())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email: {type(e).__name__}: {e}")
            return False
        return True
