#!/usr/bin/env python
"""
Daily NHL goal-scorer picks.

Run once a day (e.g. 10:00 local time via cron) before the first puck drop.

Steps:
1. Player pool - Current season plus completed seasons (cached per season)
2. Schedules - Team season schedules, today's games
3. Standings - Division standings for the matchup adjustment
4. Candidates - Scraped pick rounds minus the injury list
5. Ranking - Every round ranked with the selected method
6. Output - JSON snapshot in ~/.tims/picks and an HTML email report

Usage:
    python -m scripts.daily_picks                       # Run with .env settings
    python -m scripts.daily_picks --method zscore       # Pick a ranking method
    python -m scripts.daily_picks --no-email --no-save  # Dry run, logs only
    python -m scripts.daily_picks --status              # Show season cache status
    python -m scripts.daily_picks --list-picks          # List saved snapshots

Exit status is 1 if no player data could be loaded for any season.
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from hockey_picks.config import Settings, get_settings
from hockey_picks.services.aggregator import NoPlayerDataError, SeasonAggregator
from hockey_picks.services.daily_run import DailyPicksService
from hockey_picks.services.data_store import DataStore
from hockey_picks.services.nhl_client import NhlApiClient
from hockey_picks.services.picks_store import list_picks
from hockey_picks.services.ranking import RankingMethod
from hockey_picks.services.scrapers import PageScraper

# Load environment
load_dotenv(".env.local")
load_dotenv(".env")

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Command line options; unset flags fall back to settings."""
    parser = argparse.ArgumentParser(description="Daily NHL goal-scorer picks")
    parser.add_argument(
        "--method",
        choices=[m.value for m in RankingMethod],
        help="Ranking method (default: DEFAULT_RANKING_METHOD)",
    )
    parser.add_argument(
        "--no-email", action="store_true", help="Don't send the email report"
    )
    parser.add_argument(
        "--no-save", action="store_true", help="Don't save a picks snapshot"
    )
    parser.add_argument(
        "--no-compare",
        action="store_true",
        help="Skip the side-by-side method comparison",
    )
    parser.add_argument(
        "--force-refresh-schedules",
        action="store_true",
        help="Refetch every team schedule even if cached",
    )
    parser.add_argument(
        "--status", action="store_true", help="Show season cache status and exit"
    )
    parser.add_argument(
        "--list-picks", action="store_true", help="List saved picks snapshots and exit"
    )
    return parser


def show_status(settings: Settings) -> None:
    """Print the cache state of every configured season."""
    store = DataStore(settings.data_dir, settings.picks_dir)
    aggregator = SeasonAggregator(
        NhlApiClient(settings.nhl_stats_api_url, settings.nhl_web_api_url),
        store,
        completed_seasons=settings.completed_seasons_list,
    )

    print("\nSeason Cache Status")
    print("-" * 40)
    print(f"Data directory:      {store.data_dir}")
    for status in aggregator.cache_status(settings.season_ids):
        if not status.cached:
            state = "not cached"
        elif status.corrupted:
            state = f"CORRUPTED ({status.size_kb} KB)"
        else:
            kind = "permanent" if status.permanent else "temporary"
            state = f"{status.size_kb} KB, {kind}, captured {status.captured_on or 'unknown'}"
        print(f"{status.season_id}:            {state}")
    print()


def show_saved_picks(settings: Settings) -> None:
    """Print every saved picks snapshot, newest date first."""
    store = DataStore(settings.data_dir, settings.picks_dir)
    files = list_picks(store)

    print("\nSaved Picks")
    print("-" * 40)
    if not files:
        print(f"No picks saved in {store.picks_dir}")
    for info in files:
        print(f"{info.run_date}  {info.filename:<16} {info.size_bytes:>8} bytes")
    print()


async def run_daily_picks(args: argparse.Namespace, settings: Settings) -> int:
    """Run the pipeline once. Returns the process exit status."""
    scraper = PageScraper(settings.injuries_url, settings.pick_rounds_url)

    async with NhlApiClient(
        stats_base_url=settings.nhl_stats_api_url,
        web_base_url=settings.nhl_web_api_url,
        requests_per_second=settings.requests_per_second,
    ) as client:
        service = DailyPicksService.from_settings(settings, client, scraper)
        try:
            result = await service.run(
                method=args.method,
                send_email=False if args.no_email else None,
                save_picks=False if args.no_save else None,
                show_comparison=False if args.no_compare else None,
                force_refresh_schedules=True if args.force_refresh_schedules else None,
            )
        except NoPlayerDataError as e:
            logger.error(f"{e}. Check the NHL stats API and the cached season files.")
            return 1

    logger.info(
        f"Done: {len(result.analysis.rounds)} rounds, "
        f"{result.analysis.total_players} players, {len(result.fixtures)} games today"
    )
    if result.snapshot_path:
        logger.info(f"Snapshot: {result.snapshot_path}")
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point with argument parsing."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    if args.status:
        show_status(settings)
        return 0
    if args.list_picks:
        show_saved_picks(settings)
        return 0
    return await run_daily_picks(args, settings)


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper()),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(main()))
