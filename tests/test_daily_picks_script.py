"""Tests for the daily picks command line entry point."""

from unittest.mock import AsyncMock, patch

import pytest

from hockey_picks.config import Settings
from hockey_picks.services.aggregator import NoPlayerDataError
from scripts.daily_picks import build_parser, main, show_saved_picks, show_status


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, data_dir=tmp_path / "data", picks_dir=tmp_path / "picks")


class TestParser:
    """Tests for command line parsing."""

    def test_defaults_defer_to_settings(self):
        args = build_parser().parse_args([])

        assert args.method is None
        assert not args.no_email
        assert not args.no_save
        assert not args.force_refresh_schedules

    def test_flags(self):
        args = build_parser().parse_args(
            ["--method", "elo", "--no-email", "--no-save", "--no-compare", "--force-refresh-schedules"]
        )

        assert args.method == "elo"
        assert args.no_email and args.no_save and args.no_compare
        assert args.force_refresh_schedules

    def test_unknown_method_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--method", "bogus"])


class TestInfoCommands:
    """Tests for --status and --list-picks output."""

    def test_status_lists_seasons(self, settings, capsys):
        show_status(settings)

        out = capsys.readouterr().out
        for season_id in settings.season_ids:
            assert f"{season_id}:" in out
        assert "not cached" in out

    def test_list_picks_empty(self, settings, capsys):
        show_saved_picks(settings)

        assert "No picks saved" in capsys.readouterr().out


class TestMain:
    """Tests for main()."""

    async def test_status_does_not_run_pipeline(self, settings):
        with (
            patch("scripts.daily_picks.get_settings", return_value=settings),
            patch("scripts.daily_picks.run_daily_picks", new=AsyncMock()) as run,
        ):
            assert await main(["--status"]) == 0

        run.assert_not_awaited()

    async def test_no_player_data_exit_status(self, settings):
        service = AsyncMock()
        service.run.side_effect = NoPlayerDataError("No player data available")

        with (
            patch("scripts.daily_picks.get_settings", return_value=settings),
            patch("scripts.daily_picks.DailyPicksService.from_settings", return_value=service),
        ):
            assert await main(["--no-email"]) == 1

        assert service.run.await_args.kwargs["send_email"] is False
