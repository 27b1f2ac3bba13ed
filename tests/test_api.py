"""Integration tests for API endpoints."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest
import respx
from httpx import AsyncClient, Response

from hockey_picks.api.routes import get_store
from hockey_picks.config import Settings, get_settings
from hockey_picks.main import app
from hockey_picks.schemas.picks import PicksSnapshot
from hockey_picks.services.analyzer import rank_rounds
from hockey_picks.services.data_store import DataStore
from hockey_picks.services.picks_store import save_picks_snapshot
from tests.conftest import make_player

WEB = "https://web.test"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=tmp_path / "data",
        picks_dir=tmp_path / "picks",
        nhl_web_api_url=WEB,
        default_ranking_method="zscore",
        current_season="20252026",
        completed_seasons="20242025",
    )


@pytest.fixture
def api_store(test_settings) -> DataStore:
    return DataStore(test_settings.data_dir, test_settings.picks_dir)


@pytest.fixture
async def client(async_client: AsyncClient, test_settings, api_store):
    """App client with settings and store pointed at tmp_path."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_store] = lambda: api_store
    yield async_client
    app.dependency_overrides.clear()


def save_snapshot(store: DataStore, day: int, pick: str) -> None:
    pool = [make_player(full_name=pick)]
    analysis = rank_rounds([pool], [], None, pool)
    timestamp = datetime(2025, 1, day, 10, 0, tzinfo=ZoneInfo("America/Toronto"))
    save_picks_snapshot(store, PicksSnapshot.build(analysis, [], None, timestamp))


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    async def test_health_returns_healthy(self, client: AsyncClient):
        """Health endpoint should return healthy status."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestRankingMethods:
    """Tests for /api/v1/rankings/methods."""

    async def test_lists_all_methods(self, client: AsyncClient):
        response = await client.get("/api/v1/rankings/methods")

        assert response.status_code == 200
        data = response.json()
        assert [m["method"] for m in data] == [
            "original", "zscore", "percentile", "expected", "composite", "elo"
        ]
        assert [m["method"] for m in data if m["is_default"]] == ["zscore"]
        by_method = {m["method"]: m for m in data}
        assert by_method["original"]["population_relative"] is False
        assert by_method["percentile"]["population_relative"] is True


class TestPicksEndpoints:
    """Tests for saved picks endpoints."""

    async def test_list_empty(self, client: AsyncClient):
        response = await client.get("/api/v1/picks")

        assert response.status_code == 200
        assert response.json() == []

    async def test_latest_404_when_nothing_saved(self, client: AsyncClient):
        response = await client.get("/api/v1/picks/latest")

        assert response.status_code == 404

    async def test_list_and_latest(self, client: AsyncClient, api_store):
        save_snapshot(api_store, 14, "Old Pick")
        save_snapshot(api_store, 15, "First Run")
        save_snapshot(api_store, 15, "Second Run")

        listing = (await client.get("/api/v1/picks")).json()
        latest = (await client.get("/api/v1/picks/latest")).json()

        assert [(f["run_date"], f["filename"]) for f in listing] == [
            ("2025-01-15", "picks_1.json"),
            ("2025-01-15", "picks_2.json"),
            ("2025-01-14", "picks_1.json"),
        ]
        assert latest["final_choices"] == ["Second Run"]
        assert latest["run_date"] == "2025-01-15"

    async def test_get_specific_file(self, client: AsyncClient, api_store):
        save_snapshot(api_store, 14, "Old Pick")

        response = await client.get("/api/v1/picks/2025-01-14/picks_1.json")

        assert response.status_code == 200
        assert response.json()["final_choices"] == ["Old Pick"]

    async def test_specific_file_missing(self, client: AsyncClient):
        response = await client.get("/api/v1/picks/2025-01-14/picks_3.json")

        assert response.status_code == 404

    async def test_invalid_filename_rejected(self, client: AsyncClient):
        response = await client.get("/api/v1/picks/2025-01-14/secrets.json")

        assert response.status_code == 422


class TestSeasonCacheEndpoint:
    """Tests for /api/v1/cache/seasons."""

    async def test_reports_configured_seasons(self, client: AsyncClient, api_store):
        api_store.write_json(
            api_store.season_file("20242025"),
            {"season_id": "20242025", "captured_on": "2025-01-10", "players": []},
        )

        response = await client.get("/api/v1/cache/seasons")

        assert response.status_code == 200
        data = {s["season_id"]: s for s in response.json()}
        assert data["20242025"]["cached"] is True
        assert data["20242025"]["permanent"] is True
        assert data["20242025"]["captured_on"] == "2025-01-10"
        assert data["20252026"]["cached"] is False


class TestStandingsEndpoint:
    """Tests for /api/v1/standings."""

    @respx.mock
    async def test_grouped_standings(self, client: AsyncClient):
        respx.get(url__startswith=f"{WEB}/standings/").mock(
            return_value=Response(
                200,
                json={
                    "standings": [
                        {"teamAbbrev": {"default": "BOS"}, "divisionName": "Atlantic", "points": 60, "gamesPlayed": 50},
                        {"teamAbbrev": {"default": "TOR"}, "divisionName": "Atlantic", "points": 70, "gamesPlayed": 50},
                    ]
                },
            )
        )

        response = await client.get("/api/v1/standings")

        assert response.status_code == 200
        atlantic = response.json()["Atlantic"]
        assert [(t["team"], t["rank"]) for t in atlantic] == [("TOR", 1), ("BOS", 2)]

    @respx.mock
    async def test_unavailable_returns_503(self, client: AsyncClient):
        # 404 for today and for the fallback date
        respx.get(url__startswith=f"{WEB}/standings/").mock(return_value=Response(404))

        response = await client.get("/api/v1/standings")

        assert response.status_code == 503


class TestStandingsCacheEndpoint:
    """Tests for /api/v1/cache/standings."""

    async def test_empty_before_any_fetch(self, client: AsyncClient):
        response = await client.get("/api/v1/cache/standings")

        assert response.status_code == 200
        assert response.json()["cached_dates"] == []
        assert response.json()["ttl_seconds"] == 600

    @respx.mock
    async def test_lists_date_after_standings_request(self, client: AsyncClient):
        respx.get(url__startswith=f"{WEB}/standings/").mock(
            return_value=Response(
                200,
                json={
                    "standings": [
                        {"teamAbbrev": {"default": "TOR"}, "divisionName": "Atlantic", "points": 70, "gamesPlayed": 50},
                    ]
                },
            )
        )
        await client.get("/api/v1/standings")

        response = await client.get("/api/v1/cache/standings")

        data = response.json()
        assert data["cached_dates"] == [date.today().isoformat()]
        assert data["last_fetch"] > 0
