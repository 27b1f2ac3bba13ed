"""API routes - ranking methods, saved picks, season caches and standings."""

import logging
from datetime import date

import httpx
from fastapi import APIRouter, Depends, HTTPException, Path
from tenacity import RetryError

from hockey_picks.config import Settings, get_settings
from hockey_picks.schemas.picks import (
    MethodInfo,
    PicksFileInfo,
    PicksSnapshot,
    SeasonCacheStatusModel,
    StandingModel,
    StandingsCacheStats,
    standings_to_models,
)
from hockey_picks.services.aggregator import SeasonAggregator
from hockey_picks.services.data_store import DataStore
from hockey_picks.services.nhl_client import NhlApiClient
from hockey_picks.services.picks_store import list_picks, load_latest_picks, load_picks
from hockey_picks.services.ranking import (
    METHOD_DESCRIPTIONS,
    POPULATION_METHODS,
    resolve_method,
)
from hockey_picks.services.standings_cache import get_cache_stats, get_cached_standings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["picks"])

RUN_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
PICKS_FILENAME_PATTERN = r"^picks_\d+\.json$"


# =============================================================================
# Dependencies
# =============================================================================


def get_store(settings: Settings = Depends(get_settings)) -> DataStore:
    """DataStore rooted at the configured data and picks directories."""
    return DataStore(settings.data_dir, settings.picks_dir)


def _client_from_settings(settings: Settings) -> NhlApiClient:
    return NhlApiClient(
        stats_base_url=settings.nhl_stats_api_url,
        web_base_url=settings.nhl_web_api_url,
        requests_per_second=settings.requests_per_second,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/rankings/methods", response_model=list[MethodInfo])
async def get_ranking_methods(
    settings: Settings = Depends(get_settings),
) -> list[MethodInfo]:
    """List the available ranking methods and which one runs by default."""
    default = resolve_method(settings.default_ranking_method)
    return [
        MethodInfo(
            method=method,
            description=description,
            population_relative=method in POPULATION_METHODS,
            is_default=method == default,
        )
        for method, description in METHOD_DESCRIPTIONS.items()
    ]


@router.get("/picks", response_model=list[PicksFileInfo])
async def get_saved_picks(store: DataStore = Depends(get_store)) -> list[PicksFileInfo]:
    """List saved picks snapshots, newest date first."""
    return list_picks(store)


@router.get("/picks/latest", response_model=PicksSnapshot)
async def get_latest_picks(store: DataStore = Depends(get_store)) -> PicksSnapshot:
    """Get the most recent picks snapshot."""
    snapshot = load_latest_picks(store)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No saved picks found")
    return snapshot


@router.get("/picks/{run_date}/{filename}", response_model=PicksSnapshot)
async def get_picks_file(
    run_date: str = Path(..., pattern=RUN_DATE_PATTERN),
    filename: str = Path(..., pattern=PICKS_FILENAME_PATTERN),
    store: DataStore = Depends(get_store),
) -> PicksSnapshot:
    """Get one saved picks snapshot."""
    snapshot = load_picks(store, run_date, filename)
    if snapshot is None:
        raise HTTPException(
            status_code=404, detail=f"Picks file {run_date}/{filename} not found"
        )
    return snapshot


@router.get("/cache/seasons", response_model=list[SeasonCacheStatusModel])
async def get_season_cache_status(
    settings: Settings = Depends(get_settings),
    store: DataStore = Depends(get_store),
) -> list[SeasonCacheStatusModel]:
    """Report the cache state of every configured season."""
    # Status only reads files; the client is never opened
    aggregator = SeasonAggregator(
        provider=_client_from_settings(settings),
        store=store,
        completed_seasons=settings.completed_seasons_list,
    )
    return [
        SeasonCacheStatusModel.model_validate(status)
        for status in aggregator.cache_status(settings.season_ids)
    ]


@router.get("/cache/standings", response_model=StandingsCacheStats)
async def get_standings_cache_stats() -> StandingsCacheStats:
    """Report which standings dates are held in the in-process cache."""
    return StandingsCacheStats(**get_cache_stats())


@router.get("/standings", response_model=dict[str, list[StandingModel]])
async def get_standings(
    settings: Settings = Depends(get_settings),
) -> dict[str, list[StandingModel]]:
    """Get today's division standings, best team first."""
    today = date.today().isoformat()

    async with _client_from_settings(settings) as client:

        async def fetch(on_date: str) -> dict:
            return await client.get_standings(on_date, settings.standings_fallback_date)

        try:
            standings = await get_cached_standings(today, fetch)
        except (httpx.HTTPError, RetryError) as e:
            logger.error(f"Standings unavailable: {type(e).__name__}: {e}")
            raise HTTPException(
                status_code=503, detail="NHL standings are currently unavailable"
            ) from e

    return standings_to_models(standings) or {}
