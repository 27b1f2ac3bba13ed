"""Shared in-process cache for NHL division standings.

Standings change at most once per night, but both the daily run and the
API ask for them. The cache keeps one parsed copy per date and uses an
asyncio.Lock so concurrent API requests only trigger one fetch.

Cache TTL: 10 minutes by default
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from cachetools import TTLCache

from hockey_picks.services.matchup import TeamStanding, group_standings

logger = logging.getLogger(__name__)

STANDINGS_CACHE_TTL = 600
STANDINGS_CACHE_SIZE = 4  # A few recent dates

# Key: date string -> grouped standings
_standings_cache: TTLCache[str, dict[str, list[TeamStanding]]] = TTLCache(
    maxsize=STANDINGS_CACHE_SIZE,
    ttl=STANDINGS_CACHE_TTL,
)

# Note: single event loop per process (FastAPI or asyncio.run), so a
# module-level lock is safe.
_standings_lock = asyncio.Lock()

_last_fetch_time: float = 0.0


async def get_cached_standings(
    on_date: str,
    fetcher: Callable[[str], Awaitable[dict[str, Any]]],
) -> dict[str, list[TeamStanding]]:
    """Get grouped standings for a date from cache or fetch if missing.

    Args:
        on_date: Date string YYYY-MM-DD
        fetcher: Async function taking the date and returning the raw
                 standings response (e.g. NhlApiClient.get_standings)

    Returns:
        Dict mapping division name to ordered TeamStanding list

    Raises:
        httpx.HTTPError: If fetch fails
    """
    global _last_fetch_time

    cached = _standings_cache.get(on_date)
    if cached is not None:
        logger.debug(f"Standings cache hit for {on_date}")
        return cached

    async with _standings_lock:
        # Double-check after acquiring lock
        cached = _standings_cache.get(on_date)
        if cached is not None:
            logger.debug(f"Standings cache hit for {on_date} (after lock)")
            return cached

        logger.info(f"Fetching standings for {on_date} (cache miss)")
        start = time.monotonic()

        try:
            data = await fetcher(on_date)
        except Exception as e:
            logger.error(f"Failed to fetch standings: {type(e).__name__}: {e}")
            raise

        elapsed = time.monotonic() - start
        _last_fetch_time = time.time()

        rows = data.get("standings") or []
        standings = group_standings(rows)

        if not standings:
            logger.error(
                f"Standings response for {on_date} has no teams. "
                f"Response keys: {list(data.keys())}"
            )
            return standings  # Return but don't cache empty response

        _standings_cache[on_date] = standings
        logger.info(
            f"Standings fetched: divisions {', '.join(standings)}, "
            f"{len(rows)} teams in {elapsed:.2f}s"
        )
        return standings


def clear_cache() -> None:
    """Clear standings cache. Used by tests to ensure isolation."""
    _standings_cache.clear()


def get_cache_stats() -> dict[str, Any]:
    """Get cache statistics for monitoring."""
    return {
        "cached_dates": sorted(_standings_cache.keys()),
        "last_fetch": _last_fetch_time,
        "ttl_seconds": STANDINGS_CACHE_TTL,
    }
