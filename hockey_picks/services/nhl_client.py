"""NHL API client with rate limiting and retries."""

import asyncio
import logging
import time
from typing import Any

import httpx
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

NHL_STATS_API_URL = "https://api.nhle.com/stats/rest/en"
NHL_WEB_API_URL = "https://api-web.nhle.com/v1"

# Skater summary pagination
STATS_PAGE_SIZE = 100
MAX_STATS_PAGES = 50  # Safety limit, a season has ~1000 skaters

# Regular season only
REGULAR_SEASON_GAME_TYPE = 2

# HTTP status codes that should trigger a retry
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _is_retryable_error(exception: BaseException) -> bool:
    """Check if an error should trigger a retry."""
    if isinstance(exception, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRYABLE_STATUS_CODES
    return False


def _failure_reason(exception: BaseException) -> str:
    """Describe a failed request, unwrapping the last attempt of a RetryError."""
    if isinstance(exception, RetryError):
        exception = exception.last_attempt.exception() or exception
    if isinstance(exception, httpx.HTTPStatusError):
        return str(exception.response.status_code)
    return type(exception).__name__


class NhlApiClient:
    """
    Client for the public NHL stats and web APIs.

    Neither API documents rate limits; the original tool slept 100ms between
    calls, so the default of 10 requests/second keeps the same pace.
    """

    def __init__(
        self,
        stats_base_url: str = NHL_STATS_API_URL,
        web_base_url: str = NHL_WEB_API_URL,
        requests_per_second: float = 10.0,
        page_size: int = STATS_PAGE_SIZE,
    ):
        """
        Initialize the client.

        Args:
            stats_base_url: Base URL of the stats REST API
            web_base_url: Base URL of the web API (schedules, standings)
            requests_per_second: Target rate
            page_size: Skater summary page size
        """
        self.stats_base_url = stats_base_url.rstrip("/")
        self.web_base_url = web_base_url.rstrip("/")
        self.delay = 1.0 / requests_per_second
        self.page_size = page_size
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy initialization, coroutine-safe)."""
        if self._client is None:
            async with self._lock:
                if self._client is None:  # Double-check after acquiring lock
                    self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources (coroutine-safe)."""
        async with self._lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> "NhlApiClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context manager and close client."""
        await self.close()

    async def _rate_limit(self) -> None:
        """Apply rate limiting between requests."""
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_time
            if elapsed < self.delay:
                await asyncio.sleep(self.delay - elapsed)
            self._last_request_time = time.monotonic()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception(_is_retryable_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _get(self, url: str, params: dict[str, str] | None = None) -> Any:
        """Make a rate-limited GET request with retries."""
        await self._rate_limit()

        client = await self._get_client()
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def get_skater_summary_page(
        self, season_id: str, start: int
    ) -> list[dict[str, Any]]:
        """Fetch one page of the regular season skater summary."""
        params = {
            "isAggregate": "false",
            "isGame": "false",
            "start": str(start),
            "limit": str(self.page_size),
            "cayenneExp": (
                f"gameTypeId={REGULAR_SEASON_GAME_TYPE} "
                f"and seasonId<={season_id} and seasonId>={season_id}"
            ),
        }
        data = await self._get(f"{self.stats_base_url}/skater/summary", params=params)
        return data.get("data", [])

    async def get_season_player_stats(self, season_id: str) -> list[dict[str, Any]]:
        """
        Fetch every skater's summary for a season.

        Pages until the API returns a short or empty page.

        Args:
            season_id: Season identifier, e.g. "20252026"

        Returns:
            Raw skater summary records
        """
        players: list[dict[str, Any]] = []
        start = 0

        for _page in range(MAX_STATS_PAGES):
            page = await self.get_skater_summary_page(season_id, start)
            if not page:
                break

            players.extend(page)
            logger.info(
                f"Fetched {len(page)} players for {season_id} (Total: {len(players)})"
            )

            if len(page) < self.page_size:
                break
            start += self.page_size
        else:
            logger.warning(
                f"Season {season_id} still returning data after {MAX_STATS_PAGES} pages, stopping"
            )

        return players

    async def get_club_schedule(self, team: str, season_id: str) -> dict[str, Any]:
        """Fetch a team's full season schedule."""
        return await self._get(
            f"{self.web_base_url}/club-schedule-season/{team}/{season_id}"
        )

    async def get_standings(
        self, on_date: str, fallback_date: str | None = None
    ) -> dict[str, Any]:
        """
        Fetch league standings for a date.

        Before a season starts the endpoint has no data for today; in that
        case, or when today keeps failing after retries, the standings for
        fallback_date are used instead.

        Args:
            on_date: Date string YYYY-MM-DD
            fallback_date: Date to try if on_date is not available

        Returns:
            Raw standings response with a "standings" array
        """
        try:
            return await self._get(f"{self.web_base_url}/standings/{on_date}")
        except (httpx.HTTPStatusError, RetryError) as e:
            if fallback_date is None or fallback_date == on_date:
                raise
            logger.info(
                f"Standings for {on_date} not available "
                f"({_failure_reason(e)}), trying {fallback_date}"
            )
            return await self._get(f"{self.web_base_url}/standings/{fallback_date}")
