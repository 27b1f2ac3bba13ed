"""Injury list and pick-round scrapers.

Both pages are fetched with httpx and parsed with BeautifulSoup. The pick
page lists one table per round; each row links to /player/<id>.
"""

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup

from hockey_picks.services.normalizer import PlayerSeasonStat

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)

PLAYER_ID_PATTERN = re.compile(r"/player/(\d+)$")
ESPN_ID_PATTERN = re.compile(r"/id/(\d+)")


@dataclass(slots=True, frozen=True)
class ScrapedPlayer:
    """A player name and id as shown on a scraped page."""

    name: str
    player_id: str


def parse_injured_players(html: str) -> list[ScrapedPlayer]:
    """Extract injured players from the injuries page."""
    soup = BeautifulSoup(html, "html.parser")
    players = []
    for anchor in soup.select(".Table__TD > a.AnchorLink"):
        href = anchor.get("href", "")
        match = ESPN_ID_PATTERN.search(href)
        players.append(
            ScrapedPlayer(
                name=anchor.get_text(strip=True),
                player_id=match.group(1) if match else href.rstrip("/").split("/")[-1],
            )
        )
    return players


def parse_pick_rounds(html: str) -> list[list[ScrapedPlayer]]:
    """Extract the candidate players of every pick round, in page order."""
    soup = BeautifulSoup(html, "html.parser")
    rounds = []
    for table in soup.select(".player-table"):
        players = []
        for row in table.find_all("tr"):
            anchor = row.select_one("a.vertical-middle")
            if anchor is None:
                continue
            match = PLAYER_ID_PATTERN.search(anchor.get("href", ""))
            if match:
                players.append(
                    ScrapedPlayer(name=anchor.get_text(strip=True), player_id=match.group(1))
                )
        rounds.append(players)
    return rounds


def build_pick_rounds(
    rounds: Iterable[Sequence[ScrapedPlayer]],
    pool: Sequence[PlayerSeasonStat],
    injured_names: Iterable[str],
) -> list[list[PlayerSeasonStat]]:
    """Resolve scraped candidates to stat lines and drop injured players.

    With a multi-season pool a player has one record per season; the last
    one in pool order (the current season) is used. Candidates missing from
    the pool are skipped.
    """
    latest: dict[str, PlayerSeasonStat] = {}
    for player in pool:
        latest[str(player.player_id)] = player

    injured = set(injured_names)
    resolved_rounds = []
    for index, candidates in enumerate(rounds, start=1):
        resolved = []
        for candidate in candidates:
            player = latest.get(candidate.player_id)
            if player is None:
                logger.warning(
                    f"Round {index}: no stats for {candidate.name} ({candidate.player_id})"
                )
                continue
            if player.full_name in injured:
                logger.warning(f"{player.full_name} is injured, skipping")
                continue
            resolved.append(player)
        resolved_rounds.append(resolved)
    return resolved_rounds


class PageScraper:
    """Fetches the injury and pick-round pages."""

    def __init__(
        self,
        injuries_url: str,
        pick_rounds_url: str,
        timeout: float = 60.0,
    ) -> None:
        self.injuries_url = injuries_url
        self.pick_rounds_url = pick_rounds_url
        self.timeout = timeout

    async def _fetch_html(self, url: str) -> str:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.text

    async def get_injured_players(self) -> list[ScrapedPlayer]:
        """Scrape the current injury list."""
        players = parse_injured_players(await self._fetch_html(self.injuries_url))
        logger.info(f"Found {len(players)} injured players")
        return players

    async def get_pick_rounds(self) -> list[list[ScrapedPlayer]]:
        """Scrape the candidate players of each pick round."""
        rounds = parse_pick_rounds(await self._fetch_html(self.pick_rounds_url))
        logger.info(f"Found {len(rounds)} pick rounds")
        return rounds
