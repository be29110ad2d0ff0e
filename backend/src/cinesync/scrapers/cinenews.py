"""HTTP access to cinenews.be: listing pages, detail pages and showtimes."""

import logging
import random
import re
from datetime import date
from typing import Any
from urllib.parse import urljoin

import httpx

from cinesync.config import settings
from cinesync.scrapers.errors import BlockedError, FetchError, ParseError
from cinesync.utils.dates import format_query_date

logger = logging.getLogger(__name__)

# Recent desktop Chrome builds; one is picked per request
CHROME_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
]


def browser_headers() -> dict[str, str]:
    """
    Build headers resembling a French-speaking desktop Chrome visit.

    The Sec-CH-UA hint carries the same major version as the User-Agent.
    """
    user_agent = random.choice(CHROME_USER_AGENTS)
    version_match = re.search(r"Chrome/(\d+)", user_agent)
    major_version = version_match.group(1) if version_match else "130"

    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
        "Accept-Language": "fr-FR,fr;q=0.5",
        "Referer": "https://www.google.com/",
        "Sec-CH-UA": f'"Chromium";v="{major_version}", "Not A;Brand";v="24"',
        "Sec-CH-UA-Mobile": "?0",
        "Sec-CH-UA-Platform": '"Windows"',
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Fetch-User": "?1",
        "Sec-Gpc": "1",
    }


class CinenewsClient:
    """
    Thin client for the three cinenews endpoints the sync uses.

    Every method raises BlockedError on HTTP 403 and FetchError on any other
    non-success status or transport failure. Callers decide whether that
    is fatal (listing) or drops a single title.
    """

    SHOWTIMES_PATH = "/modules/ajax_showtimes.cfm"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str | None = None,
        language: str | None = None,
        region: str | None = None,
        region_id: int | None = None,
    ) -> None:
        """
        Args:
            client: Shared HTTP client for the current sync attempt
            base_url: Site root (uses settings if not provided)
            language: Site language segment, e.g. "fr"
            region: Region slug for the listing, e.g. "brabant-wallon"
            region_id: Numeric region id for the showtimes endpoint
        """
        self.client = client
        self.base_url = (base_url or settings.cinenews_base_url).rstrip("/")
        self.language = language or settings.cinenews_language
        self.region = region or settings.cinenews_region
        self.region_id = region_id if region_id is not None else settings.cinenews_region_id

    @property
    def listing_url(self) -> str:
        return f"{self.base_url}/{self.language}/cinema/programme/region/{self.region}"

    def absolute_url(self, href: str) -> str:
        return urljoin(f"{self.base_url}/", href)

    async def fetch_listing_page(self, startrow: int) -> str:
        """Fetch one listing page; startrow is the 1-based index of its first entry."""
        return await self._get_text(self.listing_url, params={"startrow": startrow})

    async def fetch_detail_page(self, url: str) -> str:
        return await self._get_text(url)

    async def fetch_showtimes(self, native_id: str, day: date) -> dict[str, Any]:
        """
        Fetch the showtimes of one title for one day.

        Raises:
            ParseError: if the body is not a JSON object
        """
        params = {
            "Lang": self.language,
            "act": "movieShowtimes",
            "moviesId": native_id,
            "v3": "",
            "regionId": self.region_id,
            "selDate": format_query_date(day),
        }
        response = await self._get(f"{self.base_url}{self.SHOWTIMES_PATH}", params=params)
        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"Showtimes for {native_id} on {day} are not JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ParseError(f"Showtimes for {native_id} on {day}: unexpected payload type")
        return payload

    async def _get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        response = await self._get(url, params=params)
        return response.text

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            response = await self.client.get(url, params=params, headers=browser_headers())
        except httpx.HTTPError as e:
            raise FetchError(url, reason=str(e) or type(e).__name__) from e

        if response.status_code == 403:
            logger.warning(f"Cinenews refused request (403): {response.request.url}")
            raise BlockedError(str(response.request.url))
        if response.status_code != 200:
            raise FetchError(str(response.request.url), status_code=response.status_code)

        logger.debug(f"GET {response.request.url} -> {response.status_code}")
        return response
