"""Paginated crawl of the cinenews "now playing" listing."""

import logging

from bs4 import BeautifulSoup

from cinesync.config import settings
from cinesync.scrapers.cinenews import CinenewsClient

logger = logging.getLogger(__name__)

ENTRY_SELECTOR = ".movies-list article.movies-stk .stk-title a[href]"


def parse_listing_page(html: str) -> list[str]:
    """Return the detail-page hrefs found on one listing page, in page order."""
    soup = BeautifulSoup(html, "html.parser")
    hrefs = []
    for link in soup.select(ENTRY_SELECTOR):
        href = link.get("href", "").strip()
        if href:
            hrefs.append(href)
    return hrefs


class ListingCrawler:
    """
    Walks the region listing page by page.

    The page size is fixed by the site; startrow moves forward by one page
    each time until a page brings no entry that was not seen before.
    Any failed page request propagates: a partial listing would make the
    expiry cleanup drop titles that are still playing.
    """

    def __init__(self, cinenews: CinenewsClient, page_size: int | None = None) -> None:
        self.cinenews = cinenews
        self.page_size = page_size or settings.listing_page_size

    async def crawl(self) -> list[str]:
        """
        Collect every advertised title.

        Returns:
            Absolute detail-page URLs, de-duplicated, in discovery order

        Raises:
            BlockedError: if a page request is refused with HTTP 403
            FetchError: if any other page request fails
        """
        seen: dict[str, None] = {}
        startrow = 1
        pages = 0

        while True:
            html = await self.cinenews.fetch_listing_page(startrow)
            pages += 1

            new_entries = 0
            for href in parse_listing_page(html):
                url = self.cinenews.absolute_url(href)
                if url not in seen:
                    seen[url] = None
                    new_entries += 1

            logger.debug(f"Listing page startrow={startrow}: {new_entries} new entries")
            if new_entries == 0:
                break

            startrow += self.page_size

        logger.info(f"Listing crawl found {len(seen)} titles across {pages} pages")
        return list(seen)
