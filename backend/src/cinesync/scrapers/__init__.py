"""Crawlers and parsers for the cinenews.be listing source."""

from cinesync.scrapers.cinenews import CinenewsClient
from cinesync.scrapers.errors import BlockedError, FetchError, ParseError
from cinesync.scrapers.listing import ListingCrawler
from cinesync.scrapers.showtimes import ShowtimeCrawler

__all__ = [
    "BlockedError",
    "CinenewsClient",
    "FetchError",
    "ListingCrawler",
    "ParseError",
    "ShowtimeCrawler",
]
