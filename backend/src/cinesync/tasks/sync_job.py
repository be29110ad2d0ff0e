"""Sync job: crawl cinenews, enrich from TMDb and reconcile the catalog."""

import asyncio
import logging
import random
import time
from collections.abc import Callable
from datetime import date

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cinesync.config import settings
from cinesync.database import AsyncSessionLocal
from cinesync.schemas.sync import SyncError, SyncReport
from cinesync.scrapers.cinenews import CinenewsClient
from cinesync.scrapers.errors import BlockedError
from cinesync.scrapers.listing import ListingCrawler
from cinesync.scrapers.showtimes import ShowtimeCrawler, Sleep
from cinesync.services.enrichment import MovieEnricher
from cinesync.services.identity_resolver import IdentityResolver
from cinesync.services.reconciler import CatalogReconciler
from cinesync.services.tmdb_client import TMDbClient
from cinesync.utils.aio import gather_or_cancel
from cinesync.utils.dates import utc_today

logger = logging.getLogger(__name__)

# Serialises scheduled and manually triggered runs
_sync_lock = asyncio.Lock()


def default_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.scrape_timeout, follow_redirects=True)


class SyncPipeline:
    """
    Runs the full synchronisation, retrying the whole chain when blocked.

    One attempt is: listing crawl → identity resolution → enrichment with
    showtime crawls → catalog upsert → expiry cleanup. Nothing is written
    to the database until every network stage of the attempt succeeded, so
    a retried attempt never leaves partial catalog changes behind.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        http_client_factory: Callable[[], httpx.AsyncClient] = default_http_client,
        sleep: Sleep = asyncio.sleep,
        today: Callable[[], date] = utc_today,
        rng: random.Random | None = None,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
        tmdb_access_token: str | None = None,
    ) -> None:
        self.session_factory = session_factory or AsyncSessionLocal
        self.http_client_factory = http_client_factory
        self.sleep = sleep
        self.today = today
        self.rng = rng
        self.max_attempts = max_attempts or settings.sync_max_attempts
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.sync_retry_delay_seconds
        )
        self.tmdb_access_token = tmdb_access_token

    async def run(self) -> SyncReport | SyncError:
        """
        Run the sync with up to max_attempts attempts.

        Returns:
            SyncReport on success, SyncError(kind="blocked") once every
            attempt was refused with HTTP 403, SyncError(kind="failed") on
            any other error
        """
        started = time.perf_counter()

        for attempt in range(1, self.max_attempts + 1):
            logger.info(f"Sync attempt {attempt}/{self.max_attempts}")
            try:
                report = await self.run_once(started)
            except BlockedError as e:
                if attempt < self.max_attempts:
                    logger.warning(f"Blocked by cinenews ({e}); retrying from the start")
                    await self.sleep(self.retry_delay)
                    continue
                logger.error(f"Blocked by cinenews ({e}); giving up after {attempt} attempts")
                return SyncError(
                    kind="blocked",
                    message="Access denied (403). Max retries reached.",
                    attempts=attempt,
                )
            except Exception as e:
                logger.error(f"Sync failed: {e}", exc_info=True)
                return SyncError(
                    kind="failed",
                    message="An error occurred during synchronisation.",
                    attempts=attempt,
                )

            logger.info(
                f"Sync complete in {report.elapsed_ms} ms: {report.scraped_count} movies scraped, "
                f"{report.inserted_movies} movies / {report.inserted_shows} shows / "
                f"{report.inserted_showtimes} showtimes upserted, "
                f"{report.removed_shows} shows / {report.removed_movies} movies removed"
            )
            return report

        raise RuntimeError("max_attempts must be at least 1")

    async def run_once(self, started: float | None = None) -> SyncReport:
        """Run a single attempt; BlockedError and other errors propagate."""
        started = started if started is not None else time.perf_counter()

        async with self.http_client_factory() as client:
            cinenews = CinenewsClient(client)
            tmdb_client = TMDbClient(client, access_token=self.tmdb_access_token)
            showtime_crawler = ShowtimeCrawler(
                cinenews, sleep=self.sleep, today=self.today, rng=self.rng
            )

            detail_urls = await ListingCrawler(cinenews).crawl()
            resolved, unresolved = await IdentityResolver(cinenews, tmdb_client).resolve_all(
                detail_urls
            )

            enricher = MovieEnricher(cinenews, tmdb_client, showtime_crawler)
            tmdb_movies, cinenews_movies = await gather_or_cancel(
                enricher.enrich_all(resolved), enricher.enrich_all(unresolved)
            )

        reconciler = CatalogReconciler(self.session_factory, today=self.today)
        crawled = tmdb_movies + cinenews_movies
        upserted = await reconciler.upsert(crawled)
        purged = await reconciler.purge_expired()

        return SyncReport(
            elapsed_ms=round((time.perf_counter() - started) * 1000),
            scraped_count=len(crawled),
            inserted_movies=upserted.movies,
            inserted_shows=upserted.shows,
            inserted_showtimes=upserted.showtimes,
            removed_shows=purged.shows,
            removed_movies=purged.movies,
        )


async def run_sync() -> SyncReport | SyncError:
    """Run one sync with default wiring; concurrent callers wait their turn.

    Creates its own DB sessions so it can be called from the scheduler
    or the admin endpoint without depending on a request context.
    """
    async with _sync_lock:
        return await SyncPipeline().run()
