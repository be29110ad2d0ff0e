"""Builds normalized movie records with their crawled shows."""

import logging

from cinesync.scrapers.cinenews import CinenewsClient
from cinesync.scrapers.detail_page import parse_movie
from cinesync.scrapers.errors import BlockedError, FetchError, ParseError
from cinesync.scrapers.models import (
    CrawledMovie,
    MetadataSource,
    NormalizedMovie,
    ResolvedTitle,
    TitleIdentity,
    UnresolvedTitle,
    Video,
)
from cinesync.scrapers.showtimes import ShowtimeCrawler
from cinesync.services.tmdb_client import BACKDROP_SIZES, POSTER_SIZES, TMDbClient
from cinesync.utils.aio import gather_or_cancel
from cinesync.utils.dates import parse_iso_date
from cinesync.utils.text import movie_slug

logger = logging.getLogger(__name__)


class MovieEnricher:
    """
    Turns resolved and unresolved titles into CrawledMovie records.

    Each title's showtimes are crawled first; a title whose crawl fails is
    dropped before any metadata is requested. Metadata then comes from TMDb
    for resolved titles and from the cinenews detail page for the others.
    A failure for one title only drops that title; a 403 from cinenews
    aborts the whole batch.
    """

    def __init__(
        self,
        cinenews: CinenewsClient,
        tmdb_client: TMDbClient,
        showtime_crawler: ShowtimeCrawler,
    ) -> None:
        self.cinenews = cinenews
        self.tmdb_client = tmdb_client
        self.showtime_crawler = showtime_crawler

    async def enrich_all(self, titles: list[TitleIdentity]) -> list[CrawledMovie]:
        """Enrich titles concurrently, keeping only those that succeeded."""
        results = await gather_or_cancel(*(self.enrich(title) for title in titles))
        movies = [movie for movie in results if movie is not None]
        logger.info(f"Enriched {len(movies)} of {len(titles)} titles")
        return movies

    async def enrich(self, title: TitleIdentity) -> CrawledMovie | None:
        if not title.native_id:
            logger.warning(f"Skipping {title.detail_url}: no cinenews id")
            return None

        shows = await self.showtime_crawler.crawl(title.native_id)
        if shows is None:
            logger.warning(f"Skipping {title.detail_url}: showtime crawl failed")
            return None

        if isinstance(title, ResolvedTitle):
            movie = await self._from_tmdb(title)
        else:
            movie = await self._from_detail_page(title)

        if movie is None:
            return None
        return CrawledMovie(movie=movie, shows=shows)

    async def _from_tmdb(self, title: ResolvedTitle) -> NormalizedMovie | None:
        details = await self.tmdb_client.get_movie_details(title.tmdb_id)
        if not details:
            logger.warning(f"Skipping {title.detail_url}: no TMDb details for {title.tmdb_id}")
            return None

        name = (details.get("title") or "").strip()
        if not name:
            logger.warning(f"Skipping {title.detail_url}: TMDb movie {title.tmdb_id} has no title")
            return None

        credits = details.get("credits") or {}

        return NormalizedMovie(
            slug=movie_slug(name, title.native_id),
            title=name,
            source=MetadataSource.TMDB,
            tmdb_id=title.tmdb_id,
            imdb_id=title.imdb_id,
            release_date=parse_iso_date(details.get("release_date")),
            runtime=details.get("runtime") or None,
            genres=self.tmdb_client.extract_genres(details),
            original_language=details.get("original_language") or None,
            directors=self.tmdb_client.extract_directors(credits),
            actors=self.tmdb_client.extract_cast(credits),
            overview=details.get("overview") or None,
            backdrop=self.tmdb_client.image_urls(details.get("backdrop_path"), BACKDROP_SIZES),
            poster=self.tmdb_client.image_urls(details.get("poster_path"), POSTER_SIZES),
            videos=[
                Video(name=video["name"], key=video["key"])
                for video in self.tmdb_client.extract_trailers(details.get("videos") or {})
            ],
        )

    async def _from_detail_page(self, title: UnresolvedTitle) -> NormalizedMovie | None:
        html = title.html
        if html is None:
            try:
                html = await self.cinenews.fetch_detail_page(title.detail_url)
            except BlockedError:
                raise
            except FetchError as e:
                logger.warning(f"Skipping {title.detail_url}: {e}")
                return None

        try:
            movie = parse_movie(html, title.native_id)
        except ParseError as e:
            logger.warning(f"Skipping {title.detail_url}: {e}")
            return None

        movie.imdb_id = title.imdb_id
        return movie
