"""Maps cinenews listing entries to TMDb movies."""

import logging

from cinesync.scrapers.cinenews import CinenewsClient
from cinesync.scrapers.detail_page import parse_ids
from cinesync.scrapers.errors import BlockedError, FetchError
from cinesync.scrapers.models import ResolvedTitle, TitleIdentity, UnresolvedTitle
from cinesync.services.tmdb_client import TMDbClient
from cinesync.utils.aio import gather_or_cancel

logger = logging.getLogger(__name__)


class IdentityResolver:
    """
    Classifies listing entries as resolved (known to TMDb) or unresolved.

    For each entry the detail page is fetched and its cinenews and IMDb ids
    read; when both are present TMDb is asked for the matching movie. Any
    failure short of a 403 only affects that one entry.
    """

    def __init__(self, cinenews: CinenewsClient, tmdb_client: TMDbClient) -> None:
        self.cinenews = cinenews
        self.tmdb_client = tmdb_client

    async def resolve_all(
        self, detail_urls: list[str]
    ) -> tuple[list[ResolvedTitle], list[UnresolvedTitle]]:
        """
        Resolve every entry concurrently.

        Returns:
            (resolved, unresolved), disjoint and each in listing order

        Raises:
            BlockedError: if cinenews refuses a detail page request
        """
        identities = await gather_or_cancel(*(self.resolve(url) for url in detail_urls))

        resolved = [i for i in identities if isinstance(i, ResolvedTitle)]
        unresolved = [i for i in identities if isinstance(i, UnresolvedTitle)]

        logger.info(f"Identity resolution: {len(resolved)} resolved, {len(unresolved)} unresolved")
        return resolved, unresolved

    async def resolve(self, detail_url: str) -> TitleIdentity:
        try:
            html = await self.cinenews.fetch_detail_page(detail_url)
        except BlockedError:
            raise
        except FetchError as e:
            logger.warning(f"Could not fetch detail page {detail_url}: {e}")
            return UnresolvedTitle(detail_url=detail_url)

        native_id, imdb_id = parse_ids(html)
        if not native_id or not imdb_id:
            logger.info(
                f"Missing ids on {detail_url} (cinenews={native_id!r}, imdb={imdb_id!r})"
            )
            return UnresolvedTitle(
                detail_url=detail_url, native_id=native_id, imdb_id=imdb_id, html=html
            )

        tmdb_id = await self.tmdb_client.find_by_imdb_id(imdb_id)
        if tmdb_id is None:
            return UnresolvedTitle(
                detail_url=detail_url,
                native_id=native_id,
                imdb_id=imdb_id,
                html=html,
            )

        return ResolvedTitle(
            detail_url=detail_url,
            native_id=native_id,
            imdb_id=imdb_id,
            tmdb_id=tmdb_id,
        )
