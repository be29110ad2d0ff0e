"""Writes crawled movies into the catalog and removes expired entries."""

import logging
from collections.abc import Callable, Iterator
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import delete, exists, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cinesync.models import Cinema, Movie, Show, Showtime
from cinesync.scrapers.models import CinemaShowtimes, CrawledMovie, NormalizedMovie
from cinesync.utils.dates import utc_today

logger = logging.getLogger(__name__)

# Keeps every multi-row INSERT well under the 32767 bind parameter limit
CHUNK_SIZE = 1000


@dataclass(frozen=True)
class UpsertCounts:
    movies: int
    shows: int
    showtimes: int


@dataclass(frozen=True)
class PurgeCounts:
    shows: int
    movies: int


ShowtimeKey = tuple[int, int, str, datetime]


def _chunks(rows: list[Any]) -> Iterator[list[Any]]:
    for start in range(0, len(rows), CHUNK_SIZE):
        yield rows[start : start + CHUNK_SIZE]


def _identity_keys(movie: NormalizedMovie) -> list[tuple[str, Any]]:
    """Keys under which two crawled entries are the same movie."""
    keys: list[tuple[str, Any]] = [("slug", movie.slug)]
    if movie.tmdb_id is not None:
        keys.append(("tmdb_id", movie.tmdb_id))
    if movie.imdb_id:
        keys.append(("imdb_id", movie.imdb_id))
    return keys


def _movie_row(movie: NormalizedMovie) -> dict[str, Any]:
    return {
        "tmdb_id": movie.tmdb_id,
        "imdb_id": movie.imdb_id,
        "slug": movie.slug,
        "title": movie.title,
        "release_date": movie.release_date,
        "runtime": movie.runtime,
        "genres": movie.genres,
        "original_language": movie.original_language,
        "directors": movie.directors,
        "actors": movie.actors,
        "overview": movie.overview,
        "backdrop": movie.backdrop,
        "poster": movie.poster,
        "videos": [asdict(video) for video in movie.videos],
    }


class CatalogReconciler:
    """
    Merges crawled data into the movies / shows / showtimes tables.

    The upsert is hierarchical: movies are keyed on TMDb id, IMDb id or
    slug (in that order of precedence against stored rows), shows on
    (date, movie_id) and showtimes on (cinema_id, show_id, version,
    starts_at). Existing movies and shows are left untouched; existing
    showtimes are skipped and not counted as inserted.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.session_factory = session_factory
        self.today = today

    async def upsert(self, crawled: list[CrawledMovie]) -> UpsertCounts:
        """
        Upsert movies, their shows and their showtimes in one transaction.

        Returns:
            Movies and shows touched (inserted or already present), and
            showtimes newly inserted
        """
        movies = self._aggregate_movies(crawled)
        if not movies:
            return UpsertCounts(movies=0, shows=0, showtimes=0)

        async with self.session_factory() as session:
            async with session.begin():
                insert = self._insert_for(session)

                movie_ids = await self._upsert_movies(session, insert, movies)
                show_cinemas = self._aggregate_shows(movies, movie_ids)
                show_ids = await self._upsert_shows(session, insert, show_cinemas)
                inserted_showtimes = await self._insert_showtimes(
                    session, insert, show_cinemas, show_ids
                )

        counts = UpsertCounts(
            movies=len(set(movie_ids.values())),
            shows=len(show_ids),
            showtimes=inserted_showtimes,
        )
        logger.info(
            f"Catalog upsert: {counts.movies} movies, {counts.shows} shows, "
            f"{counts.showtimes} new showtimes"
        )
        return counts

    async def purge_expired(self) -> PurgeCounts:
        """
        Delete shows dated before today, then movies left without any show.

        Showtimes of deleted shows go with them through ON DELETE CASCADE.
        Movie cleanup only runs when at least one show was deleted.
        """
        today = self.today()

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(Show).where(Show.date < today).execution_options(synchronize_session=False)
                )
                deleted_shows = result.rowcount or 0

                deleted_movies = 0
                if deleted_shows:
                    result = await session.execute(
                        delete(Movie)
                        .where(~exists().where(Show.movie_id == Movie.id))
                        .execution_options(synchronize_session=False)
                    )
                    deleted_movies = result.rowcount or 0

        logger.info(f"Catalog cleanup: removed {deleted_shows} shows and {deleted_movies} movies")
        return PurgeCounts(shows=deleted_shows, movies=deleted_movies)

    @staticmethod
    def _insert_for(session: AsyncSession):
        """Pick the dialect-specific insert that supports ON CONFLICT."""
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise RuntimeError(f"Unsupported database dialect for upserts: {dialect}")

    @staticmethod
    def _aggregate_movies(crawled: list[CrawledMovie]) -> dict[str, CrawledMovie]:
        """
        Index movies by slug, merging entries that are the same movie.

        Entries sharing a slug, a TMDb id or an IMDb id (e.g. one film listed
        under two cinenews ids) collapse into the first one seen, which keeps
        its metadata and gains the shows of the others.
        """
        movies: dict[str, CrawledMovie] = {}
        slug_by_key: dict[tuple[str, Any], str] = {}

        for item in crawled:
            keys = _identity_keys(item.movie)
            slug = next((slug_by_key[key] for key in keys if key in slug_by_key), None)
            if slug is None:
                slug = item.movie.slug
                movies[slug] = CrawledMovie(movie=item.movie, shows=list(item.shows))
            else:
                logger.debug(f"Merging {item.movie.slug} into {slug}")
                movies[slug].shows.extend(item.shows)
            for key in keys:
                slug_by_key.setdefault(key, slug)

        return movies

    @staticmethod
    def _aggregate_shows(
        movies: dict[str, CrawledMovie], movie_ids: dict[str, int]
    ) -> dict[tuple[int, date], list[CinemaShowtimes]]:
        """Group per-cinema screenings by (movie_id, date)."""
        shows: dict[tuple[int, date], list[CinemaShowtimes]] = {}
        for slug, item in movies.items():
            movie_id = movie_ids.get(slug)
            if movie_id is None:
                continue
            for show in item.shows:
                shows.setdefault((movie_id, show.date), []).extend(show.cinemas)
        return shows

    async def _upsert_movies(
        self, session: AsyncSession, insert, movies: dict[str, CrawledMovie]
    ) -> dict[str, int]:
        """
        Insert new movies and return the row id for every run slug.

        Movies already stored under the same TMDb or IMDb id reuse that row
        (and its slug) instead of being inserted, so a retitled movie or a
        second cinenews id for the same film never trips those unique keys.
        """
        movie_ids = await self._existing_movie_ids(session, movies)
        rows = [_movie_row(item.movie) for slug, item in movies.items() if slug not in movie_ids]

        for chunk in _chunks(rows):
            stmt = insert(Movie).values(chunk)
            stmt = stmt.on_conflict_do_update(
                index_elements=[Movie.slug],
                set_={"slug": stmt.excluded.slug},
            ).returning(Movie.id, Movie.slug)
            result = await session.execute(stmt)
            movie_ids.update({slug: movie_id for movie_id, slug in result.all()})

        return movie_ids

    async def _existing_movie_ids(
        self, session: AsyncSession, movies: dict[str, CrawledMovie]
    ) -> dict[str, int]:
        """Map run slugs to stored movies that share their TMDb or IMDb id."""
        by_tmdb_id = {
            item.movie.tmdb_id: slug
            for slug, item in movies.items()
            if item.movie.tmdb_id is not None
        }
        by_imdb_id = {
            item.movie.imdb_id: slug for slug, item in movies.items() if item.movie.imdb_id
        }
        tmdb_ids = list(by_tmdb_id)
        imdb_ids = list(by_imdb_id)

        matched: dict[str, int] = {}
        for start in range(0, max(len(tmdb_ids), len(imdb_ids)), CHUNK_SIZE):
            stmt = select(Movie.id, Movie.slug, Movie.tmdb_id, Movie.imdb_id).where(
                or_(
                    Movie.tmdb_id.in_(tmdb_ids[start : start + CHUNK_SIZE]),
                    Movie.imdb_id.in_(imdb_ids[start : start + CHUNK_SIZE]),
                )
            )
            for movie_id, stored_slug, tmdb_id, imdb_id in (await session.execute(stmt)).all():
                for run_slug in (by_tmdb_id.get(tmdb_id), by_imdb_id.get(imdb_id)):
                    if run_slug is None or run_slug in matched:
                        continue
                    matched[run_slug] = movie_id
                    if run_slug != stored_slug:
                        logger.info(f"{run_slug} is stored movie {stored_slug} (same external id)")

        return matched

    async def _upsert_shows(
        self,
        session: AsyncSession,
        insert,
        show_cinemas: dict[tuple[int, date], list[CinemaShowtimes]],
    ) -> dict[tuple[int, date], int]:
        rows = [{"movie_id": movie_id, "date": day} for movie_id, day in show_cinemas]
        show_ids: dict[tuple[int, date], int] = {}

        for chunk in _chunks(rows):
            stmt = insert(Show).values(chunk)
            stmt = stmt.on_conflict_do_update(
                index_elements=[Show.date, Show.movie_id],
                set_={"date": stmt.excluded.date},
            ).returning(Show.id, Show.movie_id, Show.date)
            result = await session.execute(stmt)
            show_ids.update({(movie_id, day): show_id for show_id, movie_id, day in result.all()})

        return show_ids

    async def _insert_showtimes(
        self,
        session: AsyncSession,
        insert,
        show_cinemas: dict[tuple[int, date], list[CinemaShowtimes]],
        show_ids: dict[tuple[int, date], int],
    ) -> int:
        known_cinemas = set((await session.execute(select(Cinema.id))).scalars().all())
        unknown_cinemas: dict[int, str] = {}

        rows: dict[ShowtimeKey, dict[str, Any]] = {}
        for show_key, cinemas in show_cinemas.items():
            show_id = show_ids.get(show_key)
            if show_id is None:
                continue
            for cinema in cinemas:
                if cinema.cinema_id not in known_cinemas:
                    unknown_cinemas[cinema.cinema_id] = cinema.cinema_name
                    continue
                for entry in cinema.times:
                    key = (cinema.cinema_id, show_id, entry.version_short, entry.starts_at)
                    rows.setdefault(
                        key,
                        {
                            "cinema_id": cinema.cinema_id,
                            "show_id": show_id,
                            "version": entry.version_short,
                            "version_long": entry.version_long,
                            "starts_at": entry.starts_at,
                        },
                    )

        for cinema_id, cinema_name in unknown_cinemas.items():
            logger.warning(f"Skipping showtimes at unknown cinema {cinema_name!r} (id {cinema_id})")

        inserted = 0
        for chunk in _chunks(list(rows.values())):
            stmt = (
                insert(Showtime)
                .values(chunk)
                .on_conflict_do_nothing(
                    index_elements=[
                        Showtime.cinema_id,
                        Showtime.show_id,
                        Showtime.version,
                        Showtime.starts_at,
                    ]
                )
                .returning(Showtime.id)
            )
            result = await session.execute(stmt)
            inserted += len(result.all())

        return inserted
