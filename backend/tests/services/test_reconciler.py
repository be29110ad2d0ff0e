"""Tests for the catalog upsert and expiry cleanup against a SQLite database."""

from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cinesync.models import Movie, Show, Showtime
from cinesync.scrapers.models import (
    CinemaShowtimes,
    CrawledMovie,
    MetadataSource,
    NormalizedMovie,
    ShowCandidate,
    ShowtimeEntry,
    Video,
)
from cinesync.services.reconciler import CatalogReconciler, PurgeCounts, UpsertCounts

TODAY = date(2026, 10, 19)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_movie(slug: str = "l-ete-dernier-51234", title: str = "L'Été dernier", **kwargs) -> NormalizedMovie:
    defaults = dict(
        slug=slug,
        title=title,
        source=MetadataSource.TMDB,
        tmdb_id=None,
        imdb_id=None,
        genres=["Drame"],
        directors=["Catherine Breillat"],
        videos=[Video(name="Bande-annonce", key="abc123")],
        poster={"small": "s", "medium": "m", "large": "l"},
    )
    defaults.update(kwargs)
    return NormalizedMovie(**defaults)


def make_show(day: date, cinema_id: int = 101, hours: tuple[int, ...] = (20,), version: str = "VF") -> ShowCandidate:
    return ShowCandidate(
        date=day,
        cinemas=[
            CinemaShowtimes(
                cinema_id=cinema_id,
                cinema_name=f"Cinema {cinema_id}",
                times=[
                    ShowtimeEntry(
                        starts_at=datetime.combine(day, time(hour), tzinfo=timezone.utc),
                        version_short=version,
                        version_long="Version française" if version == "VF" else "Version originale",
                    )
                    for hour in hours
                ],
            )
        ],
    )


async def count(session_factory: async_sessionmaker[AsyncSession], model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


def make_reconciler(session_factory: async_sessionmaker[AsyncSession]) -> CatalogReconciler:
    return CatalogReconciler(session_factory, today=lambda: TODAY)


# ---------------------------------------------------------------------------
# upsert
# ---------------------------------------------------------------------------


class TestUpsert:
    async def test_empty_input_writes_nothing(self, session_factory) -> None:
        counts = await make_reconciler(session_factory).upsert([])
        assert counts == UpsertCounts(movies=0, shows=0, showtimes=0)
        assert await count(session_factory, Movie) == 0

    async def test_inserts_movie_shows_and_showtimes(self, session_factory) -> None:
        crawled = [
            CrawledMovie(
                movie=make_movie(tmdb_id=1032823, imdb_id="tt21372066"),
                shows=[make_show(TODAY, hours=(14, 20)), make_show(TODAY + timedelta(days=1))],
            )
        ]

        counts = await make_reconciler(session_factory).upsert(crawled)

        assert counts == UpsertCounts(movies=1, shows=2, showtimes=3)
        async with session_factory() as session:
            movie = (await session.execute(select(Movie))).scalar_one()
        assert movie.slug == "l-ete-dernier-51234"
        assert movie.tmdb_id == 1032823
        assert movie.genres == ["Drame"]
        assert movie.videos == [{"name": "Bande-annonce", "key": "abc123"}]
        assert movie.poster == {"small": "s", "medium": "m", "large": "l"}

    async def test_second_run_inserts_no_showtimes(self, session_factory) -> None:
        crawled = [CrawledMovie(movie=make_movie(), shows=[make_show(TODAY, hours=(14, 20))])]
        reconciler = make_reconciler(session_factory)

        await reconciler.upsert(crawled)
        counts = await reconciler.upsert(crawled)

        assert counts.showtimes == 0
        assert await count(session_factory, Movie) == 1
        assert await count(session_factory, Show) == 1
        assert await count(session_factory, Showtime) == 2

    async def test_existing_movie_is_not_overwritten(self, session_factory) -> None:
        reconciler = make_reconciler(session_factory)
        await reconciler.upsert([CrawledMovie(movie=make_movie(), shows=[make_show(TODAY)])])

        renamed = make_movie(title="Un autre titre", overview="Nouveau résumé")
        counts = await reconciler.upsert([CrawledMovie(movie=renamed, shows=[make_show(TODAY)])])

        assert counts.movies == 1
        async with session_factory() as session:
            movie = (await session.execute(select(Movie))).scalar_one()
        assert movie.title == "L'Été dernier"
        assert movie.overview is None

    async def test_new_showtime_on_existing_show_is_added(self, session_factory) -> None:
        reconciler = make_reconciler(session_factory)
        await reconciler.upsert([CrawledMovie(movie=make_movie(), shows=[make_show(TODAY, hours=(14,))])])

        counts = await reconciler.upsert(
            [CrawledMovie(movie=make_movie(), shows=[make_show(TODAY, hours=(14, 18))])]
        )

        assert counts.showtimes == 1
        assert await count(session_factory, Show) == 1
        assert await count(session_factory, Showtime) == 2

    async def test_versions_are_distinct_showtimes(self, session_factory) -> None:
        show = make_show(TODAY)
        show.cinemas.append(make_show(TODAY, version="VOst").cinemas[0])

        counts = await make_reconciler(session_factory).upsert(
            [CrawledMovie(movie=make_movie(), shows=[show])]
        )

        assert counts.showtimes == 2

    async def test_duplicates_within_one_run_are_collapsed(self, session_factory) -> None:
        crawled = [
            CrawledMovie(movie=make_movie(), shows=[make_show(TODAY), make_show(TODAY)]),
            CrawledMovie(movie=make_movie(), shows=[make_show(TODAY)]),
        ]

        counts = await make_reconciler(session_factory).upsert(crawled)

        assert counts == UpsertCounts(movies=1, shows=1, showtimes=1)

    async def test_unknown_cinema_is_skipped(self, session_factory) -> None:
        show = make_show(TODAY, cinema_id=101)
        show.cinemas.append(make_show(TODAY, cinema_id=999).cinemas[0])

        counts = await make_reconciler(session_factory).upsert(
            [CrawledMovie(movie=make_movie(), shows=[show])]
        )

        assert counts.showtimes == 1
        async with session_factory() as session:
            cinema_ids = (await session.execute(select(Showtime.cinema_id))).scalars().all()
        assert cinema_ids == [101]

    async def test_movie_without_shows_is_stored(self, session_factory) -> None:
        counts = await make_reconciler(session_factory).upsert(
            [CrawledMovie(movie=make_movie(), shows=[])]
        )
        assert counts == UpsertCounts(movies=1, shows=0, showtimes=0)


# ---------------------------------------------------------------------------
# purge_expired
# ---------------------------------------------------------------------------


class TestPurgeExpired:
    async def test_removes_past_shows_and_orphaned_movies(self, session_factory) -> None:
        reconciler = make_reconciler(session_factory)
        yesterday = TODAY - timedelta(days=1)
        await reconciler.upsert(
            [
                CrawledMovie(movie=make_movie(slug="old-1"), shows=[make_show(yesterday)]),
                CrawledMovie(
                    movie=make_movie(slug="current-2"),
                    shows=[make_show(yesterday), make_show(TODAY)],
                ),
            ]
        )

        counts = await reconciler.purge_expired()

        assert counts == PurgeCounts(shows=2, movies=1)
        async with session_factory() as session:
            slugs = (await session.execute(select(Movie.slug))).scalars().all()
            show_dates = (await session.execute(select(Show.date))).scalars().all()
        assert slugs == ["current-2"]
        assert show_dates == [TODAY]

    async def test_showtimes_of_removed_shows_cascade(self, session_factory) -> None:
        reconciler = make_reconciler(session_factory)
        await reconciler.upsert(
            [
                CrawledMovie(
                    movie=make_movie(),
                    shows=[make_show(TODAY - timedelta(days=2), hours=(14, 20)), make_show(TODAY)],
                )
            ]
        )

        await reconciler.purge_expired()

        assert await count(session_factory, Showtime) == 1

    async def test_todays_shows_are_kept(self, session_factory) -> None:
        reconciler = make_reconciler(session_factory)
        await reconciler.upsert([CrawledMovie(movie=make_movie(), shows=[make_show(TODAY)])])

        assert await reconciler.purge_expired() == PurgeCounts(shows=0, movies=0)
        assert await count(session_factory, Show) == 1

    async def test_movie_cleanup_skipped_when_no_show_expired(self, session_factory) -> None:
        reconciler = make_reconciler(session_factory)
        await reconciler.upsert([CrawledMovie(movie=make_movie(), shows=[])])

        assert await reconciler.purge_expired() == PurgeCounts(shows=0, movies=0)
        assert await count(session_factory, Movie) == 1


# ---------------------------------------------------------------------------
# Same movie under different slugs
# ---------------------------------------------------------------------------


class TestExternalIdentity:
    async def test_two_listing_entries_with_same_tmdb_id_become_one_movie(
        self, session_factory
    ) -> None:
        crawled = [
            CrawledMovie(
                movie=make_movie(slug="dune-51234", title="Dune", tmdb_id=438631, imdb_id="tt15239678"),
                shows=[make_show(TODAY)],
            ),
            CrawledMovie(
                movie=make_movie(slug="dune-51299", title="Dune", tmdb_id=438631, imdb_id="tt15239678"),
                shows=[make_show(TODAY + timedelta(days=1))],
            ),
        ]

        counts = await make_reconciler(session_factory).upsert(crawled)

        assert counts == UpsertCounts(movies=1, shows=2, showtimes=2)
        async with session_factory() as session:
            slugs = (await session.execute(select(Movie.slug))).scalars().all()
        assert slugs == ["dune-51234"]

    async def test_same_imdb_id_without_tmdb_match_is_merged(self, session_factory) -> None:
        crawled = [
            CrawledMovie(
                movie=make_movie(slug="dune-51234", title="Dune", tmdb_id=438631, imdb_id="tt15239678"),
                shows=[make_show(TODAY)],
            ),
            CrawledMovie(
                movie=make_movie(
                    slug="dune-vf-51300",
                    title="Dune VF",
                    source=MetadataSource.CINENEWS,
                    imdb_id="tt15239678",
                ),
                shows=[make_show(TODAY, hours=(14,))],
            ),
        ]

        counts = await make_reconciler(session_factory).upsert(crawled)

        assert counts == UpsertCounts(movies=1, shows=1, showtimes=2)

    async def test_retitled_movie_reuses_stored_row(self, session_factory) -> None:
        reconciler = make_reconciler(session_factory)
        await reconciler.upsert(
            [
                CrawledMovie(
                    movie=make_movie(slug="dune-51234", title="Dune", tmdb_id=438631, imdb_id="tt15239678"),
                    shows=[make_show(TODAY)],
                )
            ]
        )

        retitled = make_movie(
            slug="dune-deuxieme-partie-51234",
            title="Dune : Deuxième partie",
            tmdb_id=438631,
            imdb_id="tt15239678",
        )
        counts = await reconciler.upsert(
            [CrawledMovie(movie=retitled, shows=[make_show(TODAY), make_show(TODAY + timedelta(days=1))])]
        )

        assert counts == UpsertCounts(movies=1, shows=2, showtimes=1)
        async with session_factory() as session:
            movie = (await session.execute(select(Movie))).scalar_one()
        assert movie.slug == "dune-51234"
        assert movie.title == "Dune"

    async def test_retitled_movie_does_not_block_cleanup(self, session_factory) -> None:
        yesterday = TODAY - timedelta(days=1)
        await CatalogReconciler(session_factory, today=lambda: yesterday).upsert(
            [
                CrawledMovie(
                    movie=make_movie(slug="dune-51234", title="Dune", tmdb_id=438631),
                    shows=[make_show(yesterday)],
                )
            ]
        )

        reconciler = make_reconciler(session_factory)
        await reconciler.upsert(
            [
                CrawledMovie(
                    movie=make_movie(slug="dune-2-51234", title="Dune 2", tmdb_id=438631),
                    shows=[make_show(TODAY)],
                )
            ]
        )

        assert await reconciler.purge_expired() == PurgeCounts(shows=1, movies=0)
        assert await count(session_factory, Movie) == 1
