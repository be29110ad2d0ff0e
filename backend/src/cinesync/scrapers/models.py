"""Data models for crawled and enriched titles."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


@dataclass
class ResolvedTitle:
    """A listing title that was matched to a TMDb movie through its IMDb id."""

    detail_url: str
    native_id: str
    imdb_id: str
    tmdb_id: int


@dataclass
class UnresolvedTitle:
    """
    A listing title without a TMDb match.

    The ids are whatever could be read before resolution failed; a title
    whose detail page could not be fetched has neither.
    """

    detail_url: str
    native_id: str | None = None
    imdb_id: str | None = None
    html: str | None = field(default=None, repr=False)


TitleIdentity = ResolvedTitle | UnresolvedTitle


@dataclass
class ShowtimeEntry:
    """One screening time as published by the showtimes endpoint."""

    starts_at: datetime  # Screening instant (timezone-aware)
    version_short: str  # e.g. "VF", "VOst"
    version_long: str  # e.g. "Version française"

    def __post_init__(self) -> None:
        """Validate that starts_at is timezone-aware."""
        if self.starts_at.tzinfo is None:
            raise ValueError("starts_at must be timezone-aware")


@dataclass
class CinemaShowtimes:
    """Screenings of one title at one cinema on one day."""

    cinema_id: int
    cinema_name: str
    times: list[ShowtimeEntry] = field(default_factory=list)


@dataclass
class ShowCandidate:
    """A date on which a title plays, with its per-cinema screenings."""

    date: date
    cinemas: list[CinemaShowtimes] = field(default_factory=list)


class MetadataSource(str, Enum):
    TMDB = "tmdb"
    CINENEWS = "cinenews"


@dataclass
class Video:
    name: str
    key: str


@dataclass
class NormalizedMovie:
    """
    Movie metadata in the shape stored in the catalog.

    Produced either from TMDb or from the cinenews detail page; only the
    TMDb path fills in videos and the original language.
    """

    slug: str
    title: str
    source: MetadataSource
    tmdb_id: int | None = None
    imdb_id: str | None = None
    release_date: date | None = None
    runtime: int | None = None
    genres: list[str] = field(default_factory=list)
    original_language: str | None = None
    directors: list[str] = field(default_factory=list)
    actors: list[str] = field(default_factory=list)
    overview: str | None = None
    backdrop: dict[str, str] | None = None  # {"medium", "large"}
    poster: dict[str, str] | None = None  # {"small", "medium", "large"}
    videos: list[Video] = field(default_factory=list)


@dataclass
class CrawledMovie:
    """An enriched movie together with its crawled shows, in date order."""

    movie: NormalizedMovie
    shows: list[ShowCandidate] = field(default_factory=list)
