"""SQLAlchemy ORM models."""

from cinesync.models.base import Base
from cinesync.models.cinema import Cinema
from cinesync.models.movie import Movie
from cinesync.models.show import Show
from cinesync.models.showtime import Showtime

__all__ = ["Base", "Cinema", "Movie", "Show", "Showtime"]
