"""Movie model for storing movie metadata."""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cinesync.models.base import Base, JsonDocument, StringArray

if TYPE_CHECKING:
    from cinesync.models.show import Show


class Movie(Base):
    """
    Movie model.

    Stores metadata from TMDb, or parsed from the cinenews detail page when
    the title could not be resolved on TMDb. The slug is derived from the
    title and the cinenews id, so it is stable across sync runs.
    """

    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tmdb_id: Mapped[int | None] = mapped_column(Integer, nullable=True, unique=True)
    imdb_id: Mapped[str | None] = mapped_column(String(20), nullable=True, unique=True)
    slug: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    runtime: Mapped[int | None] = mapped_column(Integer, nullable=True)
    genres: Mapped[list[str] | None] = mapped_column(StringArray, nullable=True)
    original_language: Mapped[str | None] = mapped_column(String(10), nullable=True)
    directors: Mapped[list[str] | None] = mapped_column(StringArray, nullable=True)
    actors: Mapped[list[str] | None] = mapped_column(StringArray, nullable=True)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Image URL sets: {"medium", "large"} and {"small", "medium", "large"}
    backdrop: Mapped[dict | None] = mapped_column(JsonDocument, nullable=True)
    poster: Mapped[dict | None] = mapped_column(JsonDocument, nullable=True)
    videos: Mapped[list[dict] | None] = mapped_column(JsonDocument, nullable=True)

    # Relationships
    shows: Mapped[list["Show"]] = relationship(
        back_populates="movie",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Movie(id={self.id!r}, slug={self.slug!r}, title={self.title!r})>"
