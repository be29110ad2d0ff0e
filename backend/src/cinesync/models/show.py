"""Show model: one calendar date on which a movie plays."""

import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cinesync.models.base import Base

if TYPE_CHECKING:
    from cinesync.models.movie import Movie
    from cinesync.models.showtime import Showtime


class Show(Base):
    """
    A movie's playing date.

    Deleting a show removes its showtimes; a movie left without shows is
    considered stale and removed by the expiry cleanup.
    """

    __tablename__ = "shows"
    __table_args__ = (UniqueConstraint("date", "movie_id", name="uq_show_date_movie"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    movie_id: Mapped[int] = mapped_column(
        ForeignKey("movies.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    movie: Mapped["Movie"] = relationship(back_populates="shows")
    showtimes: Mapped[list["Showtime"]] = relationship(
        back_populates="show",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Show(movie_id={self.movie_id!r}, date={self.date})>"
