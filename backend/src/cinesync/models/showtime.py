"""Showtime model for individual screenings."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cinesync.models.base import Base

if TYPE_CHECKING:
    from cinesync.models.cinema import Cinema
    from cinesync.models.show import Show


class Showtime(Base):
    """
    One screening of a show at a cinema.

    The version columns hold the cinenews language labels, e.g. "VF" and
    "Version française".
    """

    __tablename__ = "showtimes"
    __table_args__ = (
        UniqueConstraint(
            "cinema_id",
            "show_id",
            "version",
            "starts_at",
            name="uq_cinema_show_version_time",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Foreign keys
    show_id: Mapped[int] = mapped_column(
        ForeignKey("shows.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    cinema_id: Mapped[int] = mapped_column(
        ForeignKey("cinemas.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )

    # Showtime details
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[str] = mapped_column(String(50), nullable=False)
    version_long: Mapped[str] = mapped_column(String(200), nullable=False)

    # Relationships
    show: Mapped["Show"] = relationship(back_populates="showtimes")
    cinema: Mapped["Cinema"] = relationship(back_populates="showtimes")

    def __repr__(self) -> str:
        return (
            f"<Showtime(cinema_id={self.cinema_id!r}, "
            f"show_id={self.show_id!r}, "
            f"version={self.version!r}, "
            f"starts_at={self.starts_at})>"
        )
