"""Cinema model for the static cinema reference table."""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cinesync.models.base import Base

if TYPE_CHECKING:
    from cinesync.models.showtime import Showtime


class Cinema(Base):
    """
    Cinema venue model.

    Rows are keyed by the cinenews venue id ("YellowID") and maintained
    outside the sync pipeline, which only looks them up.
    """

    __tablename__ = "cinemas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    website: Mapped[str] = mapped_column(String(500), nullable=False)

    # Relationships
    showtimes: Mapped[list["Showtime"]] = relationship(
        back_populates="cinema",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Cinema(id={self.id!r}, name={self.name!r})>"
