"""Pydantic schemas for sync run results."""

from typing import Literal

from pydantic import BaseModel


class SyncReport(BaseModel):
    """Counters reported by a successful sync run."""

    elapsed_ms: int
    scraped_count: int
    inserted_movies: int
    inserted_shows: int
    inserted_showtimes: int
    removed_shows: int
    removed_movies: int


class SyncError(BaseModel):
    """
    Outcome of a failed sync run.

    kind is "blocked" when cinenews kept refusing requests with HTTP 403
    until the attempts ran out, "failed" for anything else.
    """

    kind: Literal["blocked", "failed"]
    message: str
    attempts: int
