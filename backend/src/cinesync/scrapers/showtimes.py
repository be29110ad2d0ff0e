"""Day-by-day crawl of a title's showtimes."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from datetime import date, timedelta
from enum import Enum
from typing import Any

from cinesync.config import settings
from cinesync.scrapers.cinenews import CinenewsClient
from cinesync.scrapers.errors import BlockedError, FetchError, ParseError
from cinesync.scrapers.models import CinemaShowtimes, ShowCandidate, ShowtimeEntry
from cinesync.utils.dates import parse_showtime, utc_today

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class CrawlState(Enum):
    WALKING = "walking"
    DONE = "done"
    ABORTED = "aborted"


def parse_showtimes_payload(payload: dict[str, Any]) -> list[CinemaShowtimes]:
    """
    Turn one day's showtimes response into per-cinema screenings.

    The endpoint answers {"data": []} on days without screenings, otherwise
    {"data": [{"data": [cinema, ...]}]} where each cinema carries YellowID,
    YellowName and a "data" list of screenings.

    Raises:
        ParseError: if the payload does not have that shape
    """
    try:
        blocks = payload["data"]
        if not blocks:
            return []

        cinemas = []
        for cinema in blocks[0]["data"]:
            times = [
                ShowtimeEntry(
                    starts_at=parse_showtime(show["ShowDateTime"]),
                    version_short=show["mVersion"],
                    version_long=show["mVersionLong"],
                )
                for show in cinema["data"]
            ]
            cinemas.append(
                CinemaShowtimes(
                    cinema_id=int(cinema["YellowID"]),
                    cinema_name=cinema["YellowName"],
                    times=times,
                )
            )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise ParseError(f"Unexpected showtimes payload: {e!r}") from e

    return cinemas


class ShowtimeCrawler:
    """
    Walks forward one day at a time from today, asking for a title's showtimes.

    Cinenews publishes no end date for a run, so the walk stops after
    `gap_days` consecutive days without screenings; shorter gaps such as a
    weekly closing day are walked over. Requests for one title are strictly
    sequential with a randomized pause between them.

    State machine:
        WALKING → DONE     gap threshold reached, shows collected so far returned
        WALKING → ABORTED  a day request failed, None returned
    """

    def __init__(
        self,
        cinenews: CinenewsClient,
        sleep: Sleep = asyncio.sleep,
        today: Callable[[], date] = utc_today,
        rng: random.Random | None = None,
        gap_days: int | None = None,
        delay_min_ms: int | None = None,
        delay_max_ms: int | None = None,
    ) -> None:
        """
        Args:
            cinenews: Client for the showtimes endpoint
            sleep: Awaitable used for the politeness delay (seconds)
            today: Clock returning the start date of the walk
            rng: Random source for the delay
            gap_days: Consecutive empty days that end the walk
            delay_min_ms: Lower bound of the politeness delay
            delay_max_ms: Upper bound of the politeness delay
        """
        self.cinenews = cinenews
        self.sleep = sleep
        self.today = today
        self.rng = rng or random.Random()
        self.gap_days = gap_days if gap_days is not None else settings.showtime_gap_days
        self.delay_min_ms = delay_min_ms if delay_min_ms is not None else settings.politeness_delay_min_ms
        self.delay_max_ms = delay_max_ms if delay_max_ms is not None else settings.politeness_delay_max_ms

    async def crawl(self, native_id: str) -> list[ShowCandidate] | None:
        """
        Collect the shows of one title.

        Returns:
            Show candidates in increasing date order, or None if any day
            request failed (the title is then left out of the run)

        Raises:
            BlockedError: if cinenews answers HTTP 403
        """
        state = CrawlState.WALKING
        current = self.today()
        empty_streak = 0
        shows: list[ShowCandidate] = []

        while state is CrawlState.WALKING:
            try:
                payload = await self.cinenews.fetch_showtimes(native_id, current)
                cinemas = parse_showtimes_payload(payload)
            except BlockedError:
                raise
            except (FetchError, ParseError) as e:
                logger.warning(f"Showtimes for cinenews id {native_id} on {current} failed: {e}")
                state = CrawlState.ABORTED
                continue

            if cinemas:
                empty_streak = 0
                shows.append(ShowCandidate(date=current, cinemas=cinemas))
            else:
                empty_streak += 1
                if empty_streak >= self.gap_days:
                    state = CrawlState.DONE
                    continue

            await self._pause()
            current += timedelta(days=1)

        if state is CrawlState.ABORTED:
            return None

        logger.debug(f"Cinenews id {native_id}: {len(shows)} show dates up to {current}")
        return shows

    async def _pause(self) -> None:
        delay_ms = self.rng.uniform(self.delay_min_ms, self.delay_max_ms)
        await self.sleep(delay_ms / 1000)
