"""
Live working-time estimate while an employee is checked in.

Each estimate is recomputed from check-in time and "now"; nothing is
accumulated between ticks, so a missed tick causes no drift. Estimates are
for display and are never written back as the day's working hours.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable

from hrdash.core.constants import DEFAULT_LIVE_TIMER_INTERVAL_SECONDS
from hrdash.utils.datetime_utils import ensure_utc, format_time_difference


@dataclass(frozen=True)
class LiveEstimate:
    check_in_time: datetime
    as_of: datetime
    working_hours: float
    display: str


def _elapsed_seconds(check_in: datetime, now: datetime) -> float:
    return max(0.0, (ensure_utc(now) - ensure_utc(check_in)).total_seconds())


def estimate_working_hours(check_in: datetime, now: datetime) -> float:
    """Hours since check-in, rounded to 2 decimals; never negative."""
    return round(_elapsed_seconds(check_in, now) / 3600.0, 2)


def format_elapsed(check_in: datetime, now: datetime) -> str:
    """'7h 5m'-style duration; minutes only ('42m') under an hour."""
    return format_time_difference(check_in, now)


def estimate(check_in: datetime, now: datetime) -> LiveEstimate:
    return LiveEstimate(
        check_in_time=ensure_utc(check_in),
        as_of=ensure_utc(now),
        working_hours=estimate_working_hours(check_in, now),
        display=format_elapsed(check_in, now),
    )


class LiveTimer:
    """Produces a fresh estimate every `interval_seconds`, forever."""

    def __init__(
        self,
        clock,
        interval_seconds: float = DEFAULT_LIVE_TIMER_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._clock = clock
        self._interval = interval_seconds
        self._sleep = sleep

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def current(self, check_in: datetime) -> LiveEstimate:
        return estimate(check_in, self._clock.now())

    async def ticks(self, check_in: datetime) -> AsyncIterator[LiveEstimate]:
        """Infinite; close the generator (or stop iterating) to stop. Every call starts a new sequence."""
        while True:
            yield self.current(check_in)
            await self._sleep(self._interval)
