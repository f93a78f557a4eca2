"""Elapsed-time measurement for batch jobs and log messages."""

import time
from datetime import datetime, timedelta, timezone
from typing import Callable

MILLIS_PER_SECOND = 1000
MILLIS_PER_MINUTE = 60 * MILLIS_PER_SECOND
MILLIS_PER_HOUR = 60 * MILLIS_PER_MINUTE
MILLIS_PER_DAY = 24 * MILLIS_PER_HOUR


def _wall_clock_millis() -> int:
    return int(time.time() * 1000)


def format_millis(millis: int) -> str:
    """Format a duration in milliseconds for display in a log line.

    The format depends on how large the value is:
    - under 10 seconds: "133ms"
    - under one day: "00:00:10.223" (milliseconds only shown up to one minute)
    - one day or more: "1.7 days", "1.0 day", or "64 days" from ten days up

    Args:
        millis: Duration in milliseconds.

    Returns:
        Human readable duration string.
    """
    if millis < 10 * MILLIS_PER_SECOND:
        return f"{millis}ms"

    if millis >= MILLIS_PER_DAY:
        days = millis / MILLIS_PER_DAY
        if days >= 10:
            return f"{days:.0f} days"
        if days != 1.0:
            return f"{days:.1f} days"
        return f"{days:.1f} day"

    hours = (millis % MILLIS_PER_DAY) // MILLIS_PER_HOUR
    minutes = (millis % MILLIS_PER_HOUR) // MILLIS_PER_MINUTE
    seconds = (millis % MILLIS_PER_MINUTE) // MILLIS_PER_SECOND
    formatted = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if millis <= MILLIS_PER_MINUTE:
        formatted += f".{millis % MILLIS_PER_SECOND:03d}"
    return formatted


class StopWatch:
    """Measures elapsed wall-clock time since creation or the last restart.

    Args:
        start: Optional time to record as the start. Defaults to now.
        clock: Returns the current time in epoch milliseconds. Tests inject
            a fixed clock here.
    """

    def __init__(
        self,
        start: datetime | None = None,
        clock: Callable[[], int] = _wall_clock_millis,
    ):
        self._clock = clock
        if start is not None:
            self._started = int(start.timestamp() * 1000)
        else:
            self._started = clock()

    @property
    def started_at(self) -> datetime:
        return datetime.fromtimestamp(self._started / 1000, tz=timezone.utc)

    def get_millis(self) -> int:
        return self._clock() - self._started

    def get_millis_and_restart(self) -> int:
        now = self._clock()
        elapsed = now - self._started
        self._started = now
        return elapsed

    def restart(self) -> None:
        self._started = self._clock()

    def get_millis_per_operation(self, num_operations: int) -> int:
        """Average milliseconds per operation; zero operations count as one."""
        return int(self.get_millis() / max(1.0, num_operations))

    def get_throughput(self, num_operations: int, period: timedelta = timedelta(seconds=1)) -> float:
        """Operations completed per period (per second by default)."""
        if num_operations <= 0:
            return 0.0

        millis_elapsed = max(1, self.get_millis())
        period_millis = period.total_seconds() * 1000
        return num_operations / (millis_elapsed / period_millis)

    def format_throughput(self, num_operations: int, period: timedelta = timedelta(seconds=1)) -> str:
        return f"{self.get_throughput(num_operations, period):.1f}"

    def get_estimated_time_remaining(self, complete_to_date: float, total: float) -> str:
        """Estimate the time left to finish, assuming a constant rate.

        Args:
            complete_to_date: Amount of work completed so far.
            total: Total amount of work (greater than complete_to_date).

        Returns:
            Remaining time formatted by format_millis, or "unknown" while no
            work has completed yet and there is no rate to extrapolate from.
        """
        if complete_to_date <= 0:
            return "unknown"
        millis = self.get_millis()
        remaining = int((total / complete_to_date) * millis - millis)
        return format_millis(remaining)

    def __str__(self) -> str:
        return format_millis(self.get_millis())
