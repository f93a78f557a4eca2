"""Tests for StopWatch and duration formatting."""

from datetime import datetime, timedelta, timezone

import pytest

from app.utils.stopwatch import MILLIS_PER_DAY, StopWatch, format_millis


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class TestFormatMillis:
    """Tests for format_millis tiers."""

    @pytest.mark.parametrize(
        "millis,expected",
        [
            (0, "0ms"),
            (133, "133ms"),
            (9999, "9999ms"),
            (10000, "00:00:10.000"),
            (10223, "00:00:10.223"),
            (60000, "00:01:00.000"),
            (60001, "00:01:00"),
            (3_723_000, "01:02:03"),
            (MILLIS_PER_DAY - 1, "23:59:59"),
            (MILLIS_PER_DAY, "1.0 day"),
            (146_880_000, "1.7 days"),
            (5_529_600_000, "64 days"),
            (10 * MILLIS_PER_DAY, "10 days"),
        ],
    )
    def test_formats(self, millis, expected):
        assert format_millis(millis) == expected


class TestStopWatch:
    """Tests for elapsed time measurement."""

    def test_elapsed_and_restart(self):
        clock = FakeClock()
        sw = StopWatch(clock=clock)

        clock.advance(250)
        assert sw.get_millis() == 250
        assert str(sw) == "250ms"

        assert sw.get_millis_and_restart() == 250
        assert sw.get_millis() == 0

        clock.advance(40)
        sw.restart()
        clock.advance(5)
        assert sw.get_millis() == 5

    def test_start_time(self):
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        clock = FakeClock(int(start.timestamp() * 1000) + 1500)
        sw = StopWatch(start=start, clock=clock)

        assert sw.started_at == start
        assert sw.get_millis() == 1500

    def test_millis_per_operation(self):
        clock = FakeClock()
        sw = StopWatch(clock=clock)
        clock.advance(1000)

        assert sw.get_millis_per_operation(4) == 250
        assert sw.get_millis_per_operation(0) == 1000

    def test_throughput(self):
        clock = FakeClock()
        sw = StopWatch(clock=clock)
        clock.advance(2000)

        assert sw.get_throughput(10) == pytest.approx(5.0)
        assert sw.get_throughput(10, timedelta(minutes=1)) == pytest.approx(300.0)
        assert sw.get_throughput(0) == 0.0
        assert sw.format_throughput(10) == "5.0"

    def test_estimated_time_remaining(self):
        clock = FakeClock()
        sw = StopWatch(clock=clock)
        clock.advance(1000)

        assert sw.get_estimated_time_remaining(1, 4) == "3000ms"

    def test_estimated_time_remaining_without_progress(self):
        """No completed work means no rate, so the estimate is unknown."""
        clock = FakeClock()
        sw = StopWatch(clock=clock)
        clock.advance(1000)

        assert sw.get_estimated_time_remaining(0, 4) == "unknown"
