"""Tests for the injectable clocks used to decide "today" for expiry status."""

from datetime import date, datetime, timedelta, timezone

from stock_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_default_time(self):
        clock = DeterministicClock()
        assert clock.now() == datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert clock.today() == date(2024, 1, 1)

    def test_repeatable(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()

    def test_advance_days_moves_today(self):
        clock = DeterministicClock(datetime(2024, 6, 1, 23, 0, tzinfo=timezone.utc))
        clock.advance_days(30)
        assert clock.today() == date(2024, 7, 1)
        clock.advance(3600)
        assert clock.today() == date(2024, 7, 2)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance_days(5)
        clock.set_time(datetime(2025, 3, 1, tzinfo=timezone.utc))
        assert clock.today() == date(2025, 3, 1)


class TestSystemClock:
    def test_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None

    def test_uses_given_timezone(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        assert SystemClock(ist).now().utcoffset() == timedelta(hours=5, minutes=30)
