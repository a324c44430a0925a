# File: tests/unit/test_timezone_clock.py
"""
Unit tests for TimeZoneClock.
"""

import pytest

from caltodo.utils.timezone_clock import LocalTime, TimeZoneClock
from conftest import utc


@pytest.fixture
def new_york():
    return TimeZoneClock("America/New_York")


class TestLocalTime:

    def test_minutes_of_day(self):
        assert LocalTime(hour=9, minute=30, weekday=0).minutes_of_day == 570

    @pytest.mark.parametrize("weekday, expected", [(0, False), (4, False), (5, True), (6, True)])
    def test_is_weekend(self, weekday, expected):
        assert LocalTime(hour=12, minute=0, weekday=weekday).is_weekend is expected


class TestTimeZoneClock:

    def test_local_time(self, new_york):
        # 2026-03-02 04:30 UTC is Sunday 23:30 EST
        local = new_york.local_time(utc(2026, 3, 2, 4, 30))

        assert (local.hour, local.minute, local.weekday) == (23, 30, 6)

    def test_set_to_hour_same_local_day(self, new_york):
        result = new_york.set_to_hour(utc(2026, 3, 2, 12, 45, 30), 9)

        assert result == utc(2026, 3, 2, 14, 0)

    def test_advance_plain_day(self, new_york):
        result = new_york.advance_to_next_day_at_hour(utc(2026, 3, 2, 20), 9)
        assert result == utc(2026, 3, 3, 14)

    def test_advance_across_spring_forward(self, new_york):
        # Saturday 09:00 EST -> Sunday 09:00 EDT (clocks moved forward at 02:00)
        result = new_york.advance_to_next_day_at_hour(utc(2026, 3, 7, 14), 9)

        assert result == utc(2026, 3, 8, 13)
        assert new_york.local_time(result).hour == 9

    def test_advance_across_fall_back(self, new_york):
        # Saturday 09:00 EDT -> Sunday 09:00 EST (clocks moved back at 02:00)
        result = new_york.advance_to_next_day_at_hour(utc(2026, 10, 31, 13), 9)

        assert result == utc(2026, 11, 1, 14)
        assert new_york.local_time(result).hour == 9

    def test_utc_clock(self):
        clock = TimeZoneClock("UTC")
        assert clock.advance_to_next_day_at_hour(utc(2026, 3, 2, 16, 15), 9) == utc(2026, 3, 3, 9)
