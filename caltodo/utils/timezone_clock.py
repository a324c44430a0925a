# File: caltodo/utils/timezone_clock.py
"""
Local-time computations for a user's timezone, backed by pytz.

All instants handled here are aware datetimes; results are returned in UTC.
"""

import datetime
from dataclasses import dataclass

import pytz

from caltodo.models.common import ensure_utc


@dataclass(frozen=True)
class LocalTime:
    """Wall-clock reading of an instant in a given timezone."""
    hour: int
    minute: int
    weekday: int  # Monday=0 ... Sunday=6

    @property
    def minutes_of_day(self) -> int:
        return self.hour * 60 + self.minute

    @property
    def is_weekend(self) -> bool:
        return self.weekday >= 5


class TimeZoneClock:
    """Reads and shifts instants in terms of one IANA timezone."""

    def __init__(self, timezone: str):
        """
        Initialize the clock.

        Args:
            timezone: IANA timezone name (e.g., 'Europe/Amsterdam')
        """
        self.timezone_name = timezone
        self.tz = pytz.timezone(timezone)

    def local_time(self, instant: datetime.datetime) -> LocalTime:
        """Return local hour, minute and day-of-week of an instant."""
        local = ensure_utc(instant).astimezone(self.tz)
        return LocalTime(hour=local.hour, minute=local.minute, weekday=local.weekday())

    def set_to_hour(self, instant: datetime.datetime, hour: int) -> datetime.datetime:
        """Shift an instant to ``hour``:00 local time on the same local day."""
        current = self.local_time(instant)
        diff_minutes = hour * 60 - current.minutes_of_day

        result = ensure_utc(instant) + datetime.timedelta(minutes=diff_minutes)
        return result.replace(second=0, microsecond=0)

    def advance_to_next_day_at_hour(self, instant: datetime.datetime, hour: int) -> datetime.datetime:
        """
        Move to ``hour``:00 local time on the next local day.

        Adding 24 hours across a DST transition lands one hour off, so the
        local hour is re-derived after the jump and the residual corrected.
        """
        result = self.set_to_hour(instant, hour) + datetime.timedelta(hours=24)

        landed = self.local_time(result)
        if landed.hour != hour:
            diff = hour - landed.hour
            if diff > 12:
                diff -= 24
            elif diff < -12:
                diff += 24
            result += datetime.timedelta(hours=diff)

        return result
