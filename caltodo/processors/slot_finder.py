# File: caltodo/processors/slot_finder.py
"""
Free-slot search inside working hours.

Candidates advance on quarter-hour boundaries, weekends are skipped, and
every day jump goes through the TimeZoneClock so daylight-saving
transitions keep the configured local start hour.
"""

import datetime
import math
from typing import Iterable, List, Optional

from caltodo.models import BusyInterval, SchedulingConfig, TimeSlot, ensure_utc
from caltodo.utils.logger import setup_logger
from caltodo.utils.timezone_clock import TimeZoneClock

logger = setup_logger(__name__)

QUARTER_HOUR = datetime.timedelta(minutes=15)


def get_duration_minutes(start: datetime.datetime, end: datetime.datetime) -> Optional[int]:
    """Rounded span in minutes, or None when the span is not positive."""
    if start is None or end is None:
        return None
    seconds = (end - start).total_seconds()
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    minutes = round(seconds / 60)
    return minutes if minutes > 0 else None


def round_up_to_quarter_hour(instant: datetime.datetime) -> datetime.datetime:
    """Ceil an instant to the next quarter-hour boundary of the UTC clock."""
    instant = ensure_utc(instant)
    hour_start = instant.replace(minute=0, second=0, microsecond=0)
    elapsed = instant - hour_start
    quarters = math.ceil(elapsed / QUARTER_HOUR)
    return hour_start + quarters * QUARTER_HOUR


def normalize_busy_intervals(intervals: Iterable[BusyInterval]) -> List[BusyInterval]:
    """Drop intervals with a non-positive span and sort by start."""
    valid = [
        BusyInterval(ensure_utc(i.start), ensure_utc(i.end))
        for i in intervals
        if i is not None and i.start is not None and i.end is not None
    ]
    return sorted((i for i in valid if i.is_valid()), key=lambda i: i.start)


class SlotFinder:
    """Finds the earliest free slot for a task within a user's work window."""

    def __init__(self, config: SchedulingConfig):
        """
        Initialize slot finder.

        Args:
            config: Working hours and timezone to search in
        """
        self.config = config
        self.clock = TimeZoneClock(config.timezone)

    def find_slot(
        self,
        busy_intervals: Iterable[BusyInterval],
        duration_minutes: int,
        search_start: datetime.datetime,
        search_end: datetime.datetime
    ) -> Optional[TimeSlot]:
        """
        Find the earliest non-overlapping slot.

        Args:
            busy_intervals: Time ranges the slot may not overlap
            duration_minutes: Length of the slot
            search_start: Earliest allowed start
            search_end: Candidates at or after this instant are not tried

        Returns:
            TimeSlot, or None when the window holds no free slot
        """
        if not isinstance(duration_minutes, (int, float)) or not math.isfinite(duration_minutes):
            return None
        if duration_minutes <= 0:
            return None

        config = self.config
        duration = datetime.timedelta(minutes=duration_minutes)
        work_start_minutes = config.work_start_hour * 60
        work_end_minutes = config.work_end_hour * 60

        intervals = normalize_busy_intervals(busy_intervals)
        index = 0
        candidate = round_up_to_quarter_hour(search_start)
        search_end = ensure_utc(search_end)

        while candidate < search_end:
            local = self.clock.local_time(candidate)

            if local.is_weekend:
                candidate = self.clock.advance_to_next_day_at_hour(candidate, config.work_start_hour)
                continue

            if local.minutes_of_day < work_start_minutes:
                candidate = self.clock.set_to_hour(candidate, config.work_start_hour)
                continue

            if local.minutes_of_day + duration_minutes > work_end_minutes:
                candidate = self.clock.advance_to_next_day_at_hour(candidate, config.work_start_hour)
                continue

            slot_start = candidate
            slot_end = candidate + duration

            while index < len(intervals) and intervals[index].end <= slot_start:
                index += 1

            if index < len(intervals) and intervals[index].overlaps(slot_start, slot_end):
                candidate = round_up_to_quarter_hour(intervals[index].end)
                continue

            return TimeSlot(start=slot_start, end=slot_end)

        logger.debug(
            f"No {duration_minutes}-minute slot before {search_end.isoformat()} "
            f"({len(intervals)} busy intervals)"
        )
        return None


def find_slot(
    busy_intervals: Iterable[BusyInterval],
    duration_minutes: int,
    config: SchedulingConfig,
    search_start: datetime.datetime,
    search_end: datetime.datetime
) -> Optional[TimeSlot]:
    """Functional wrapper around SlotFinder.find_slot."""
    return SlotFinder(config).find_slot(busy_intervals, duration_minutes, search_start, search_end)
