# File: caltodo/core/orchestrator.py
"""
Reschedule orchestrator for CalTodo.
Recomputes a compacted placement for all open tasks of a user.

Placement is strictly sequential: every task is searched from the end of
the task placed before it, so a later task can never land ahead of an
earlier one in the pass.
"""

import datetime
import threading
import weakref
from typing import Iterable, List, Optional, Sequence, Tuple

from caltodo.core.config_manager import Config
from caltodo.core.exceptions import CalTodoError
from caltodo.models import (
    BusyInterval,
    CalendarEvent,
    Placement,
    PlacementOutcome,
    RescheduleSummary,
    TimeSlot,
    UserSettings,
    ensure_utc,
)
from caltodo.processors.event_codec import is_app_owned, is_completed
from caltodo.processors.slot_finder import SlotFinder, get_duration_minutes
from caltodo.services.calendar_service import GoogleCalendarService
from caltodo.utils.logger import setup_logger

logger = setup_logger(__name__)

# One pass at a time per calendar within this process; entries vanish once no pass holds them
_pass_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_pass_locks_guard = threading.Lock()


def _lock_for(calendar_id: str) -> threading.Lock:
    with _pass_locks_guard:
        lock = _pass_locks.get(calendar_id)
        if lock is None:
            lock = threading.Lock()
            _pass_locks[calendar_id] = lock
        return lock


class RescheduleOrchestrator:
    """
    Main orchestrator for reschedule passes.

    Reads the user's events, plans where every open task should go and
    writes only the moves that change something.
    """

    def __init__(
        self,
        calendar_service: GoogleCalendarService,
        settings: UserSettings,
        tolerance_seconds: int = Config.RESCHEDULE_TOLERANCE_SECONDS,
        horizon_days: int = Config.SEARCH_HORIZON_DAYS,
        lookback_days: int = Config.LOOKBACK_DAYS
    ):
        """
        Initialize the orchestrator.

        Args:
            calendar_service: Gateway to the user's calendar
            settings: User scheduling settings
            tolerance_seconds: A task within this distance of its optimal
                start is left where it is
            horizon_days: How far ahead each slot search may look
            lookback_days: How far back the pass looks for tasks whose
                start already passed
        """
        self.calendar = calendar_service
        self.settings = settings
        self.tolerance = datetime.timedelta(seconds=tolerance_seconds)
        self.horizon = datetime.timedelta(days=horizon_days)
        self.lookback = datetime.timedelta(days=lookback_days)
        self.slot_finder = SlotFinder(settings.scheduling)

    def plan(
        self,
        events: Iterable[CalendarEvent],
        priority_ids: Optional[Sequence[str]] = None,
        anchor: Optional[datetime.datetime] = None
    ) -> Tuple[List[Placement], int]:
        """
        Compute placements for all open tasks without writing anything.

        Args:
            events: Every event in the working window, app-owned or not
            priority_ids: Event ids to place first, in this order
            anchor: Earliest start for the first task (default: now)

        Returns:
            Tuple of (placements in pass order, number of invalid task events)
        """
        events = [e for e in events if not e.is_cancelled]

        obstacles: List[BusyInterval] = []
        candidates: List[CalendarEvent] = []
        skipped_invalid = 0

        for event in events:
            if not is_app_owned(event):
                interval = event.busy_interval()
                if interval is not None:
                    obstacles.append(interval)
                continue

            if is_completed(event):
                continue

            if not event.event_id or not event.has_timed_span:
                skipped_invalid += 1
                logger.debug(f"Skipping task event without id or timed span: {event.event_id}")
                continue

            candidates.append(event)

        ordered = self._order_candidates(candidates, priority_ids or [])

        last_placed_end = ensure_utc(anchor) if anchor else datetime.datetime.now(datetime.timezone.utc)
        placements: List[Placement] = []

        for event in ordered:
            current = TimeSlot(start=event.start, end=event.end)
            duration = get_duration_minutes(event.start, event.end) or self.settings.default_duration

            slot = self.slot_finder.find_slot(
                obstacles,
                duration,
                last_placed_end,
                last_placed_end + self.horizon,
            )

            if slot is None:
                placements.append(Placement(event.event_id, current, None, PlacementOutcome.NO_SLOT))
                continue

            if abs(slot.start - event.start) < self.tolerance:
                placements.append(Placement(event.event_id, current, current, PlacementOutcome.UNCHANGED))
                last_placed_end = event.end
                continue

            placements.append(Placement(event.event_id, current, slot, PlacementOutcome.MOVED))
            last_placed_end = slot.end

        return placements, skipped_invalid

    def reschedule_all(
        self,
        events: Iterable[CalendarEvent],
        priority_ids: Optional[Sequence[str]] = None,
        anchor: Optional[datetime.datetime] = None
    ) -> RescheduleSummary:
        """
        Plan and apply a reschedule pass over the given events.

        A failed write is counted and the pass moves on to the next task.
        """
        placements, skipped_invalid = self.plan(events, priority_ids, anchor)
        summary = RescheduleSummary(skipped_invalid=skipped_invalid)

        for placement in placements:
            if placement.outcome == PlacementOutcome.NO_SLOT:
                summary.skipped_no_slot += 1
                continue

            if placement.outcome == PlacementOutcome.UNCHANGED:
                summary.unchanged += 1
                continue

            try:
                moved = self.calendar.update_event_time(
                    placement.event_id,
                    placement.target,
                    self.settings.timezone,
                )
            except CalTodoError as e:
                logger.warning(f"Failed to move {placement.event_id}: {e}")
                moved = False

            if moved:
                summary.moved += 1
            else:
                summary.failed += 1

        logger.info(f"Reschedule pass finished: {summary}")
        return summary

    def reschedule_user_tasks(
        self,
        priority_ids: Optional[Sequence[str]] = None,
        now: Optional[datetime.datetime] = None
    ) -> RescheduleSummary:
        """
        Run a full pass over the user's calendar window.

        Raises:
            CalendarGatewayError: If the window cannot be listed
        """
        now = ensure_utc(now) if now else datetime.datetime.now(datetime.timezone.utc)

        with _lock_for(self.calendar.calendar_id):
            logger.info("=" * 60)
            logger.info(f"Starting reschedule pass for {self.calendar.calendar_id}")
            logger.info("=" * 60)

            events = self.calendar.list_events(now - self.lookback, now + self.horizon)
            return self.reschedule_all(events, priority_ids, anchor=now)

    @staticmethod
    def _order_candidates(
        candidates: List[CalendarEvent],
        priority_ids: Sequence[str]
    ) -> List[CalendarEvent]:
        """Forced ids first in the given order, then the rest by current start."""
        by_id = {event.event_id: event for event in candidates}

        priority_events: List[CalendarEvent] = []
        seen = set()
        for event_id in priority_ids:
            if event_id in by_id and event_id not in seen:
                priority_events.append(by_id[event_id])
                seen.add(event_id)

        remaining = sorted(
            (event for event in candidates if event.event_id not in seen),
            key=lambda event: event.start,
        )
        return priority_events + remaining
