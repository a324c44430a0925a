# File: caltodo/services/tasks_service.py

import datetime
from typing import List, Optional, Sequence

from caltodo.core.config_manager import Config
from caltodo.core.exceptions import CalTodoError, SchedulingConflictError, TaskNotFoundError
from caltodo.core.orchestrator import RescheduleOrchestrator
from caltodo.models import EVENT_DELETED, Task, TimeSlot, UserSettings, ensure_utc
from caltodo.processors.event_codec import (
    encode_for_actions_refresh,
    encode_for_create,
    event_to_task,
)
from caltodo.processors.slot_finder import get_duration_minutes
from caltodo.processors.task_processor import TaskProcessor
from caltodo.services.action_links import ActionLinkProvider
from caltodo.services.calendar_service import GoogleCalendarService
from caltodo.utils.logger import setup_logger

logger = setup_logger(__name__)

NO_SLOT_MESSAGE = "No free time slots available in the next {days} days."


class TaskService:
    """Task operations on top of a user's calendar."""

    def __init__(
        self,
        calendar_service: GoogleCalendarService,
        settings: UserSettings,
        link_provider: ActionLinkProvider,
        orchestrator: Optional[RescheduleOrchestrator] = None
    ):
        """
        Initialize task service.

        Args:
            calendar_service: Gateway to the user's calendar
            settings: User scheduling settings
            link_provider: Source of the action links written into events
            orchestrator: Reschedule orchestrator (built from the other
                arguments when omitted)
        """
        self.calendar = calendar_service
        self.settings = settings
        self.links = link_provider
        self.orchestrator = orchestrator or RescheduleOrchestrator(calendar_service, settings)
        self.processor = TaskProcessor()

    def _now(self, now: Optional[datetime.datetime]) -> datetime.datetime:
        return ensure_utc(now) if now else datetime.datetime.now(datetime.timezone.utc)

    def list_tasks(self, now: Optional[datetime.datetime] = None) -> List[Task]:
        """
        List the user's tasks in the working window.

        Returns:
            Open tasks by start (with priority assigned), then completed tasks
        """
        now = self._now(now)
        events = self.calendar.list_events(
            now - datetime.timedelta(days=Config.LOOKBACK_DAYS),
            now + datetime.timedelta(days=Config.SEARCH_HORIZON_DAYS),
        )
        return self.processor.order_tasks(self.processor.decode_tasks(events))

    def get_task(self, event_id: str) -> Task:
        event = self.calendar.get_task_event(event_id)
        task = event_to_task(event) if event else None
        if task is None:
            raise TaskNotFoundError("Task not found")
        return task

    def create_task(
        self,
        title: str,
        details: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        urgent: bool = False,
        now: Optional[datetime.datetime] = None
    ) -> Task:
        """
        Create a task in the earliest free slot.

        Raises:
            ValueError: If the title is empty
            SchedulingConflictError: If no slot is free within the horizon
        """
        title = (title or "").strip()
        if not title:
            raise ValueError("Title is required")

        duration = duration_minutes or self.settings.default_duration
        slot = self.calendar.find_free_slot(self.settings, duration, after=self._now(now))
        if slot is None:
            raise SchedulingConflictError(NO_SLOT_MESSAGE.format(days=Config.SEARCH_HORIZON_DAYS))

        created = self.calendar.insert_event(encode_for_create(title, details, slot, self.settings))
        logger.info(f"Created task '{title}' at {slot.start.isoformat()}")

        # Links need the event id, so they go in with a second write
        self.refresh_event_actions(created.event_id, details)

        if urgent:
            summary = self.orchestrator.reschedule_user_tasks(priority_ids=[created.event_id], now=now)
            logger.info(f"Urgent task moved to the front: {summary}")

        return self.get_task(created.event_id)

    def set_completed(self, event_id: str, completed: bool) -> Task:
        """
        Mark a task complete or incomplete.

        Raises:
            TaskNotFoundError: If the event is gone or not a task
        """
        updated = self.calendar.update_event_completion(event_id, completed)
        task = event_to_task(updated) if updated else None
        if task is None:
            raise TaskNotFoundError("Task not found")
        return task

    def complete_task(self, event_id: str) -> Task:
        return self.set_completed(event_id, True)

    def bulk_complete(self, event_ids: Sequence[str]) -> int:
        """Complete several tasks; ids that are not tasks are skipped."""
        completed = 0
        for event_id in event_ids:
            if self.calendar.update_event_completion(event_id, True) is not None:
                completed += 1
            else:
                logger.warning(f"Skipping bulk completion of {event_id}: not a task")
        logger.info(f"Completed {completed} of {len(event_ids)} tasks")
        return completed

    def reschedule_task(self, event_id: str, now: Optional[datetime.datetime] = None) -> TimeSlot:
        """
        Move one task to the earliest free slot from now.

        Raises:
            TaskNotFoundError: If the event is gone or not a task
            SchedulingConflictError: If no slot is free within the horizon
        """
        event = self.calendar.get_task_event(event_id)
        if event is None or not event.has_timed_span:
            raise TaskNotFoundError("Task not found")

        duration = get_duration_minutes(event.start, event.end) or self.settings.default_duration
        slot = self.calendar.find_free_slot(self.settings, duration, after=self._now(now))
        if slot is None:
            raise SchedulingConflictError(NO_SLOT_MESSAGE.format(days=Config.SEARCH_HORIZON_DAYS))

        if not self.calendar.update_event_time(event_id, slot, self.settings.timezone):
            raise TaskNotFoundError("Task not found")
        return slot

    def reorder_tasks(self, task_ids: Sequence[str]) -> int:
        """
        Swap the slots of the given tasks so they run in the given order.

        Returns:
            Number of tasks moved

        Raises:
            TaskNotFoundError: If none of the ids resolve to a live event
        """
        fetched = self.calendar.get_events_for_ids(task_ids)
        live = [task_id for task_id in task_ids if fetched.get(task_id) not in (None, EVENT_DELETED)]
        if not live:
            raise TaskNotFoundError("No tasks found to reorder")

        moves = self.processor.plan_reorder(task_ids, fetched, self.settings.default_duration)
        moved = 0
        for task_id, slot in moves:
            if self.calendar.update_event_time(task_id, slot, self.settings.timezone):
                moved += 1
        return moved

    def refresh_event_actions(self, event_id: str, details: Optional[str]) -> bool:
        """
        Regenerate the action links of an event.

        Returns:
            True if the description was patched; False if links could not be
            issued or written (the event itself is left as it was)
        """
        try:
            links = self.links.links_for(event_id)
        except Exception as e:
            logger.error(f"Could not issue action links for {event_id}: {e}", exc_info=True)
            return False

        try:
            self.calendar.patch_event(event_id, encode_for_actions_refresh(details, links))
        except CalTodoError as e:
            logger.warning(f"Could not write action links to {event_id}: {e}")
            return False
        return True
