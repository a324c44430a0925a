# File: caltodo/processors/task_processor.py
import datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from caltodo.models import CalendarEvent, EVENT_DELETED, EventFetchResult, Task, TimeSlot
from caltodo.processors.event_codec import event_to_task
from caltodo.processors.slot_finder import get_duration_minutes
from caltodo.utils.logger import setup_logger

logger = setup_logger(__name__)

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


class TaskProcessor:
    def decode_tasks(self, events: Iterable[CalendarEvent]) -> List[Task]:
        """Decode app-owned events; everything else is silently dropped."""
        tasks = []
        skipped = 0
        for event in events:
            task = event_to_task(event)
            if task is None:
                skipped += 1
                continue
            tasks.append(task)
        logger.debug(f"Decoded {len(tasks)} tasks ({skipped} other events)")
        return tasks

    def order_tasks(self, tasks: Iterable[Task]) -> List[Task]:
        """
        Order tasks for display and assign their transient priority.

        Open tasks come first by scheduled start, numbered 0..n-1; completed
        tasks follow, most recently completed first.
        """
        tasks = list(tasks)
        open_tasks = sorted(
            (t for t in tasks if not t.completed),
            key=lambda t: t.scheduled_start or _EPOCH,
        )
        for index, task in enumerate(open_tasks):
            task.priority = index

        completed_tasks = sorted(
            (t for t in tasks if t.completed),
            key=lambda t: t.completed_at or t.scheduled_end or _EPOCH,
            reverse=True,
        )
        return open_tasks + completed_tasks

    def plan_reorder(
        self,
        task_ids: Sequence[str],
        fetched: Dict[str, EventFetchResult],
        default_duration: int
    ) -> List[Tuple[str, TimeSlot]]:
        """
        Reassign the existing slots of ``task_ids`` in the requested order.

        The slots the tasks currently occupy, sorted by start, are handed out
        to the ids in order; each task keeps its own duration. Ids whose
        event is gone or unreadable are skipped. Only changed placements are
        returned.
        """
        ordered: List[Tuple[str, CalendarEvent]] = []
        for task_id in task_ids:
            result = fetched.get(task_id)
            if result is None or result == EVENT_DELETED:
                continue
            if not isinstance(result, CalendarEvent) or not result.has_timed_span:
                continue
            ordered.append((task_id, result))

        slot_starts = sorted(event.start for _, event in ordered)

        moves: List[Tuple[str, TimeSlot]] = []
        for (task_id, event), start in zip(ordered, slot_starts):
            if event.start == start:
                continue
            duration = get_duration_minutes(event.start, event.end) or default_duration
            end = start + datetime.timedelta(minutes=duration)
            moves.append((task_id, TimeSlot(start=start, end=end)))

        logger.info(f"Reorder of {len(ordered)} tasks needs {len(moves)} moves")
        return moves

