from .enums import EventStatus, Transparency, TaskAction, PlacementOutcome
from .common import parse_iso_datetime, ensure_utc, format_rfc3339
from .tasks import Task
from .calendar import (
    BusyInterval,
    TimeSlot,
    CalendarEvent,
    Obstacle,
    ManagedTask,
    calendar_event_from_dict,
)
from .config import SchedulingConfig, UserSettings
from .schedule import Placement, RescheduleSummary
from .api import EVENT_DELETED, EventFetchResult, ActionLinks

__all__ = [
    "EventStatus",
    "Transparency",
    "TaskAction",
    "PlacementOutcome",
    "parse_iso_datetime",
    "ensure_utc",
    "format_rfc3339",
    "Task",
    "BusyInterval",
    "TimeSlot",
    "CalendarEvent",
    "Obstacle",
    "ManagedTask",
    "calendar_event_from_dict",
    "SchedulingConfig",
    "UserSettings",
    "Placement",
    "RescheduleSummary",
    "EVENT_DELETED",
    "EventFetchResult",
    "ActionLinks",
]
