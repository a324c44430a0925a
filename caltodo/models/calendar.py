# File: caltodo/models/calendar.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .common import parse_iso_datetime
from .enums import EventStatus, Transparency
from .tasks import Task


@dataclass(frozen=True)
class BusyInterval:
    """Half-open time range [start, end) that blocks slot placement."""
    start: datetime
    end: datetime

    def is_valid(self) -> bool:
        """An interval with a non-positive span never blocks anything."""
        return self.end > self.start

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Check if this interval overlaps the range [start, end)."""
        return self.start < end and self.end > start


@dataclass(frozen=True)
class TimeSlot:
    """A placement for a task."""
    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return round((self.end - self.start).total_seconds() / 60)

    def overlaps_with(self, other: 'TimeSlot') -> bool:
        """Check if this slot overlaps with another."""
        return self.start < other.end and self.end > other.start

    def to_dict(self) -> dict:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
        }


@dataclass
class CalendarEvent:
    """
    A Google Calendar event as read from the API.

    Only timed events carry ``start``/``end``; all-day events (``date``
    instead of ``dateTime``) leave them unset.
    """
    event_id: Optional[str]
    summary: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    description: Optional[str] = None
    status: EventStatus = EventStatus.CONFIRMED
    updated: Optional[datetime] = None
    transparency: Transparency = Transparency.OPAQUE
    private_properties: Dict[str, str] = field(default_factory=dict)

    @property
    def is_cancelled(self) -> bool:
        return self.status == EventStatus.CANCELLED

    @property
    def has_timed_span(self) -> bool:
        return self.start is not None and self.end is not None

    def busy_interval(self) -> Optional[BusyInterval]:
        """Return the event span as a busy interval, if it has one."""
        if not self.has_timed_span or self.is_cancelled:
            return None
        return BusyInterval(start=self.start, end=self.end)


@dataclass(frozen=True)
class Obstacle:
    """An event the scheduler must avoid but never decodes or mutates."""
    event_id: Optional[str]
    interval: BusyInterval


@dataclass(frozen=True)
class ManagedTask:
    """An app-owned event together with its decoded task."""
    event: CalendarEvent
    task: Task


def calendar_event_from_dict(data: Dict[str, Any]) -> CalendarEvent:
    """Create CalendarEvent from a raw Calendar API resource. Never raises."""
    data = data or {}

    try:
        status = EventStatus(data.get('status', EventStatus.CONFIRMED.value))
    except ValueError:
        status = EventStatus.CONFIRMED

    try:
        transparency = Transparency(data.get('transparency', Transparency.OPAQUE.value))
    except ValueError:
        transparency = Transparency.OPAQUE

    extended = data.get('extendedProperties') or {}
    private = extended.get('private') or {}

    return CalendarEvent(
        event_id=data.get('id') or None,
        summary=str(data.get('summary') or ''),
        start=parse_iso_datetime((data.get('start') or {}).get('dateTime')),
        end=parse_iso_datetime((data.get('end') or {}).get('dateTime')),
        description=data.get('description'),
        status=status,
        updated=parse_iso_datetime(data.get('updated')),
        transparency=transparency,
        private_properties={str(k): str(v) for k, v in private.items()},
    )
