# File: caltodo/processors/event_codec.py
"""
Encoding of task state into Google Calendar event fields and back.

The conventions below are the wire contract with events already stored in
users' calendars; changing any of them orphans existing tasks.
"""

from typing import Any, Dict, Mapping, Optional, Union

from caltodo.models import (
    ActionLinks,
    CalendarEvent,
    ManagedTask,
    Obstacle,
    Task,
    TimeSlot,
    Transparency,
    UserSettings,
    format_rfc3339,
)
from caltodo.processors.slot_finder import get_duration_minutes

INCOMPLETE_PREFIX = "☑️ "
COMPLETE_PREFIX = "✅ "

APP_MARKER_PROPERTY = "caltodo"
COMPLETED_PROPERTY = "caltodoCompleted"

APP_SIGNATURE = "Created by Todo"
SIGNATURE_MARKER = f"---\n{APP_SIGNATURE}"
ACTIONS_MARKER = "Actions:\n- "

UNTITLED_TASK = "Untitled Task"


# ==================== Titles ====================

def strip_title_prefix(summary: Optional[str]) -> str:
    """Remove the completion status prefix from an event title."""
    summary = summary or ""
    for prefix in (INCOMPLETE_PREFIX, COMPLETE_PREFIX):
        if summary.startswith(prefix):
            return summary[len(prefix):]
    return summary


def format_event_title(title: str, completed: bool) -> str:
    prefix = COMPLETE_PREFIX if completed else INCOMPLETE_PREFIX
    return f"{prefix}{title}"


# ==================== Properties ====================

def _parse_bool_property(value: Optional[str]) -> bool:
    return isinstance(value, str) and value.strip().lower() == "true"


def is_app_owned(event: CalendarEvent) -> bool:
    return _parse_bool_property(event.private_properties.get(APP_MARKER_PROPERTY))


def is_completed(event: CalendarEvent) -> bool:
    return _parse_bool_property(event.private_properties.get(COMPLETED_PROPERTY))


def merge_private_properties(
    existing: Optional[Mapping[str, str]],
    updates: Mapping[str, str]
) -> Dict[str, str]:
    """Return a new property map with ``updates`` laid over ``existing``."""
    merged = dict(existing or {})
    merged.update(updates)
    return merged


def task_properties(completed: bool) -> Dict[str, str]:
    return {
        APP_MARKER_PROPERTY: "true",
        COMPLETED_PROPERTY: "true" if completed else "false",
    }


# ==================== Description ====================

def build_event_description(details: Optional[str], links: Optional[ActionLinks]) -> str:
    """
    Build the event body: details (if any), the Actions block, the signature.

    ``links`` is None only while an event id is not yet known; the Actions
    block is then left out until the links are patched in.
    """
    blocks = []
    details = (details or "").strip()
    if details:
        blocks.append(details)
    if links is not None:
        blocks.append(
            f"Actions:\n- Mark Complete: {links.complete}\n- Reschedule: {links.reschedule}"
        )
    blocks.append(SIGNATURE_MARKER)
    return "\n\n".join(blocks)


def extract_details(description: Optional[str]) -> Optional[str]:
    """Recover user details from an event body written by build_event_description."""
    if not description:
        return None

    text = description
    signature_at = text.find(SIGNATURE_MARKER)
    if signature_at != -1:
        text = text[:signature_at]

    actions_at = text.find(ACTIONS_MARKER)
    if actions_at != -1:
        text = text[:actions_at]

    text = text.strip()
    return text or None


# ==================== Decode ====================

def event_to_task(event: CalendarEvent) -> Optional[Task]:
    """
    Decode an app-owned event into a Task.

    Returns None for anything that is not a task: missing id or span,
    no ownership marker, or a non-positive duration.
    """
    if event is None or not event.event_id or not event.has_timed_span:
        return None
    if not is_app_owned(event):
        return None

    duration = get_duration_minutes(event.start, event.end)
    if duration is None:
        return None

    completed = is_completed(event)
    completed_at = (event.updated or event.end) if completed else None

    return Task(
        id=event.event_id,
        title=strip_title_prefix(event.summary) or UNTITLED_TASK,
        duration_minutes=duration,
        details=extract_details(event.description),
        scheduled_start=event.start,
        scheduled_end=event.end,
        completed=completed,
        completed_at=completed_at,
    )


def classify_event(event: CalendarEvent) -> Optional[Union[ManagedTask, Obstacle]]:
    """
    Resolve an event once into a managed task or an opaque obstacle.

    Cancelled events and events without a timed span are neither.
    """
    if event is None or event.is_cancelled:
        return None

    if is_app_owned(event):
        task = event_to_task(event)
        if task is not None:
            return ManagedTask(event=event, task=task)

    interval = event.busy_interval()
    if interval is None or not interval.is_valid():
        return None
    return Obstacle(event_id=event.event_id, interval=interval)


# ==================== Encode ====================

def encode_time_fields(slot: TimeSlot, timezone: str) -> Dict[str, Any]:
    """Start/end as UTC instants plus the zone the calendar should render in."""
    return {
        'start': {'dateTime': format_rfc3339(slot.start), 'timeZone': timezone},
        'end': {'dateTime': format_rfc3339(slot.end), 'timeZone': timezone},
    }


def task_to_event_fields(
    title: str,
    details: Optional[str],
    completed: bool,
    slot: TimeSlot,
    event_color: str,
    timezone: str,
    links: Optional[ActionLinks] = None,
    existing_properties: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Full event body for a task."""
    body = {
        'summary': format_event_title(title, completed),
        'description': build_event_description(details, links),
        'visibility': 'private',
        'colorId': event_color,
        'transparency': (Transparency.TRANSPARENT if completed else Transparency.OPAQUE).value,
        'extendedProperties': {
            'private': merge_private_properties(existing_properties, task_properties(completed)),
        },
    }
    body.update(encode_time_fields(slot, timezone))
    return body


def encode_for_create(
    title: str,
    details: Optional[str],
    slot: TimeSlot,
    settings: UserSettings,
    links: Optional[ActionLinks] = None
) -> Dict[str, Any]:
    return task_to_event_fields(
        title=title.strip(),
        details=details,
        completed=False,
        slot=slot,
        event_color=settings.event_color,
        timezone=settings.timezone,
        links=links,
    )


def encode_for_completion_update(existing_event: CalendarEvent, completed: bool) -> Dict[str, Any]:
    """Patch body that flips completion while keeping unrelated private properties."""
    title = strip_title_prefix(existing_event.summary) or UNTITLED_TASK
    return {
        'summary': format_event_title(title, completed),
        'transparency': (Transparency.TRANSPARENT if completed else Transparency.OPAQUE).value,
        'extendedProperties': {
            'private': merge_private_properties(
                existing_event.private_properties,
                task_properties(completed),
            ),
        },
    }


def encode_for_time_update(slot: TimeSlot, timezone: str) -> Dict[str, Any]:
    return encode_time_fields(slot, timezone)


def encode_for_actions_refresh(details: Optional[str], links: ActionLinks) -> Dict[str, Any]:
    return {'description': build_event_description(details, links)}
