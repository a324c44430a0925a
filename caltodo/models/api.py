# File: caltodo/models/api.py

from dataclasses import dataclass
from typing import Optional, Union

from .calendar import CalendarEvent

# A previously known event no longer exists on the remote calendar
# (404/410 from the API, or status "cancelled").
EVENT_DELETED = "__EVENT_DELETED__"

# Result of fetching one known event id. None means the fetch failed
# transiently or the event has no usable span; callers leave the task as is.
EventFetchResult = Optional[Union[CalendarEvent, str]]


@dataclass(frozen=True)
class ActionLinks:
    """Links embedded in an event description."""
    complete: str
    reschedule: str
