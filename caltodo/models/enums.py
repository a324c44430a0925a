# File: caltodo/models/enums.py

from enum import Enum


class EventStatus(Enum):
    """Lifecycle status reported by the Calendar API."""
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class Transparency(Enum):
    """Whether an event blocks free/busy time."""
    OPAQUE = "opaque"
    TRANSPARENT = "transparent"


class TaskAction(Enum):
    """Actions reachable from the links embedded in an event description."""
    COMPLETE = "complete"
    RESCHEDULE = "reschedule"


class PlacementOutcome(Enum):
    """Result of placing one task during a reschedule pass."""
    MOVED = "moved"
    UNCHANGED = "unchanged"
    NO_SLOT = "no_slot"
