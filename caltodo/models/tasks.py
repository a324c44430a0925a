# File: caltodo/models/tasks.py

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Task:
    """A task decoded from an app-owned calendar event."""
    id: str
    title: str
    duration_minutes: int
    details: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    completed: bool = False
    completed_at: Optional[datetime] = None

    # Assigned while listing, never stored on the event
    priority: int = 0

    def __post_init__(self):
        """Validate task data."""
        if self.duration_minutes < 1:
            raise ValueError(f"Duration must be at least one minute: {self.title}")

        if self.scheduled_start and self.scheduled_end:
            if self.scheduled_end <= self.scheduled_start:
                raise ValueError(f"Task end must be after start: {self.title}")

        if not self.completed:
            self.completed_at = None

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_start is not None and self.scheduled_end is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON responses."""
        return {
            'id': self.id,
            'title': self.title,
            'details': self.details,
            'duration': self.duration_minutes,
            'scheduled_start': self.scheduled_start.isoformat() if self.scheduled_start else None,
            'scheduled_end': self.scheduled_end.isoformat() if self.scheduled_end else None,
            'completed': self.completed,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'priority': self.priority,
        }
