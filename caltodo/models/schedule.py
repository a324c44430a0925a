# File: caltodo/models/schedule.py

from dataclasses import dataclass, asdict
from typing import Optional

from .calendar import TimeSlot
from .enums import PlacementOutcome


@dataclass
class Placement:
    """Placement decision for one task in a reschedule pass."""
    event_id: str
    current: TimeSlot
    target: Optional[TimeSlot]
    outcome: PlacementOutcome

    @property
    def needs_write(self) -> bool:
        return self.outcome == PlacementOutcome.MOVED


@dataclass
class RescheduleSummary:
    """Counters returned from a reschedule pass."""
    moved: int = 0
    unchanged: int = 0
    skipped_no_slot: int = 0
    skipped_invalid: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return (
            self.moved + self.unchanged + self.skipped_no_slot
            + self.skipped_invalid + self.failed
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        return (
            f"moved={self.moved} unchanged={self.unchanged} "
            f"skipped_no_slot={self.skipped_no_slot} "
            f"skipped_invalid={self.skipped_invalid} failed={self.failed}"
        )
