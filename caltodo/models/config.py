# File: caltodo/models/config.py
"""
Data models for per-user scheduling configuration.
"""

from dataclasses import dataclass, field

import pytz

MIN_DEFAULT_DURATION = 15
MAX_DEFAULT_DURATION = 480


@dataclass(frozen=True)
class SchedulingConfig:
    """Working-hours window in which tasks may be placed."""
    timezone: str = "UTC"
    work_start_hour: int = 9
    work_end_hour: int = 17

    def __post_init__(self):
        """Validate hours and timezone name."""
        for name in ('work_start_hour', 'work_end_hour'):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= 23:
                raise ValueError(f"{name} must be an integer in [0, 23], got {value!r}")

        if self.work_start_hour >= self.work_end_hour:
            raise ValueError(
                f"work_start_hour ({self.work_start_hour}) must be before "
                f"work_end_hour ({self.work_end_hour})"
            )

        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {self.timezone}")


@dataclass(frozen=True)
class UserSettings:
    """Settings a user configures for their task calendar."""
    calendar_id: str = "primary"
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    default_duration: int = 60
    event_color: str = "1"

    def __post_init__(self):
        if not MIN_DEFAULT_DURATION <= self.default_duration <= MAX_DEFAULT_DURATION:
            raise ValueError(
                f"default_duration must be between {MIN_DEFAULT_DURATION} and "
                f"{MAX_DEFAULT_DURATION} minutes, got {self.default_duration}"
            )

    @property
    def timezone(self) -> str:
        return self.scheduling.timezone

    @classmethod
    def from_dict(cls, data: dict) -> 'UserSettings':
        """Create UserSettings from a dictionary (e.g., a settings row)."""
        scheduling = SchedulingConfig(
            timezone=data.get('timezone', 'UTC'),
            work_start_hour=int(data.get('work_start_hour', 9)),
            work_end_hour=int(data.get('work_end_hour', 17)),
        )
        return cls(
            calendar_id=data.get('calendar_id') or 'primary',
            scheduling=scheduling,
            default_duration=int(data.get('default_duration', 60)),
            event_color=str(data.get('event_color', '1')),
        )
