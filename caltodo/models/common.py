# File: caltodo/models/common.py

from datetime import datetime, timezone
from typing import Optional


def parse_iso_datetime(date_str: Optional[str]) -> Optional[datetime]:
    """Robustly parse RFC3339 timestamps from the Calendar API into aware UTC datetimes."""
    if not date_str or not isinstance(date_str, str):
        return None
    try:
        # fromisoformat on Python < 3.11 does not accept 'Z'
        clean_str = date_str.strip().replace('Z', '+00:00')
        parsed = datetime.fromisoformat(clean_str)
    except ValueError:
        return None
    return ensure_utc(parsed)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_rfc3339(value: datetime) -> str:
    """Format an instant the way the Calendar API expects it (UTC, 'Z' suffix)."""
    utc_value = ensure_utc(value).replace(microsecond=0)
    return utc_value.isoformat().replace('+00:00', 'Z')
