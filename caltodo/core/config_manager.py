# File: caltodo/core/config_manager.py
"""
Centralized configuration management for CalTodo.
Loads settings from environment variables.
"""

import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

from caltodo.models import SchedulingConfig, UserSettings
from caltodo.utils.logger import setup_logger

# Load environment variables
load_dotenv()

logger = setup_logger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default


class Config:
    """Application configuration singleton."""

    # Base directories
    BASE_DIR = Path(__file__).parent.parent.parent  # Go up 3 levels from caltodo/core/

    # Files
    TOKEN_FILE = Path(os.getenv("GOOGLE_TOKEN_FILE", str(BASE_DIR / "token.json")))

    # Google OAuth client (tokens themselves are issued elsewhere)
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
    GOOGLE_SCOPES = [
        'https://www.googleapis.com/auth/calendar',
    ]

    # User scheduling defaults
    CALENDAR_ID = os.getenv("CALENDAR_ID", "primary")
    TIMEZONE = os.getenv("TIMEZONE", "America/New_York")
    WORK_START_HOUR = _env_int("WORK_START_HOUR", 9)
    WORK_END_HOUR = _env_int("WORK_END_HOUR", 17)
    DEFAULT_DURATION = _env_int("DEFAULT_DURATION", 60)
    EVENT_COLOR = os.getenv("EVENT_COLOR", "1")

    # Action links
    BASE_URL = os.getenv("BASE_URL", "http://localhost:5000")

    # Scheduling windows
    SEARCH_HORIZON_DAYS = 90
    LOOKBACK_DAYS = 14
    RESCHEDULE_TOLERANCE_SECONDS = 60

    @classmethod
    def load_user_settings(cls) -> UserSettings:
        """Build UserSettings from the environment."""
        return UserSettings(
            calendar_id=cls.CALENDAR_ID,
            scheduling=SchedulingConfig(
                timezone=cls.TIMEZONE,
                work_start_hour=cls.WORK_START_HOUR,
                work_end_hour=cls.WORK_END_HOUR,
            ),
            default_duration=cls.DEFAULT_DURATION,
            event_color=cls.EVENT_COLOR,
        )

    @classmethod
    def validate(cls) -> bool:
        """Validate that all required configuration is present."""
        errors: List[str] = []

        try:
            cls.load_user_settings()
        except ValueError as e:
            errors.append(f"Invalid scheduling settings: {e}")

        if not cls.TOKEN_FILE.exists():
            errors.append(f"token.json not found at {cls.TOKEN_FILE}")

        if errors:
            for error in errors:
                logger.error(f"Configuration Error: {error}")
            return False

        return True
