# File: caltodo/services/service_factory.py

from typing import Optional
from googleapiclient.discovery import Resource

from caltodo.auth.google_auth import get_calendar_service, get_calendar_service_for_tokens
from caltodo.core.config_manager import Config
from caltodo.core.exceptions import ConfigurationError
from caltodo.core.orchestrator import RescheduleOrchestrator
from caltodo.models import UserSettings
from caltodo.services.action_links import ActionLinkProvider, TokenFactory
from caltodo.services.calendar_service import GoogleCalendarService
from caltodo.services.tasks_service import TaskService
from caltodo.utils.logger import setup_logger

logger = setup_logger(__name__)


class ServiceFactory:
    """Factory for wiring calendar, task and reschedule services together."""

    @staticmethod
    def load_settings() -> UserSettings:
        """
        Load user settings from the environment.

        Raises:
            ConfigurationError: If the settings are out of range
        """
        try:
            return Config.load_user_settings()
        except ValueError as e:
            raise ConfigurationError(f"Invalid scheduling settings: {e}") from e

    @staticmethod
    def create_calendar_service(
        resource: Optional[Resource] = None,
        settings: Optional[UserSettings] = None
    ) -> GoogleCalendarService:
        """
        Create the calendar gateway.

        Args:
            resource: Calendar API resource (built from the stored token when omitted)
            settings: User settings naming the calendar

        Raises:
            ConnectionError: If no authenticated resource can be built
        """
        if resource is None:
            resource = get_calendar_service()
            if resource is None:
                raise ConnectionError(
                    "Could not authenticate with Google Calendar. "
                    f"Check the token file at {Config.TOKEN_FILE}."
                )

        calendar_id = settings.calendar_id if settings else Config.CALENDAR_ID
        return GoogleCalendarService(resource, calendar_id)

    @classmethod
    def create_orchestrator(
        cls,
        resource: Optional[Resource] = None,
        settings: Optional[UserSettings] = None
    ) -> RescheduleOrchestrator:
        """Create a reschedule orchestrator ready to run."""
        logger.info("Creating RescheduleOrchestrator via factory")
        settings = settings or cls.load_settings()
        calendar = cls.create_calendar_service(resource, settings)
        return RescheduleOrchestrator(calendar, settings)

    @classmethod
    def create_task_service(
        cls,
        token_factory: TokenFactory,
        resource: Optional[Resource] = None,
        settings: Optional[UserSettings] = None
    ) -> TaskService:
        """
        Create a task service ready to run.

        Args:
            token_factory: Issues action tokens for task links
            resource: Calendar API resource (built from the stored token when omitted)
            settings: User settings (loaded from the environment when omitted)
        """
        logger.info("Creating TaskService via factory")
        settings = settings or cls.load_settings()
        calendar = cls.create_calendar_service(resource, settings)
        links = ActionLinkProvider(Config.BASE_URL, token_factory)
        return TaskService(calendar, settings, links, RescheduleOrchestrator(calendar, settings))

    @classmethod
    def create_user_task_service(
        cls,
        token_factory: TokenFactory,
        access_token: Optional[str],
        refresh_token: Optional[str] = None,
        settings: Optional[UserSettings] = None
    ) -> TaskService:
        """
        Create a task service for a user whose OAuth tokens are held by the caller.

        Raises:
            ConnectionError: If no access token is stored or the resource cannot be built
        """
        resource = get_calendar_service_for_tokens(access_token, refresh_token)
        if resource is None:
            raise ConnectionError("Could not authenticate with Google Calendar for this user.")
        return cls.create_task_service(token_factory, resource, settings)
