# File: caltodo/services/calendar_service.py

import datetime
from typing import Any, Dict, List, Optional, Sequence
import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from caltodo.core.config_manager import Config
from caltodo.core.exceptions import CalendarGatewayError, TaskNotFoundError
from caltodo.models import (
    EVENT_DELETED,
    BusyInterval,
    CalendarEvent,
    EventFetchResult,
    ManagedTask,
    Obstacle,
    TimeSlot,
    UserSettings,
    calendar_event_from_dict,
    ensure_utc,
    format_rfc3339,
)
from caltodo.processors.event_codec import (
    classify_event,
    encode_for_completion_update,
    encode_for_time_update,
    is_app_owned,
)
from caltodo.processors.slot_finder import SlotFinder
from caltodo.utils.logger import setup_logger

logger = setup_logger(__name__)

# Statuses meaning the event no longer exists
DELETED_STATUS_CODES = (404, 410)

# Google recommends keeping batches small for the Calendar API
BATCH_SIZE = 50
PAGE_SIZE = 250

# Failures below the HTTP layer: timeouts, DNS, TLS, token refresh
TRANSPORT_ERRORS = (OSError, httplib2.HttpLib2Error, GoogleAuthError)


def http_status(error: Exception) -> Optional[int]:
    """Extract the HTTP status from a googleapiclient error, if any."""
    resp = getattr(error, 'resp', None)
    status = getattr(resp, 'status', None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


class GoogleCalendarService:
    """Handles all Google Calendar operations for one user calendar."""

    def __init__(self, calendar_service: Resource, calendar_id: str = Config.CALENDAR_ID):
        """
        Initialize calendar service.

        Args:
            calendar_service: Authenticated Google Calendar API resource
            calendar_id: Calendar holding the user's tasks
        """
        self.service = calendar_service
        self.calendar_id = calendar_id

    # ==================== Gateway ====================

    def list_events(
        self,
        time_min: datetime.datetime,
        time_max: datetime.datetime
    ) -> List[CalendarEvent]:
        """
        Fetch all single events overlapping a time range.

        Raises:
            CalendarGatewayError: If the API call fails
        """
        logger.info(
            f"Fetching events for {self.calendar_id} "
            f"from {format_rfc3339(time_min)} to {format_rfc3339(time_max)}"
        )

        events: List[CalendarEvent] = []
        page_token = None

        try:
            while True:
                kwargs = {
                    "calendarId": self.calendar_id,
                    "timeMin": format_rfc3339(time_min),
                    "timeMax": format_rfc3339(time_max),
                    "singleEvents": True,
                    "orderBy": "startTime",
                    "maxResults": PAGE_SIZE,
                }
                if page_token:
                    kwargs["pageToken"] = page_token

                response = self.service.events().list(**kwargs).execute()
                events.extend(
                    calendar_event_from_dict(item) for item in response.get('items', [])
                )

                page_token = response.get("nextPageToken")
                if not page_token:
                    break
        except HttpError as e:
            logger.error(f"Error fetching calendar events: {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to list events: {e}", http_status(e)) from e
        except TRANSPORT_ERRORS as e:
            logger.error(f"Network error fetching calendar events: {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to list events: {e}") from e

        logger.info(f"Found {len(events)} calendar events")
        return events

    def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        """
        Fetch one event.

        Returns:
            CalendarEvent, or None if the event no longer exists

        Raises:
            CalendarGatewayError: For any failure other than not-found/gone
        """
        try:
            data = self.service.events().get(
                calendarId=self.calendar_id,
                eventId=event_id
            ).execute()
        except HttpError as e:
            if http_status(e) in DELETED_STATUS_CODES:
                logger.info(f"Event {event_id} no longer exists")
                return None
            logger.error(f"Error fetching event {event_id}: {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to get event {event_id}: {e}", http_status(e)) from e
        except TRANSPORT_ERRORS as e:
            logger.error(f"Network error fetching event {event_id}: {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to get event {event_id}: {e}") from e

        return calendar_event_from_dict(data)

    def insert_event(self, body: Dict[str, Any]) -> CalendarEvent:
        """Insert a new event and return it as stored."""
        try:
            data = self.service.events().insert(
                calendarId=self.calendar_id,
                body=body
            ).execute()
        except HttpError as e:
            logger.error(f"Error creating event '{body.get('summary')}': {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to create event: {e}", http_status(e)) from e
        except TRANSPORT_ERRORS as e:
            logger.error(f"Network error creating event '{body.get('summary')}': {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to create event: {e}") from e

        logger.info(f"Created event {data.get('id')}")
        return calendar_event_from_dict(data)

    def patch_event(self, event_id: str, body: Dict[str, Any]) -> CalendarEvent:
        """
        Patch the given fields of an event.

        Raises:
            TaskNotFoundError: If the event no longer exists
            CalendarGatewayError: For any other failure
        """
        try:
            data = self.service.events().patch(
                calendarId=self.calendar_id,
                eventId=event_id,
                body=body
            ).execute()
        except HttpError as e:
            if http_status(e) in DELETED_STATUS_CODES:
                raise TaskNotFoundError(f"Event {event_id} no longer exists") from e
            logger.error(f"Error patching event {event_id}: {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to patch event {event_id}: {e}", http_status(e)) from e
        except TRANSPORT_ERRORS as e:
            logger.error(f"Network error patching event {event_id}: {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to patch event {event_id}: {e}") from e

        return calendar_event_from_dict(data)

    def delete_event(self, event_id: str) -> bool:
        """
        Delete an event.

        Returns:
            True if deleted, False if it was already gone
        """
        try:
            self.service.events().delete(
                calendarId=self.calendar_id,
                eventId=event_id
            ).execute()
        except HttpError as e:
            if http_status(e) in DELETED_STATUS_CODES:
                logger.info(f"Event {event_id} was already deleted")
                return False
            logger.error(f"Error deleting event {event_id}: {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to delete event {event_id}: {e}", http_status(e)) from e
        except TRANSPORT_ERRORS as e:
            logger.error(f"Network error deleting event {event_id}: {e}", exc_info=True)
            raise CalendarGatewayError(f"Failed to delete event {event_id}: {e}") from e

        logger.info(f"Deleted event {event_id}")
        return True

    def get_events_for_ids(self, event_ids: Sequence[str]) -> Dict[str, EventFetchResult]:
        """
        Fetch several known events, one request per id, in batches.

        Each id is handled in isolation: not-found/gone or a cancelled event
        maps to EVENT_DELETED; any other error, or an event without a timed
        span, maps to None so the caller leaves that task unchanged.
        """
        results: Dict[str, EventFetchResult] = {}
        unique_ids = [event_id for event_id in dict.fromkeys(event_ids) if event_id]
        if not unique_ids:
            return results

        def callback(request_id, response, exception):
            if exception is not None:
                if http_status(exception) in DELETED_STATUS_CODES:
                    logger.info(f"Event {request_id} no longer exists")
                    results[request_id] = EVENT_DELETED
                else:
                    logger.warning(f"Failed to fetch event {request_id}: {exception}")
                    results[request_id] = None
                return

            event = calendar_event_from_dict(response)
            if event.is_cancelled:
                logger.info(f"Event {request_id} has status: cancelled (deleted)")
                results[request_id] = EVENT_DELETED
            elif not event.has_timed_span:
                results[request_id] = None
            else:
                results[request_id] = event

        for offset in range(0, len(unique_ids), BATCH_SIZE):
            chunk = unique_ids[offset:offset + BATCH_SIZE]
            batch = self.service.new_batch_http_request(callback=callback)
            for event_id in chunk:
                batch.add(
                    self.service.events().get(calendarId=self.calendar_id, eventId=event_id),
                    request_id=event_id
                )
            try:
                batch.execute()
            except (HttpError,) + TRANSPORT_ERRORS as e:
                logger.error(f"Batch fetch failed: {e}", exc_info=True)

            for event_id in chunk:
                results.setdefault(event_id, None)

        return results

    # ==================== Task-aware helpers ====================

    def get_task_event(self, event_id: str) -> Optional[CalendarEvent]:
        """Fetch an event only if it still exists and is app-owned."""
        event = self.get_event(event_id)
        if event is None or event.is_cancelled or not is_app_owned(event):
            return None
        return event

    def update_event_time(self, event_id: str, slot: TimeSlot, timezone: str) -> bool:
        """
        Move an app-owned event to a new slot.

        Returns:
            True if patched, False if the event is gone or not a task
        """
        if self.get_task_event(event_id) is None:
            logger.warning(f"Not moving {event_id}: event is gone or not a task")
            return False

        try:
            self.patch_event(event_id, encode_for_time_update(slot, timezone))
        except TaskNotFoundError:
            logger.warning(f"Event {event_id} disappeared before it could be moved")
            return False

        logger.info(f"Moved {event_id} to {slot.start.isoformat()}")
        return True

    def update_event_completion(self, event_id: str, completed: bool) -> Optional[CalendarEvent]:
        """
        Flip the completion state of an app-owned event.

        Returns:
            The patched event, or None if the event is gone or not a task
        """
        event = self.get_task_event(event_id)
        if event is None:
            return None

        try:
            updated = self.patch_event(event_id, encode_for_completion_update(event, completed))
        except TaskNotFoundError:
            return None

        logger.info(f"Marked {event_id} as {'complete' if completed else 'incomplete'}")
        return updated

    def fetch_busy_intervals(
        self,
        time_min: datetime.datetime,
        time_max: datetime.datetime,
        exclude_app_owned: bool = False
    ) -> List[BusyInterval]:
        """Busy intervals in a range; app-owned events are optionally left out."""
        intervals: List[BusyInterval] = []
        for event in self.list_events(time_min, time_max):
            classified = classify_event(event)
            if isinstance(classified, Obstacle):
                intervals.append(classified.interval)
            elif isinstance(classified, ManagedTask) and not exclude_app_owned:
                intervals.append(BusyInterval(classified.task.scheduled_start, classified.task.scheduled_end))
        return intervals

    def find_free_slot(
        self,
        settings: UserSettings,
        duration_minutes: int,
        after: Optional[datetime.datetime] = None,
        exclude_app_owned: bool = False,
        horizon_days: int = Config.SEARCH_HORIZON_DAYS
    ) -> Optional[TimeSlot]:
        """
        Find the earliest free slot on this calendar.

        Returns:
            TimeSlot, or None if nothing is free within the horizon
        """
        search_start = ensure_utc(after) if after else datetime.datetime.now(datetime.timezone.utc)
        search_end = search_start + datetime.timedelta(days=horizon_days)

        busy = self.fetch_busy_intervals(search_start, search_end, exclude_app_owned)
        slot = SlotFinder(settings.scheduling).find_slot(busy, duration_minutes, search_start, search_end)

        if slot is None:
            logger.warning(f"No free {duration_minutes}-minute slot in the next {horizon_days} days")
        return slot
