# File: tests/conftest.py
"""
Pytest configuration and shared fixtures.
Provides reusable settings, event builders and an in-memory Calendar API.
"""

import copy
import itertools
import pytest
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock
import sys

import httplib2
from googleapiclient.errors import HttpError

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from caltodo.models import ActionLinks, SchedulingConfig, UserSettings, format_rfc3339


def utc(*args) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


def make_http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({'status': status}), b'{"error": {"message": "test"}}')


def make_event_dict(
    event_id,
    start=None,
    end=None,
    summary="",
    app_owned=False,
    completed=False,
    description=None,
    status="confirmed",
    updated=None,
    extra_properties=None,
):
    """Raw Calendar API event resource."""
    data = {
        'id': event_id,
        'summary': summary,
        'status': status,
        'start': {'dateTime': format_rfc3339(start)} if start else {'date': '2026-03-02'},
        'end': {'dateTime': format_rfc3339(end)} if end else {'date': '2026-03-03'},
    }
    if description is not None:
        data['description'] = description
    if updated is not None:
        data['updated'] = format_rfc3339(updated)

    private = dict(extra_properties or {})
    if app_owned:
        private['caltodo'] = 'true'
        private['caltodoCompleted'] = 'true' if completed else 'false'
    if private:
        data['extendedProperties'] = {'private': private}
    return data


# ==================== Fake Calendar API ====================

class FakeRequest:
    """Stands in for googleapiclient.http.HttpRequest."""

    def __init__(self, func):
        self._func = func

    def execute(self):
        return self._func()


class FakeBatch:
    """Stands in for googleapiclient.http.BatchHttpRequest."""

    def __init__(self, callback):
        self.callback = callback
        self.requests = []

    def add(self, request, request_id=None):
        self.requests.append((request_id, request))

    def execute(self):
        for request_id, request in self.requests:
            try:
                response = request.execute()
            except HttpError as e:
                self.callback(request_id, None, e)
            else:
                self.callback(request_id, response, None)


class FakeEventsResource:
    def __init__(self, calendar):
        self.calendar = calendar

    def list(self, calendarId, timeMin, timeMax, pageToken=None, maxResults=250, **kwargs):
        return FakeRequest(lambda: self.calendar.list_page(timeMin, timeMax, pageToken, maxResults))

    def get(self, calendarId, eventId):
        return FakeRequest(lambda: self.calendar.get(eventId))

    def insert(self, calendarId, body):
        return FakeRequest(lambda: self.calendar.insert(body))

    def patch(self, calendarId, eventId, body):
        return FakeRequest(lambda: self.calendar.patch(eventId, body))

    def delete(self, calendarId, eventId):
        return FakeRequest(lambda: self.calendar.delete(eventId))


class FakeCalendarResource:
    """
    In-memory replacement for the Calendar v3 resource.

    ``errors`` maps event ids to an HTTP status raised on get/patch;
    ``patch_errors`` maps event ids to an exception raised on patch only.
    """

    def __init__(self, events=None, page_size=None):
        self.events_by_id = {e['id']: copy.deepcopy(e) for e in (events or [])}
        self.errors = {}
        self.patch_errors = {}
        self.list_error = None
        self.page_size = page_size
        self.patches = []
        self._ids = itertools.count(1)

    def events(self):
        return FakeEventsResource(self)

    def new_batch_http_request(self, callback=None):
        return FakeBatch(callback)

    def _check(self, event_id):
        if event_id in self.errors:
            raise make_http_error(self.errors[event_id])
        if event_id not in self.events_by_id:
            raise make_http_error(404)

    def list_page(self, time_min, time_max, page_token, max_results):
        if self.list_error:
            raise make_http_error(self.list_error)

        def in_window(event):
            start = event['start'].get('dateTime')
            end = event['end'].get('dateTime')
            if not start or not end:
                return True
            return start < time_max and end > time_min

        items = sorted(
            (copy.deepcopy(e) for e in self.events_by_id.values() if in_window(e)),
            key=lambda e: e['start'].get('dateTime') or e['start'].get('date'),
        )
        size = self.page_size or max_results
        offset = int(page_token or 0)
        page = {'items': items[offset:offset + size]}
        if offset + size < len(items):
            page['nextPageToken'] = str(offset + size)
        return page

    def get(self, event_id):
        self._check(event_id)
        return copy.deepcopy(self.events_by_id[event_id])

    def insert(self, body):
        event_id = f"evt{next(self._ids)}"
        event = copy.deepcopy(body)
        event.update({'id': event_id, 'status': 'confirmed'})
        self.events_by_id[event_id] = event
        return copy.deepcopy(event)

    def patch(self, event_id, body):
        self._check(event_id)
        if event_id in self.patch_errors:
            raise self.patch_errors[event_id]
        self.patches.append((event_id, copy.deepcopy(body)))
        self.events_by_id[event_id].update(copy.deepcopy(body))
        return copy.deepcopy(self.events_by_id[event_id])

    def delete(self, event_id):
        self._check(event_id)
        del self.events_by_id[event_id]
        return ''


# ==================== Configuration Fixtures ====================

@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    """Keep test log files out of the project tree."""
    monkeypatch.setenv("CALTODO_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def utc_config():
    return SchedulingConfig(timezone="UTC", work_start_hour=9, work_end_hour=17)


@pytest.fixture
def settings(utc_config):
    return UserSettings(calendar_id="primary", scheduling=utc_config, default_duration=60, event_color="5")


@pytest.fixture
def links():
    return ActionLinks(
        complete="https://todo.example.com/action/tok-complete",
        reschedule="https://todo.example.com/action/tok-reschedule",
    )


# ==================== Mock Service Fixtures ====================

@pytest.fixture
def fake_calendar():
    return FakeCalendarResource()


@pytest.fixture
def token_factory():
    """Issues predictable tokens: '<event id>-<action>'."""
    return Mock(side_effect=lambda event_id, action: f"{event_id}-{action.value}")
