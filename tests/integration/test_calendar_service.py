# File: tests/integration/test_calendar_service.py
"""
Integration tests for GoogleCalendarService against an in-memory Calendar API.
"""

import pytest
from unittest.mock import Mock

import httplib2
from google.auth.exceptions import RefreshError

from caltodo.core.exceptions import CalendarGatewayError, TaskNotFoundError
from caltodo.models import EVENT_DELETED, TimeSlot
from caltodo.services.calendar_service import GoogleCalendarService, http_status
from conftest import FakeCalendarResource, make_event_dict, make_http_error, utc


@pytest.fixture
def calendar_events():
    return [
        make_event_dict("meet", utc(2026, 3, 2, 9), utc(2026, 3, 2, 10), summary="Standup"),
        make_event_dict(
            "task1", utc(2026, 3, 2, 10), utc(2026, 3, 2, 11),
            summary="☑️ Write tests", app_owned=True,
            extra_properties={'source': 'import'},
        ),
        make_event_dict("holiday", summary="Holiday"),
    ]


@pytest.fixture
def resource(calendar_events):
    return FakeCalendarResource(calendar_events)


@pytest.fixture
def service(resource):
    return GoogleCalendarService(resource, "primary")


class TestGateway:

    def test_http_status(self):
        assert http_status(make_http_error(410)) == 410
        assert http_status(ValueError("no response")) is None

    def test_list_events_paginates(self, calendar_events):
        service = GoogleCalendarService(FakeCalendarResource(calendar_events, page_size=1), "primary")
        events = service.list_events(utc(2026, 3, 1), utc(2026, 3, 5))

        assert {e.event_id for e in events} == {"meet", "task1", "holiday"}

    def test_list_events_error_raises(self, service, resource):
        resource.list_error = 500

        with pytest.raises(CalendarGatewayError) as exc_info:
            service.list_events(utc(2026, 3, 1), utc(2026, 3, 5))
        assert exc_info.value.status == 500

    def test_get_event_missing_returns_none(self, service):
        assert service.get_event("nope") is None

    def test_get_event_server_error_raises(self, service, resource):
        resource.errors["meet"] = 503
        with pytest.raises(CalendarGatewayError):
            service.get_event("meet")

    def test_patch_missing_raises_not_found(self, service):
        with pytest.raises(TaskNotFoundError):
            service.patch_event("nope", {'summary': 'x'})

    def test_delete_event(self, service, resource):
        assert service.delete_event("meet") is True
        assert "meet" not in resource.events_by_id
        assert service.delete_event("meet") is False

    def test_patch_timeout_raises_gateway_error(self, service, resource):
        resource.patch_errors["meet"] = TimeoutError("socket timed out")

        with pytest.raises(CalendarGatewayError) as exc_info:
            service.patch_event("meet", {'summary': 'x'})
        assert exc_info.value.status == 502

    def test_list_events_dns_failure_raises_gateway_error(self, service, resource):
        resource.list_page = Mock(side_effect=httplib2.ServerNotFoundError("no such host"))

        with pytest.raises(CalendarGatewayError):
            service.list_events(utc(2026, 3, 1), utc(2026, 3, 5))

    def test_insert_refresh_failure_raises_gateway_error(self, service, resource):
        resource.insert = Mock(side_effect=RefreshError("invalid_grant"))

        with pytest.raises(CalendarGatewayError):
            service.insert_event({'summary': 'x'})


class TestBatchFetch:

    def test_get_events_for_ids_isolates_errors(self, service, resource):
        resource.errors["task1"] = 500
        resource.events_by_id["cancelled"] = make_event_dict(
            "cancelled", utc(2026, 3, 2, 12), utc(2026, 3, 2, 13), status="cancelled",
        )

        results = service.get_events_for_ids(["meet", "task1", "gone", "cancelled", "holiday", "meet"])

        assert results["meet"].event_id == "meet"
        assert results["task1"] is None
        assert results["gone"] == EVENT_DELETED
        assert results["cancelled"] == EVENT_DELETED
        assert results["holiday"] is None
        assert len(results) == 5

    def test_get_events_for_ids_410_is_deleted(self, service, resource):
        resource.errors["meet"] = 410
        assert service.get_events_for_ids(["meet"]) == {"meet": EVENT_DELETED}

    def test_get_events_for_ids_empty(self, service):
        assert service.get_events_for_ids([]) == {}

    def test_get_events_for_ids_connection_failure(self, service, resource):
        batch = Mock()
        batch.execute.side_effect = ConnectionResetError("reset by peer")
        resource.new_batch_http_request = Mock(return_value=batch)

        assert service.get_events_for_ids(["meet", "task1"]) == {"meet": None, "task1": None}


class TestTaskHelpers:

    def test_get_task_event_ignores_foreign_events(self, service):
        assert service.get_task_event("meet") is None
        assert service.get_task_event("task1").event_id == "task1"

    def test_update_event_time(self, service, resource):
        slot = TimeSlot(utc(2026, 3, 3, 9), utc(2026, 3, 3, 10))

        assert service.update_event_time("task1", slot, "UTC") is True
        assert resource.events_by_id["task1"]['start'] == {
            'dateTime': "2026-03-03T09:00:00Z", 'timeZone': "UTC",
        }

    def test_update_event_time_refuses_foreign_event(self, service, resource):
        slot = TimeSlot(utc(2026, 3, 3, 9), utc(2026, 3, 3, 10))

        assert service.update_event_time("meet", slot, "UTC") is False
        assert resource.patches == []

    def test_update_event_completion_merges_properties(self, service, resource):
        updated = service.update_event_completion("task1", True)

        assert updated.summary == "✅ Write tests"
        assert resource.events_by_id["task1"]['extendedProperties']['private'] == {
            'caltodo': 'true',
            'caltodoCompleted': 'true',
            'source': 'import',
        }
        assert resource.events_by_id["task1"]['transparency'] == 'transparent'

    def test_update_event_completion_missing(self, service):
        assert service.update_event_completion("nope", True) is None


class TestFreeSlots:

    def test_fetch_busy_intervals(self, service):
        intervals = service.fetch_busy_intervals(utc(2026, 3, 1), utc(2026, 3, 5))
        assert sorted(i.start.hour for i in intervals) == [9, 10]

    def test_fetch_busy_intervals_excluding_tasks(self, service):
        intervals = service.fetch_busy_intervals(utc(2026, 3, 1), utc(2026, 3, 5), exclude_app_owned=True)
        assert [i.start.hour for i in intervals] == [9]

    def test_find_free_slot(self, service, settings):
        slot = service.find_free_slot(settings, 30, after=utc(2026, 3, 2, 8))
        assert slot.start == utc(2026, 3, 2, 11)

    def test_find_free_slot_ignoring_tasks(self, service, settings):
        slot = service.find_free_slot(settings, 30, after=utc(2026, 3, 2, 8), exclude_app_owned=True)
        assert slot.start == utc(2026, 3, 2, 10)

    def test_find_free_slot_none(self, service, settings, resource):
        resource.events_by_id["block"] = make_event_dict("block", utc(2026, 3, 2), utc(2026, 4, 1))

        assert service.find_free_slot(settings, 30, after=utc(2026, 3, 2, 8), horizon_days=7) is None
