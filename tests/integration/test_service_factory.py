# File: tests/integration/test_service_factory.py
"""
Integration tests for ServiceFactory wiring and the reschedule script.
"""

import pytest
from unittest.mock import patch

from caltodo.core.config_manager import Config
from caltodo.core.exceptions import ConfigurationError
from caltodo.core.orchestrator import RescheduleOrchestrator
from caltodo.models import TaskAction
from caltodo.services import service_factory
from caltodo.services.service_factory import ServiceFactory
from caltodo.services.tasks_service import TaskService
from conftest import FakeCalendarResource, make_event_dict, utc
from scripts import reschedule


class TestServiceFactory:

    def test_invalid_settings_raise_configuration_error(self, monkeypatch):
        monkeypatch.setattr(Config, "WORK_START_HOUR", 18)
        monkeypatch.setattr(Config, "WORK_END_HOUR", 9)

        with pytest.raises(ConfigurationError) as exc_info:
            ServiceFactory.load_settings()
        assert exc_info.value.status == 400

    def test_missing_credentials_raise_connection_error(self, settings):
        with patch.object(service_factory, "get_calendar_service", return_value=None):
            with pytest.raises(ConnectionError):
                ServiceFactory.create_calendar_service(settings=settings)

    def test_create_orchestrator(self, settings):
        orchestrator = ServiceFactory.create_orchestrator(FakeCalendarResource(), settings)

        assert isinstance(orchestrator, RescheduleOrchestrator)
        assert orchestrator.calendar.calendar_id == "primary"

    def test_create_task_service(self, settings, token_factory, monkeypatch):
        monkeypatch.setattr(Config, "BASE_URL", "https://todo.example.com")
        service = ServiceFactory.create_task_service(token_factory, FakeCalendarResource(), settings)

        assert isinstance(service, TaskService)
        assert service.links.link_for("evt1", TaskAction.RESCHEDULE) == "https://todo.example.com/action/evt1-reschedule"

    def test_create_user_task_service_from_tokens(self, settings, token_factory):
        resource = FakeCalendarResource()
        with patch("caltodo.auth.google_auth.build_calendar_resource", return_value=resource) as build:
            service = ServiceFactory.create_user_task_service(
                token_factory, "access-123", "refresh-456", settings
            )

        creds = build.call_args[0][0]
        assert creds.token == "access-123"
        assert creds.refresh_token == "refresh-456"
        assert service.calendar.service is resource

    def test_create_user_task_service_without_token(self, settings, token_factory):
        with patch("caltodo.auth.google_auth.build_calendar_resource") as build:
            with pytest.raises(ConnectionError):
                ServiceFactory.create_user_task_service(token_factory, None, settings=settings)
        build.assert_not_called()


class TestRescheduleScript:

    def test_invalid_config_exits_with_error(self):
        with patch.object(reschedule.Config, "validate", return_value=False):
            assert reschedule.main([]) == 1

    def test_successful_pass(self, settings):
        resource = FakeCalendarResource([
            make_event_dict("t1", utc(2030, 1, 7, 9), utc(2030, 1, 7, 10), summary="☑️ t1", app_owned=True),
        ])
        orchestrator = ServiceFactory.create_orchestrator(resource, settings)

        with patch.object(reschedule.Config, "validate", return_value=True), \
                patch.object(reschedule.ServiceFactory, "create_orchestrator", return_value=orchestrator):
            assert reschedule.main(["--first", "t1"]) == 0

    def test_authentication_failure(self):
        with patch.object(reschedule.Config, "validate", return_value=True), \
                patch.object(reschedule.ServiceFactory, "create_orchestrator", side_effect=ConnectionError("no token")):
            assert reschedule.main([]) == 1
