# File: caltodo/core/exceptions.py
"""
Error types raised by the CalTodo core.

Malformed events are never errors: the codec returns None for them.
These exceptions are reserved for I/O failures and for conditions the
HTTP layer has to report to the user.
"""

from typing import Optional


class CalTodoError(Exception):
    """Base class for CalTodo errors."""

    status: int = 500


class ConfigurationError(CalTodoError):
    """Invalid settings or environment."""

    status = 400


class CalendarGatewayError(CalTodoError):
    """A Calendar API call failed (network, auth, rate limit, server error)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status or 502


class SchedulingConflictError(CalTodoError):
    """No free slot exists within the search horizon."""

    status = 409


class TaskNotFoundError(CalTodoError):
    """The task's backing event is gone or is not an app-owned event."""

    status = 404
