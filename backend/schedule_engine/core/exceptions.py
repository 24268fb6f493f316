"""
Custom exceptions for the schedule engine.
"""

from typing import Any, Optional


class ScheduleEngineError(Exception):
    """Base exception for the schedule engine."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(ScheduleEngineError):
    """Resource not found."""

    pass


class ValidationError(ScheduleEngineError):
    """Validation error."""

    pass


class DependencyCycleError(ValidationError):
    """Adding a dependency would create a cycle between schedules."""

    def __init__(self, message: str, path: list[str]):
        super().__init__(message, details={"path": path})
        self.path = path
