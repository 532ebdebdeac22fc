"""
Domain-specific exception hierarchy for the agenda merging application.
"""


class AgendaError(Exception):
    """Base class for all application-level errors."""


class InvalidTickError(AgendaError, ValueError):
    """Raised when the slot grid is configured with a non-positive tick."""


class EventSourceError(AgendaError):
    """Raised when calendar data cannot be loaded or parsed."""


class UserNotFoundError(AgendaError):
    """Raised when a requested user does not exist in the event source."""
