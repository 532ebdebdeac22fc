"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .calendar_service import CalendarService, EventSourceProtocol

__all__ = ["CalendarService", "EventSourceProtocol"]
