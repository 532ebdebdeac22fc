"""
Domain layer - Pure business logic without external dependencies.
"""

from .calendar_prepare import CalendarDataPreparer
from .models import (
    Broadcast,
    BusyInterval,
    CalendarItem,
    EventType,
    ModerationStatus,
    Participant,
    TimeSlot,
    User,
    UserBroadcast,
    UserEvent,
    UserWebinar,
    Webinar,
)

__all__ = [
    "Broadcast",
    "BusyInterval",
    "CalendarDataPreparer",
    "CalendarItem",
    "EventType",
    "ModerationStatus",
    "Participant",
    "TimeSlot",
    "User",
    "UserBroadcast",
    "UserEvent",
    "UserWebinar",
    "Webinar",
]
