"""
Domain models for calendar events, merged agenda items and booking slots.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pendulum import DateTime


class EventType(str, Enum):
    """Discriminator of the calendar sources merged into an agenda."""
    USER_EVENT = "user_event"
    WEBINAR = "webinar"
    BROADCAST = "broadcast"


class ModerationStatus(str, Enum):
    """Answer of an invited participant."""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


@dataclass(frozen=True)
class User:
    """A platform user. Identity is the numeric id."""
    id: int
    name: str = ""


@dataclass
class Participant:
    """An invitee of a user event together with their answer."""
    user: User
    status: ModerationStatus = ModerationStatus.PENDING


class Ownable:
    """
    Capability marker for event variants that carry an owner relation.

    Only variants deriving from this class can ever be owned by the viewer.
    """
    owner: Optional[User] = None


@dataclass
class UserEvent(Ownable):
    """
    A meeting scheduled between platform users.
    """
    id: int
    title: str
    start_at: DateTime
    end_at: DateTime
    description: str = ""
    owner: Optional[User] = None
    participants: List[Participant] = field(default_factory=list)
    user_event_type: Optional[str] = None


@dataclass
class Webinar:
    id: int
    title: str
    date: DateTime
    date_close: DateTime
    description: str = ""


@dataclass
class UserWebinar:
    """Attendance record linking a user to a webinar."""
    webinar: Webinar


@dataclass
class Broadcast:
    id: int
    title: str
    date: DateTime
    date_close: DateTime
    short_description: str = ""


@dataclass
class UserBroadcast:
    """Attendance record linking a user to a broadcast."""
    broadcast: Broadcast


@dataclass(frozen=True)
class BusyInterval:
    """
    A span of time blocking slot availability.

    No ordering between start and end is enforced.
    """
    start_at: DateTime
    end_at: DateTime


@dataclass
class CalendarItem:
    """
    One entry of the merged agenda, independent of the source it came from.

    ``status`` is True when accepted, False when declined and None while
    pending or when nobody was invited.
    """
    id: int
    title: str
    is_owner: bool
    type: EventType
    start_at: DateTime
    end_at: DateTime
    user_event_type: Optional[str] = None
    status: Optional[bool] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the response mapping consumed by API clients."""
        return {
            "id": self.id,
            "title": self.title,
            "isOwner": self.is_owner,
            "type": self.type.value,
            "userEventType": self.user_event_type,
            "status": self.status,
            "description": self.description,
            "startAt": self.start_at.to_iso8601_string(),
            "endAt": self.end_at.to_iso8601_string(),
        }


@dataclass
class TimeSlot:
    """
    A tick of the booking grid and whether a meeting may start there.
    """
    start_at: DateTime
    is_available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startTime": self.start_at.to_iso8601_string(),
            "isAvailable": self.is_available,
        }

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: DD.MM.YYYY HH:mm | free/busy
        """
        state = "free" if self.is_available else "busy"
        return f"{self.start_at.format('DD.MM.YYYY HH:mm')} | {state}"
