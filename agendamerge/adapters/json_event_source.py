"""
Event source backed by a JSON export of the calendar tables.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import pendulum
from pendulum import DateTime

from ..domain.calendar_prepare import get_accepted_status
from ..domain.exceptions import EventSourceError
from ..domain.models import (
    Broadcast,
    ModerationStatus,
    Participant,
    User,
    UserBroadcast,
    UserEvent,
    UserWebinar,
    Webinar,
)

logger = logging.getLogger(__name__)


RECORD_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


class JsonEventSource:
    """
    Serves users, events, webinars and broadcasts from a JSON document.

    Expected layout::

        {
          "users": [{"id": 1, "name": "Anna"}],
          "events": [{"id": 10, "title": "...", "start": "...", "end": "...",
                      "ownerId": 1, "type": "meeting", "description": "...",
                      "participants": [{"userId": 2, "status": "approved"}]}],
          "webinars": [{"id": 20, "title": "...", "date": "...", "dateClose": "...",
                        "description": "...", "attendeeIds": [1]}],
          "broadcasts": [{"id": 30, "title": "...", "date": "...", "dateClose": "...",
                          "shortDescription": "...", "attendeeIds": [1]}]
        }

    Records that cannot be parsed are skipped with a warning.
    """

    def __init__(self, data_file: Path, timezone: str = "UTC"):
        """
        Initialize the source.

        Args:
            data_file: Path to the JSON document
            timezone: IANA timezone used for instants without an offset

        Raises:
            EventSourceError: If the file is missing, not valid JSON or a
                section is not a list
        """
        self.data_file = Path(data_file)
        self.timezone = timezone
        self.users: Dict[int, User] = {}
        self.events: List[UserEvent] = []
        self.webinars: List[Tuple[FrozenSet[int], Webinar]] = []
        self.broadcasts: List[Tuple[FrozenSet[int], Broadcast]] = []
        self._load_calendar_data()

    def _load_calendar_data(self) -> None:
        """Load and parse the JSON document."""
        if not self.data_file.exists():
            raise EventSourceError(f"Event data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise EventSourceError(f"Invalid JSON in {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise EventSourceError("Event data file must contain an object at the root level.")

        for raw in self._section(data, "users"):
            try:
                user = User(id=int(raw["id"]), name=raw.get("name", ""))
            except RECORD_ERRORS as exc:
                logger.warning("Skipping invalid user record %r: %s", raw, exc)
                continue
            self.users[user.id] = user

        for raw in self._section(data, "events"):
            try:
                self.events.append(self._parse_event(raw))
            except RECORD_ERRORS as exc:
                logger.warning("Skipping invalid event record %r: %s", raw, exc)

        for raw in self._section(data, "webinars"):
            try:
                webinar = Webinar(
                    id=int(raw["id"]),
                    title=raw["title"],
                    description=raw.get("description", ""),
                    date=self._parse_datetime(raw["date"]),
                    date_close=self._parse_datetime(raw["dateClose"]),
                )
                self.webinars.append((self._parse_attendees(raw), webinar))
            except RECORD_ERRORS as exc:
                logger.warning("Skipping invalid webinar record %r: %s", raw, exc)

        for raw in self._section(data, "broadcasts"):
            try:
                broadcast = Broadcast(
                    id=int(raw["id"]),
                    title=raw["title"],
                    short_description=raw.get("shortDescription", ""),
                    date=self._parse_datetime(raw["date"]),
                    date_close=self._parse_datetime(raw["dateClose"]),
                )
                self.broadcasts.append((self._parse_attendees(raw), broadcast))
            except RECORD_ERRORS as exc:
                logger.warning("Skipping invalid broadcast record %r: %s", raw, exc)

        logger.debug(
            "Loaded %d users, %d events, %d webinars, %d broadcasts from %s",
            len(self.users),
            len(self.events),
            len(self.webinars),
            len(self.broadcasts),
            self.data_file,
        )

    def _section(self, data: Dict[str, Any], name: str) -> List[Any]:
        """Return the records of a top-level section. A missing or null section is empty."""
        records = data.get(name) or []
        if not isinstance(records, list):
            raise EventSourceError(f"Section '{name}' in {self.data_file} must be a list.")
        return records

    def _parse_datetime(self, value: str) -> DateTime:
        return pendulum.parse(value, tz=self.timezone)

    @staticmethod
    def _parse_attendees(raw: Dict[str, Any]) -> FrozenSet[int]:
        return frozenset(int(user_id) for user_id in raw.get("attendeeIds", []))

    def _resolve_user(self, user_id: int) -> User:
        # Unknown ids still get an identity so ownership checks keep working
        return self.users.get(user_id) or User(id=user_id)

    def _parse_event(self, raw: Dict[str, Any]) -> UserEvent:
        owner_id = raw.get("ownerId")
        participants = [
            Participant(
                user=self._resolve_user(int(item["userId"])),
                status=ModerationStatus(item.get("status", ModerationStatus.PENDING.value)),
            )
            for item in raw.get("participants", [])
        ]

        return UserEvent(
            id=int(raw["id"]),
            title=raw["title"],
            description=raw.get("description", ""),
            start_at=self._parse_datetime(raw["start"]),
            end_at=self._parse_datetime(raw["end"]),
            owner=self._resolve_user(int(owner_id)) if owner_id is not None else None,
            participants=participants,
            user_event_type=raw.get("type"),
        )

    @staticmethod
    def _in_window(
        start: DateTime,
        end: DateTime,
        window_start: Optional[DateTime],
        window_end: Optional[DateTime]
    ) -> bool:
        """Check if an interval overlaps the window. Missing bounds are open."""
        if window_end is not None and start >= window_end:
            return False
        if window_start is not None and end <= window_start:
            return False
        return True

    @staticmethod
    def _involves(event: UserEvent, user: User) -> bool:
        if event.owner is not None and event.owner.id == user.id:
            return True
        return any(participant.user.id == user.id for participant in event.participants)

    async def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_events(
        self,
        user: User,
        date_start: Optional[DateTime] = None,
        date_end: Optional[DateTime] = None
    ) -> List[UserEvent]:
        return [
            event for event in self.events
            if self._involves(event, user)
            and self._in_window(event.start_at, event.end_at, date_start, date_end)
        ]

    async def get_user_webinars(
        self,
        user: User,
        date_start: Optional[DateTime] = None,
        date_end: Optional[DateTime] = None
    ) -> List[UserWebinar]:
        return [
            UserWebinar(webinar=webinar)
            for attendees, webinar in self.webinars
            if user.id in attendees
            and self._in_window(webinar.date, webinar.date_close, date_start, date_end)
        ]

    async def get_user_broadcasts(
        self,
        user: User,
        date_start: Optional[DateTime] = None,
        date_end: Optional[DateTime] = None
    ) -> List[UserBroadcast]:
        return [
            UserBroadcast(broadcast=broadcast)
            for attendees, broadcast in self.broadcasts
            if user.id in attendees
            and self._in_window(broadcast.date, broadcast.date_close, date_start, date_end)
        ]

    async def get_open_events_between(
        self,
        user: User,
        to_user: User,
        start_time: DateTime,
        end_time: DateTime
    ) -> List[UserEvent]:
        """
        Return events blocking either user in the window.

        Events declined by their invitees do not block anybody.
        """
        return [
            event for event in self.events
            if (self._involves(event, user) or self._involves(event, to_user))
            and get_accepted_status(event) is not False
            and self._in_window(event.start_at, event.end_at, start_time, end_time)
        ]
