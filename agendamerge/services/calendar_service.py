"""
Application services for the user calendar.

The service coordinates fetching calendar records via an event source adapter
and delegates merging and slot computation to the domain-level
``CalendarDataPreparer``. This keeps the CLI thin and allows the data source
to be replaced by a stub in tests.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Tuple

import pendulum
from pendulum import DateTime

from ..domain.calendar_prepare import DEFAULT_BUSY_PADDING_MINUTES, CalendarDataPreparer
from ..domain.exceptions import UserNotFoundError
from ..domain.models import CalendarItem, TimeSlot, User, UserBroadcast, UserEvent, UserWebinar

logger = logging.getLogger(__name__)


DAY_START_HOUR = 8
DAY_END_HOUR = 20


class EventSourceProtocol(Protocol):
    """Protocol describing the data access needed by the service."""

    async def get_user(self, user_id: int) -> Optional[User]:
        """Return the user with the given id, or None."""

    async def get_user_events(
        self,
        user: User,
        date_start: Optional[DateTime],
        date_end: Optional[DateTime],
    ) -> List[UserEvent]:
        """Return events the user owns or is invited to."""

    async def get_user_webinars(
        self,
        user: User,
        date_start: Optional[DateTime],
        date_end: Optional[DateTime],
    ) -> List[UserWebinar]:
        """Return webinar attendances of the user."""

    async def get_user_broadcasts(
        self,
        user: User,
        date_start: Optional[DateTime],
        date_end: Optional[DateTime],
    ) -> List[UserBroadcast]:
        """Return broadcast attendances of the user."""

    async def get_open_events_between(
        self,
        user: User,
        to_user: User,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[UserEvent]:
        """Return not declined events blocking either of the two users."""


class CalendarService:
    """
    Orchestrates record retrieval, agenda merging and slot calculation.
    """

    def __init__(
        self,
        event_source: EventSourceProtocol,
        preparer: CalendarDataPreparer,
        day_start_hour: int = DAY_START_HOUR,
        day_end_hour: int = DAY_END_HOUR,
        timezone: str = "UTC",
    ) -> None:
        self._event_source = event_source
        self._preparer = preparer
        self.day_start_hour = day_start_hour
        self.day_end_hour = day_end_hour
        self.timezone = timezone

    async def list_agenda(
        self,
        user: User,
        date_start: Optional[DateTime] = None,
        date_end: Optional[DateTime] = None,
    ) -> List[CalendarItem]:
        """
        Fetch every calendar source of ``user`` and merge them into one agenda.
        """
        events = await self._event_source.get_user_events(user, date_start, date_end)
        webinars = await self._event_source.get_user_webinars(user, date_start, date_end)
        broadcasts = await self._event_source.get_user_broadcasts(user, date_start, date_end)

        logger.debug(
            "Merging %d events, %d webinars and %d broadcasts for user %s",
            len(events),
            len(webinars),
            len(broadcasts),
            user.id,
        )
        return self._preparer.build_agenda(events, webinars, broadcasts, user)

    async def free_slots(
        self,
        user: User,
        to_user_id: int,
        day: Optional[DateTime] = None,
        duration: int = DEFAULT_BUSY_PADDING_MINUTES,
        now: Optional[DateTime] = None,
    ) -> List[TimeSlot]:
        """
        Compute the slots of ``day`` in which ``user`` can meet ``to_user_id``.

        Raises:
            UserNotFoundError: If the target user does not exist
        """
        to_user = await self._event_source.get_user(to_user_id)
        if to_user is None:
            raise UserNotFoundError(f"User {to_user_id} not found")

        now = now or pendulum.now(self.timezone)
        start_time, end_time = self.booking_window(day or now, now)

        events = await self._event_source.get_open_events_between(user, to_user, start_time, end_time)

        return self._preparer.fill_slot_response(events, start_time, end_time, duration, now=now)

    def booking_window(self, day: DateTime, now: DateTime) -> Tuple[DateTime, DateTime]:
        """
        Return the bookable window of ``day``.

        The window opens at the configured start hour, or at the current full
        hour once that has passed, and closes at the configured end hour.
        """
        start_time = day.set(hour=self.day_start_hour, minute=0, second=0, microsecond=0)
        if start_time <= now:
            local_now = now.in_timezone(day.timezone)
            start_time = day.set(hour=local_now.hour, minute=0, second=0, microsecond=0)

        end_time = day.set(hour=self.day_end_hour, minute=0, second=0, microsecond=0)

        return start_time, end_time
