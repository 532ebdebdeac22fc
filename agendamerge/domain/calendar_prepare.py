"""
Core logic for merging calendar sources and computing booking slots.

Pure domain logic without external dependencies (no API calls, no database,
no I/O). Callers hand in already fetched records and get plain response
objects back.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

import pendulum
from pendulum import DateTime

from .exceptions import InvalidTickError
from .models import (
    CalendarItem,
    EventType,
    ModerationStatus,
    Ownable,
    TimeSlot,
    User,
    UserBroadcast,
    UserEvent,
    UserWebinar,
)

logger = logging.getLogger(__name__)


DEFAULT_TICK_MINUTES = 15
DEFAULT_BUSY_PADDING_MINUTES = 15


def is_owner(obj: object, user: User) -> bool:
    """Return True if ``obj`` is an ownable event owned by ``user``."""
    if isinstance(obj, Ownable) and obj.owner is not None:
        return obj.owner.id == user.id
    return False


def get_accepted_status(event: UserEvent) -> Optional[bool]:
    """
    Resolve whether the invitees of an event have answered.

    Returns None without participants, True as soon as one invitee approved,
    False if no one approved but someone declined, otherwise None. The
    owner's own participant record is ignored.
    """
    if not event.participants:
        return None

    status: Optional[bool] = None
    for participant in event.participants:
        if is_owner(event, participant.user):
            continue

        if participant.status == ModerationStatus.APPROVED:
            return True
        if participant.status == ModerationStatus.DENIED:
            status = False

    return status


def crosses_by_date(item: CalendarItem, other: CalendarItem) -> bool:
    """
    Check whether the start or the end of ``item`` lies inside ``other``.

    Bounds are inclusive. The check only looks from ``item`` into ``other``:
    an ``other`` lying strictly inside ``item`` does not count.
    """
    return (
        other.start_at <= item.start_at <= other.end_at
        or other.start_at <= item.end_at <= other.end_at
    )


class CalendarDataPreparer:
    """
    Builds agenda and booking responses from raw calendar records.

    Slots:
    1. Lay a fixed grid of ticks over the requested window
    2. Drop ticks already in the past
    3. Mark ticks covered by a busy interval (padded backwards) as unavailable

    Agenda:
    1. Normalize user events, webinars and broadcasts into CalendarItems
    2. Sort them by start
    3. Drop webinars/broadcasts clashing with a neighbouring user event
    """

    def __init__(self, tick_minutes: int = DEFAULT_TICK_MINUTES):
        if tick_minutes <= 0:
            raise InvalidTickError(f"Tick must be a positive number of minutes, got {tick_minutes}")
        self.tick_minutes = tick_minutes
        self._tick = pendulum.duration(minutes=tick_minutes)

    def fill_slot_response(
        self,
        busy_intervals: Iterable,
        start_time: DateTime,
        end_time: DateTime,
        duration: int = DEFAULT_BUSY_PADDING_MINUTES,
        now: Optional[DateTime] = None
    ) -> List[TimeSlot]:
        """
        Compute free/busy slots for a booking window.

        Args:
            busy_intervals: Objects exposing ``start_at`` and ``end_at``
            start_time: Start of the window, anchors the tick grid
            end_time: End of the window (exclusive)
            duration: Minutes blocked before each busy interval starts
            now: Evaluation instant, defaults to the current time

        Returns:
            TimeSlot objects in chronological order
        """
        now_ts = int((now or pendulum.now()).timestamp())

        slots: Dict[int, TimeSlot] = {}
        for tick in self._ticks(start_time, end_time):
            if int(tick.timestamp()) < now_ts:
                continue
            slots[int(tick.timestamp())] = TimeSlot(start_at=tick, is_available=True)

        padding = pendulum.duration(minutes=duration)
        for interval in busy_intervals:
            busy_start = interval.start_at - padding
            busy_start_ts = int(busy_start.timestamp())
            busy_end_ts = int(interval.end_at.timestamp())

            for tick in self._ticks(busy_start, interval.end_at):
                key = int(tick.timestamp())
                if key == busy_start_ts or key == busy_end_ts:
                    continue
                if key in slots:
                    slots[key] = TimeSlot(start_at=tick, is_available=False)

        logger.debug(
            "Built %d slots between %s and %s (%d unavailable)",
            len(slots),
            start_time,
            end_time,
            sum(1 for slot in slots.values() if not slot.is_available),
        )
        return list(slots.values())

    def prepare_event_list(self, events: Iterable[UserEvent], user: User) -> List[CalendarItem]:
        """Normalize user events as seen by ``user``."""
        return [
            CalendarItem(
                id=event.id,
                title=event.title,
                is_owner=is_owner(event, user),
                type=EventType.USER_EVENT,
                user_event_type=event.user_event_type,
                status=get_accepted_status(event),
                description=event.description,
                start_at=event.start_at,
                end_at=event.end_at,
            )
            for event in events
        ]

    def prepare_webinar_list(self, user_webinars: Iterable[UserWebinar]) -> List[CalendarItem]:
        """Normalize webinar attendances. Webinars are always accepted and never owned."""
        return [
            CalendarItem(
                id=record.webinar.id,
                title=record.webinar.title,
                is_owner=False,
                type=EventType.WEBINAR,
                user_event_type=None,
                status=True,
                description=record.webinar.description,
                start_at=record.webinar.date,
                end_at=record.webinar.date_close,
            )
            for record in user_webinars
        ]

    def prepare_broadcast_list(self, user_broadcasts: Iterable[UserBroadcast]) -> List[CalendarItem]:
        """Normalize broadcast attendances. Broadcasts are always accepted and never owned."""
        return [
            CalendarItem(
                id=record.broadcast.id,
                title=record.broadcast.title,
                is_owner=False,
                type=EventType.BROADCAST,
                user_event_type=None,
                status=True,
                description=record.broadcast.short_description,
                start_at=record.broadcast.date,
                end_at=record.broadcast.date_close,
            )
            for record in user_broadcasts
        ]

    @staticmethod
    def sort_items_by_start_at(items: Iterable[CalendarItem]) -> List[CalendarItem]:
        """Sort items by start time. Equal starts keep their input order."""
        return sorted(items, key=lambda item: item.start_at)

    @staticmethod
    def remove_overlap_events(items: Sequence[CalendarItem]) -> List[CalendarItem]:
        """
        Drop webinars/broadcasts clashing with an adjacent user event.

        Only the direct neighbours of a user event are examined, against the
        original positions of ``items``. A neighbour removed earlier is not
        looked at again. User events are never removed.
        """
        removed: Set[int] = set()

        for index, item in enumerate(items):
            if item.type is not EventType.USER_EVENT:
                continue

            for neighbour in (index - 1, index + 1):
                if neighbour < 0 or neighbour >= len(items) or neighbour in removed:
                    continue
                candidate = items[neighbour]
                if candidate.type is EventType.USER_EVENT:
                    continue
                if crosses_by_date(item, candidate):
                    removed.add(neighbour)

        if removed:
            logger.debug("Removed %d items overlapping user events", len(removed))

        return [item for index, item in enumerate(items) if index not in removed]

    def build_agenda(
        self,
        events: Iterable[UserEvent],
        user_webinars: Iterable[UserWebinar],
        user_broadcasts: Iterable[UserBroadcast],
        user: User
    ) -> List[CalendarItem]:
        """
        Merge all sources into one sorted agenda without conflicting entries.
        """
        items = self.prepare_event_list(events, user)
        items.extend(self.prepare_webinar_list(user_webinars))
        items.extend(self.prepare_broadcast_list(user_broadcasts))

        return self.remove_overlap_events(self.sort_items_by_start_at(items))

    def _ticks(self, start: DateTime, end: DateTime) -> Iterator[DateTime]:
        """Yield grid ticks from ``start`` (inclusive) to ``end`` (exclusive)."""
        current = start
        while current < end:
            yield current
            current = current + self._tick
