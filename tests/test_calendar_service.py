"""
Tests for the CalendarService orchestration layer.
"""

import asyncio
from typing import Dict, List

import pendulum
import pytest

from agendamerge.domain.calendar_prepare import CalendarDataPreparer
from agendamerge.domain.exceptions import UserNotFoundError
from agendamerge.domain.models import (
    Broadcast,
    EventType,
    User,
    UserBroadcast,
    UserEvent,
    UserWebinar,
    Webinar,
)
from agendamerge.services.calendar_service import CalendarService

TZ = "Europe/Berlin"

ME = User(id=1, name="me")
PEER = User(id=2, name="peer")


def at(value: str):
    return pendulum.parse(value, tz=TZ)


class StubEventSource:
    """Minimal stub matching EventSourceProtocol."""

    def __init__(self, users=None, events=None, webinars=None, broadcasts=None, open_events=None):
        self._users: Dict[int, User] = {user.id: user for user in (users or [])}
        self._events = events or []
        self._webinars = webinars or []
        self._broadcasts = broadcasts or []
        self._open_events = open_events or []
        self.calls: List[Dict[str, object]] = []

    async def get_user(self, user_id):
        return self._users.get(user_id)

    async def get_user_events(self, user, date_start, date_end):
        self.calls.append({"source": "events", "user": user.id, "start": date_start, "end": date_end})
        return self._events

    async def get_user_webinars(self, user, date_start, date_end):
        self.calls.append({"source": "webinars", "user": user.id, "start": date_start, "end": date_end})
        return self._webinars

    async def get_user_broadcasts(self, user, date_start, date_end):
        self.calls.append({"source": "broadcasts", "user": user.id, "start": date_start, "end": date_end})
        return self._broadcasts

    async def get_open_events_between(self, user, to_user, start_time, end_time):
        self.calls.append(
            {
                "source": "open",
                "users": (user.id, to_user.id),
                "start": start_time.to_datetime_string(),
                "end": end_time.to_datetime_string(),
            }
        )
        return self._open_events


def _build_service(source: StubEventSource) -> CalendarService:
    return CalendarService(event_source=source, preparer=CalendarDataPreparer(), timezone=TZ)


def test_list_agenda_merges_all_sources():
    """Agenda contains every source, sorted, with clashing webinars removed."""
    meeting = UserEvent(
        id=1,
        title="Coffee",
        start_at=at("2024-11-25 10:30"),
        end_at=at("2024-11-25 11:30"),
        owner=ME,
    )
    webinar = Webinar(id=2, title="Webinar", date=at("2024-11-25 10:00"), date_close=at("2024-11-25 11:00"))
    broadcast = Broadcast(id=3, title="Show", date=at("2024-11-25 12:00"), date_close=at("2024-11-25 13:00"))
    source = StubEventSource(
        events=[meeting],
        webinars=[UserWebinar(webinar=webinar)],
        broadcasts=[UserBroadcast(broadcast=broadcast)],
    )
    service = _build_service(source)

    agenda = asyncio.run(service.list_agenda(ME))

    assert [(item.type, item.id) for item in agenda] == [
        (EventType.USER_EVENT, 1),
        (EventType.BROADCAST, 3),
    ]
    assert agenda[0].is_owner
    assert [call["source"] for call in source.calls] == ["events", "webinars", "broadcasts"]


def test_list_agenda_passes_period():
    source = StubEventSource()
    service = _build_service(source)
    start = at("2024-11-25 00:00")
    end = at("2024-11-29 23:59")

    agenda = asyncio.run(service.list_agenda(ME, start, end))

    assert agenda == []
    assert all(call["start"] == start and call["end"] == end for call in source.calls)


class TestBookingWindow:
    """Tests for the bookable window of a day."""

    def setup_method(self):
        self.service = _build_service(StubEventSource())

    def test_future_day_uses_configured_hours(self):
        start, end = self.service.booking_window(at("2024-11-25"), now=at("2024-11-24 12:00"))

        assert start == at("2024-11-25 08:00")
        assert end == at("2024-11-25 20:00")

    def test_started_day_opens_at_current_hour(self):
        start, end = self.service.booking_window(at("2024-11-25"), now=at("2024-11-25 10:37"))

        assert start == at("2024-11-25 10:00")
        assert end == at("2024-11-25 20:00")

    def test_opening_instant_counts_as_started(self):
        start, _ = self.service.booking_window(at("2024-11-25"), now=at("2024-11-25 08:00"))

        assert start == at("2024-11-25 08:00")

    def test_custom_hours(self):
        service = CalendarService(
            event_source=StubEventSource(),
            preparer=CalendarDataPreparer(),
            day_start_hour=9,
            day_end_hour=17,
        )

        start, end = service.booking_window(at("2024-11-25"), now=at("2024-11-20 12:00"))

        assert start.hour == 9
        assert end.hour == 17


def test_free_slots_marks_busy_ticks():
    """Slots start after now and meetings of both users block them."""
    meeting = UserEvent(
        id=1,
        title="Busy",
        start_at=at("2024-11-25 12:00"),
        end_at=at("2024-11-25 13:00"),
        owner=PEER,
    )
    source = StubEventSource(users=[ME, PEER], open_events=[meeting])
    service = _build_service(source)

    slots = asyncio.run(
        service.free_slots(ME, PEER.id, day=at("2024-11-25"), duration=15, now=at("2024-11-25 10:37"))
    )

    assert source.calls == [
        {
            "source": "open",
            "users": (1, 2),
            "start": "2024-11-25 10:00:00",
            "end": "2024-11-25 20:00:00",
        }
    ]
    assert slots[0].start_at == at("2024-11-25 10:45")
    assert slots[-1].start_at == at("2024-11-25 19:45")

    busy = [slot.start_at.format("HH:mm") for slot in slots if not slot.is_available]
    assert busy == ["12:00", "12:15", "12:30", "12:45"]


def test_free_slots_defaults_to_today():
    source = StubEventSource(users=[ME, PEER])
    service = _build_service(source)
    now = at("2024-11-25 07:10")

    slots = asyncio.run(service.free_slots(ME, PEER.id, now=now))

    assert len(slots) == 48
    assert slots[0].start_at == at("2024-11-25 08:00")


def test_free_slots_unknown_user():
    service = _build_service(StubEventSource(users=[ME]))

    with pytest.raises(UserNotFoundError, match="User 99 not found"):
        asyncio.run(service.free_slots(ME, 99, now=at("2024-11-25 07:10")))
