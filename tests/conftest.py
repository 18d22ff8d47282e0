"""
Pytest configuration and shared fixtures.
"""

import sys
from collections.abc import Callable
from datetime import date
from pathlib import Path

import httpx
import pytest

# Add src (and tests, for fixtures/) to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from core.database import InMemoryKeyValueStore
from models.events import CalendarDescriptor, CalendarEvent, EventBoundary, WeekWindow
from services.categories import AssignmentStore, CategoryStore


class FailingKeyValueStore(InMemoryKeyValueStore):
    """Reads work, writes raise (simulates a full disk / locked database)."""

    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def week():
    """Week of Monday 2024-03-04."""
    return WeekWindow(start=date(2024, 3, 4))


@pytest.fixture
def calendars():
    return [
        CalendarDescriptor(
            id="calA",
            summary="Work",
            background_color="#16a765",
            foreground_color="#000000",
            selected=True,
            primary=True,
            access_role="owner",
            time_zone="America/New_York",
        ),
        CalendarDescriptor(
            id="calB",
            summary="Personal",
            background_color="#f83a22",
            foreground_color="#ffffff",
            selected=True,
            access_role="reader",
            time_zone="UTC",
        ),
    ]


def make_timed(
    event_id: str,
    start: str,
    end: str | None = None,
    calendar_id: str = "calA",
    summary: str = "Meeting",
    time_zone: str | None = None,
) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        calendar_id=calendar_id,
        summary=summary,
        start=EventBoundary(date_time=start, time_zone=time_zone),
        end=EventBoundary(date_time=end or start, time_zone=time_zone),
    )


def make_all_day(
    event_id: str,
    start: str,
    end: str | None = None,
    calendar_id: str = "calA",
    summary: str = "Offsite",
) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        calendar_id=calendar_id,
        summary=summary,
        start=EventBoundary(date=start),
        end=EventBoundary(date=end),
    )


@pytest.fixture
def timed_event() -> Callable[..., CalendarEvent]:
    return make_timed


@pytest.fixture
def all_day_event() -> Callable[..., CalendarEvent]:
    return make_all_day


@pytest.fixture
def storage():
    return InMemoryKeyValueStore()


@pytest.fixture
def failing_storage():
    return FailingKeyValueStore()


@pytest.fixture
def category_store(storage):
    return CategoryStore(storage)


@pytest.fixture
def assignment_store(storage):
    return AssignmentStore(storage)


@pytest.fixture
def mock_client_factory():
    """Build an httpx.AsyncClient whose requests go to `handler`."""

    def factory(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url="https://calendar.test/calendar/v3",
        )
        return client

    return factory
