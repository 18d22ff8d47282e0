"""
Data models for calendars, events, categories and week windows.

Events and calendars are immutable value records built fresh on every fetch.
Category assignment is kept outside the events (see CategorizationEngine).
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, NamedTuple


class EventKey(NamedTuple):
    """Global event identity: event ids are only unique within one calendar."""

    calendar_id: str
    event_id: str


@dataclass(frozen=True)
class CalendarDescriptor:
    """One calendar from the calendar-list response."""

    id: str
    summary: str = ""
    background_color: str | None = None
    foreground_color: str | None = None
    selected: bool = False
    primary: bool = False
    access_role: str | None = None
    time_zone: str | None = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "CalendarDescriptor":
        return cls(
            id=item["id"],
            summary=item.get("summary") or "",
            background_color=item.get("backgroundColor"),
            foreground_color=item.get("foregroundColor"),
            selected=bool(item.get("selected", False)),
            primary=bool(item.get("primary", False)),
            access_role=item.get("accessRole"),
            time_zone=item.get("timeZone"),
        )


@dataclass(frozen=True)
class EventBoundary:
    """
    Start or end of an event, as sent by the provider.

    Exactly one of `date` (all-day, YYYY-MM-DD) or `date_time` (RFC3339
    instant) is expected; values are left unparsed so that a malformed
    boundary only affects classification of its own event.
    """

    date: str | None = None
    date_time: str | None = None
    time_zone: str | None = None

    @property
    def is_all_day(self) -> bool:
        return bool(self.date)

    @classmethod
    def from_api(cls, payload: Any) -> "EventBoundary":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            date=payload.get("date"),
            date_time=payload.get("dateTime"),
            time_zone=payload.get("timeZone"),
        )


@dataclass(frozen=True)
class CalendarEvent:
    """Parsed calendar event stamped with its source calendar."""

    id: str
    calendar_id: str
    summary: str = ""
    start: EventBoundary = field(default_factory=EventBoundary)
    end: EventBoundary = field(default_factory=EventBoundary)
    color_id: str | None = None
    organizer_email: str | None = None

    @property
    def key(self) -> EventKey:
        return EventKey(self.calendar_id, self.id)

    @property
    def is_all_day(self) -> bool:
        return self.start.is_all_day

    @classmethod
    def from_api(cls, item: dict[str, Any], calendar_id: str) -> "CalendarEvent":
        organizer = item.get("organizer")
        return cls(
            id=str(item["id"]),
            calendar_id=calendar_id,
            summary=item.get("summary") or "",
            start=EventBoundary.from_api(item.get("start")),
            end=EventBoundary.from_api(item.get("end")),
            color_id=item.get("colorId"),
            organizer_email=organizer.get("email") if isinstance(organizer, dict) else None,
        )


@dataclass(frozen=True)
class Category:
    """User-defined category. Order is the position in the category list."""

    id: str
    name: str
    color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.color is not None:
            data["color"] = self.color
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        return cls(id=str(data["id"]), name=str(data.get("name", "")), color=data.get("color"))


@dataclass(frozen=True)
class CategorySummary:
    """Per-category audit totals."""

    category: Category
    event_count: int = 0
    total_hours: float = 0.0


@dataclass(frozen=True)
class WeekWindow:
    """A Monday-aligned 7 day span; `end` is exclusive."""

    start: date

    @property
    def end(self) -> date:
        return self.start + timedelta(days=7)

    @property
    def days(self) -> list[date]:
        return [self.start + timedelta(days=offset) for offset in range(7)]

    @property
    def time_min(self) -> str:
        return f"{self.start.isoformat()}T00:00:00Z"

    @property
    def time_max(self) -> str:
        return f"{self.end.isoformat()}T00:00:00Z"

    def __contains__(self, day: date) -> bool:
        return self.start <= day < self.end


@dataclass
class AggregatedEvents:
    """Result of fetching every calendar for a time window."""

    events: list[CalendarEvent]
    calendars: list[CalendarDescriptor]
