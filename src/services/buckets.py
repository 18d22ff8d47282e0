"""
Day bucketing of events within a week window.

An all-day event covers [start.date, end.date - 1]. A timed event belongs to
the local date of its start instant, using the event's zone, else its
calendar's zone, else UTC. Events that cannot be interpreted are logged and
left out of every bucket.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date

from core.config import ALL_DAY_LABEL, DEFAULT_EVENT_COLOR, DEFAULT_EVENT_TEXT_COLOR
from core.validation import (
    MalformedEventError,
    all_day_range,
    get_zone,
    local_start_date,
    parse_instant,
    resolve_timezone,
    start_instant,
)
from models.events import CalendarDescriptor, CalendarEvent, WeekWindow

logger = logging.getLogger(__name__)

CalendarLookup = Mapping[str, CalendarDescriptor]


def calendar_lookup(calendars: Iterable[CalendarDescriptor]) -> dict[str, CalendarDescriptor]:
    """Index calendars by id."""
    return {calendar.id: calendar for calendar in calendars}


def _calendar_zone(event: CalendarEvent, calendars: CalendarLookup) -> str | None:
    calendar = calendars.get(event.calendar_id)
    return calendar.time_zone if calendar else None


def event_occurs_on(event: CalendarEvent, day: date, calendar_time_zone: str | None = None) -> bool:
    """
    Check whether `event` belongs in the bucket for `day`.

    Raises:
        MalformedEventError: if the start is neither a valid date nor instant
    """
    if event.start.date:
        first, last = all_day_range(event)
        return first <= day <= last
    return local_start_date(event, calendar_time_zone) == day


def get_events_for_day(
    day: date, events: Iterable[CalendarEvent], calendars: CalendarLookup
) -> list[CalendarEvent]:
    """Events occurring on `day`, sorted by start."""
    matches = []
    for event in events:
        try:
            if event_occurs_on(event, day, _calendar_zone(event, calendars)):
                matches.append(event)
        except MalformedEventError as e:
            logger.warning("Skipping event %s (%s): %s", event.id, event.calendar_id, e)
    return sort_events_by_time(matches, calendars)


def sort_events_by_time(
    events: Iterable[CalendarEvent], calendars: CalendarLookup | None = None
) -> list[CalendarEvent]:
    """
    Sort ascending by start instant (stable).

    All-day events sort at UTC midnight of their start date. Malformed events
    sort last.
    """
    calendars = calendars or {}
    keyed = []
    for event in events:
        try:
            keyed.append((0, start_instant(event, _calendar_zone(event, calendars)), event))
        except MalformedEventError:
            keyed.append((1, None, event))

    well_formed = sorted((item for item in keyed if item[0] == 0), key=lambda item: item[1])
    malformed = [item for item in keyed if item[0] == 1]
    return [event for _, _, event in well_formed + malformed]


def get_day_buckets(
    window: WeekWindow,
    events: Iterable[CalendarEvent],
    calendars: Iterable[CalendarDescriptor] | CalendarLookup,
) -> list[list[CalendarEvent]]:
    """Seven lists of events, one per day of the window, each sorted by start."""
    events = list(events)
    lookup = calendars if isinstance(calendars, Mapping) else calendar_lookup(calendars)
    return [get_events_for_day(day, events, lookup) for day in window.days]


# =============================================================================
# DISPLAY HELPERS
# =============================================================================


def format_event_time(event: CalendarEvent, calendar_time_zone: str | None = None) -> str:
    """'All day' for all-day events, otherwise the local start time ('9:05 AM')."""
    if event.start.date:
        return ALL_DAY_LABEL
    if not event.start.date_time:
        return ""
    try:
        zone = get_zone(resolve_timezone(event, calendar_time_zone))
        local = parse_instant(event.start.date_time, zone).astimezone(zone)
    except MalformedEventError:
        return ""
    return local.strftime("%I:%M %p").lstrip("0")


def get_event_colors(event: CalendarEvent, calendars: CalendarLookup) -> tuple[str, str]:
    """(background, text) colors, taken from the owning calendar."""
    calendar = calendars.get(event.calendar_id)
    background = calendar.background_color if calendar and calendar.background_color else None
    foreground = calendar.foreground_color if calendar and calendar.foreground_color else None
    return background or DEFAULT_EVENT_COLOR, foreground or DEFAULT_EVENT_TEXT_COLOR
