"""
Event boundary parsing and timezone resolution.
"""

import logging
from datetime import UTC, date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.config import FALLBACK_TIMEZONE
from models.events import CalendarEvent, EventBoundary

logger = logging.getLogger(__name__)


class MalformedEventError(ValueError):
    """Raised when an event's start/end cannot be interpreted."""


def resolve_timezone(event: CalendarEvent, calendar_time_zone: str | None = None) -> str:
    """
    Pick the zone used to localize a timed event.

    Order: the event's own start zone, then the owning calendar's zone,
    then UTC.
    """
    for candidate in (event.start.time_zone, calendar_time_zone):
        if candidate:
            return candidate
    return FALLBACK_TIMEZONE


def get_zone(name: str) -> tzinfo:
    """Load an IANA zone, reporting unknown names as malformed events."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise MalformedEventError(f"Unknown timezone '{name}'") from e


def parse_date(value: str) -> date:
    """Parse an all-day YYYY-MM-DD value."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise MalformedEventError(f"Invalid date '{value}'") from e


def parse_instant(value: str, zone: tzinfo) -> datetime:
    """
    Parse an RFC3339 instant.

    Naive values (no offset) are read as wall time in `zone`.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, TypeError, ValueError) as e:
        raise MalformedEventError(f"Invalid dateTime '{value}'") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def all_day_range(event: CalendarEvent) -> tuple[date, date]:
    """
    Inclusive (first, last) dates of an all-day event.

    The provider's end date is exclusive, so the last day is end - 1.
    Events without a usable end date (missing, unparsable, or end <= start)
    cover only their start date.
    """
    first = parse_date(event.start.date)
    if not event.end.date:
        return first, first
    try:
        last = parse_date(event.end.date) - timedelta(days=1)
    except MalformedEventError as e:
        logger.warning("Event %s has an invalid end date, using start only: %s", event.id, e)
        return first, first
    return first, max(first, last)


def boundary_instant(
    boundary: EventBoundary, calendar_time_zone: str | None = None
) -> datetime:
    """Instant of a timed boundary, honoring its own zone for naive values."""
    if not boundary.date_time:
        raise MalformedEventError("Boundary has no dateTime")
    zone = get_zone(boundary.time_zone or calendar_time_zone or FALLBACK_TIMEZONE)
    return parse_instant(boundary.date_time, zone)


def local_start_date(event: CalendarEvent, calendar_time_zone: str | None = None) -> date:
    """Calendar date a timed event starts on, in its resolved zone."""
    if not event.start.date_time:
        raise MalformedEventError(f"Event {event.id} has neither date nor dateTime")
    zone = get_zone(resolve_timezone(event, calendar_time_zone))
    return parse_instant(event.start.date_time, zone).astimezone(zone).date()


def start_instant(event: CalendarEvent, calendar_time_zone: str | None = None) -> datetime:
    """Sort key: timed events use their instant, all-day events UTC midnight."""
    if event.start.date:
        return datetime.combine(parse_date(event.start.date), datetime.min.time(), tzinfo=UTC)
    if event.start.date_time:
        zone = get_zone(resolve_timezone(event, calendar_time_zone))
        return parse_instant(event.start.date_time, zone)
    raise MalformedEventError(f"Event {event.id} has neither date nor dateTime")


def event_duration_hours(event: CalendarEvent, calendar_time_zone: str | None = None) -> float:
    """
    Duration of a timed event in hours.

    All-day events count as zero; only dateTime pairs carry a duration.

    Raises:
        MalformedEventError: if a boundary is invalid or the end precedes the start
    """
    if event.start.date or not event.start.date_time or not event.end.date_time:
        return 0.0
    start_dt = boundary_instant(event.start, calendar_time_zone)
    end_dt = boundary_instant(event.end, calendar_time_zone)
    if end_dt < start_dt:
        raise MalformedEventError(f"Event {event.id} ends before it starts")
    return (end_dt - start_dt).total_seconds() / 3600
