"""
Generate Google Calendar API payloads (calendar list entries, event items and
paged responses) for tests.
"""

import random
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from faker import Faker

# Initialize Faker with a fixed seed so payloads are reproducible
fake = Faker()
Faker.seed(1296)
random.seed(1296)

UTC = ZoneInfo("UTC")

# Calendar colors as returned by the calendarList endpoint
CALENDAR_COLORS = ["#9fe1e7", "#f83a22", "#16a765", "#ffad46", "#a47ae2"]

MEETING_TITLES = [
    "Standup",
    "Design review",
    "1:1",
    "Sprint planning",
    "Customer call",
    "Focus time",
    "Lunch",
    "Interview",
]


def calendar_item(
    calendar_id: str,
    summary: str | None = None,
    time_zone: str | None = "UTC",
    primary: bool = False,
) -> dict:
    """One calendarList entry."""
    item = {
        "id": calendar_id,
        "summary": summary or fake.company(),
        "backgroundColor": random.choice(CALENDAR_COLORS),
        "foregroundColor": "#000000",
        "selected": True,
        "accessRole": "owner" if primary else "reader",
    }
    if primary:
        item["primary"] = True
    if time_zone:
        item["timeZone"] = time_zone
    return item


def timed_event_item(
    event_id: str | None = None,
    start: datetime | None = None,
    hours: float = 1.0,
    summary: str | None = None,
    time_zone: str | None = None,
) -> dict:
    """Timed event item with RFC3339 start/end."""
    start = start or datetime(2024, 3, 4, 9, 0, tzinfo=UTC)
    end = start + timedelta(hours=hours)
    item = {
        "id": event_id or fake.uuid4().replace("-", ""),
        "summary": summary or random.choice(MEETING_TITLES),
        "start": {"dateTime": start.isoformat()},
        "end": {"dateTime": end.isoformat()},
        "organizer": {"email": fake.email()},
    }
    if time_zone:
        item["start"]["timeZone"] = time_zone
        item["end"]["timeZone"] = time_zone
    return item


def all_day_event_item(
    event_id: str | None = None,
    start: date | None = None,
    days: int = 1,
    summary: str | None = None,
) -> dict:
    """All-day event item; end date is exclusive as in the provider's format."""
    start = start or date(2024, 3, 4)
    return {
        "id": event_id or fake.uuid4().replace("-", ""),
        "summary": summary or fake.catch_phrase(),
        "start": {"date": start.isoformat()},
        "end": {"date": (start + timedelta(days=days)).isoformat()},
    }


def generate_event_items(count: int, prefix: str, week_start: date = date(2024, 3, 4)) -> list[dict]:
    """`count` timed events with ids prefix-0..prefix-(count-1) spread over a week."""
    items = []
    for index in range(count):
        day = week_start + timedelta(days=index % 7)
        start = datetime.combine(day, datetime.min.time(), tzinfo=UTC) + timedelta(
            hours=random.randint(7, 18), minutes=random.choice([0, 15, 30, 45])
        )
        items.append(
            timed_event_item(
                event_id=f"{prefix}-{index}",
                start=start,
                hours=random.choice([0.5, 1.0, 1.5, 2.0]),
            )
        )
    return items


def paged_responses(items: list[dict], page_sizes: list[int], token_prefix: str = "p") -> dict:
    """
    Split items into pages keyed by the pageToken that requests them.

    The first page is keyed by None; page N carries nextPageToken
    f"{token_prefix}{N}" until the last page.
    """
    pages = {}
    offset = 0
    request_token = None
    for page_number, size in enumerate(page_sizes, start=1):
        page = {"items": items[offset:offset + size]}
        offset += size
        if page_number < len(page_sizes):
            page["nextPageToken"] = f"{token_prefix}{page_number}"
        pages[request_token] = page
        request_token = page.get("nextPageToken")
    return pages
