"""
Calendar discovery and event fetching from the Google Calendar API.

Events for every calendar the account can see are fetched concurrently (one
task per calendar); pages within a calendar are walked sequentially since
each request needs the previous page's continuation token.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from core.config import EVENTS_PAGE_SIZE, MAX_PAGES_PER_CALENDAR
from core.google_client import get_http_client
from models.events import AggregatedEvents, CalendarDescriptor, CalendarEvent, WeekWindow

logger = logging.getLogger(__name__)


# =============================================================================
# ERRORS
# =============================================================================


class CalendarFetchError(RuntimeError):
    """Base error for calendar list / event fetches."""


class CredentialError(CalendarFetchError):
    """Raised when no usable access token is available."""


class CredentialExpiredError(CredentialError):
    """Raised on a 401 from the provider; the user must re-authenticate."""


class UpstreamUnavailableError(CalendarFetchError):
    """Raised on non-401 failures; safe to retry."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(message)
        else:
            super().__init__(f"Google Calendar API request failed ({status_code}): {message}")


class PaginationLimitError(UpstreamUnavailableError):
    """Raised when a calendar keeps returning continuation tokens."""

    def __init__(self, label: str, max_pages: int):
        super().__init__(f"{label} returned more than {max_pages} pages")
        self.max_pages = max_pages


# =============================================================================
# CREDENTIALS
# =============================================================================


class TokenProvider(Protocol):
    """Supplies bearer tokens for the calendar API."""

    async def get_token(self) -> str: ...


class StaticTokenProvider:
    """Token handed to us by the caller (header, cookie or environment)."""

    def __init__(self, token: str, expires_at: datetime | None = None):
        self.token = token.strip() if token else ""
        self.expires_at = expires_at

    async def get_token(self) -> str:
        if not self.token:
            raise CredentialError("No access token provided")
        if self.expires_at is not None and datetime.now(UTC) >= self.expires_at:
            raise CredentialExpiredError("Access token expired")
        return self.token


# =============================================================================
# HTTP HELPERS
# =============================================================================


def _safe_error_message(response: httpx.Response) -> str:
    """Pull the provider's error message out of a failed response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
    return response.reason_phrase or "Unknown error"


async def _get_json(
    client: httpx.AsyncClient,
    token_provider: TokenProvider,
    path: str,
    params: dict[str, Any],
    label: str,
) -> dict[str, Any]:
    token = await token_provider.get_token()
    try:
        response = await client.get(
            path, params=params, headers={"Authorization": f"Bearer {token}"}
        )
    except httpx.TimeoutException as e:
        raise UpstreamUnavailableError(f"Timed out fetching {label}") from e
    except httpx.TransportError as e:
        raise UpstreamUnavailableError(f"Network error fetching {label}: {e}") from e

    if response.status_code == 401:
        raise CredentialExpiredError(f"Token expired while fetching {label}")
    if response.status_code < 200 or response.status_code >= 300:
        raise UpstreamUnavailableError(_safe_error_message(response), response.status_code)

    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamUnavailableError(f"{label} returned invalid JSON") from e
    if not isinstance(payload, dict):
        raise UpstreamUnavailableError(f"{label} returned an unexpected payload shape")
    return payload


async def _iter_pages(
    client: httpx.AsyncClient,
    token_provider: TokenProvider,
    path: str,
    params: dict[str, Any],
    label: str,
    max_pages: int,
) -> AsyncIterator[list[dict[str, Any]]]:
    """Yield the items of each page until no nextPageToken is returned."""
    page_token: str | None = None
    for _ in range(max_pages):
        page_params = dict(params)
        if page_token:
            page_params["pageToken"] = page_token

        payload = await _get_json(client, token_provider, path, page_params, label)
        items = payload.get("items")
        yield [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []

        page_token = payload.get("nextPageToken")
        if not page_token:
            return

    raise PaginationLimitError(label, max_pages)


# =============================================================================
# CALENDAR LIST
# =============================================================================


async def fetch_calendar_list(
    token_provider: TokenProvider,
    http_client: httpx.AsyncClient | None = None,
    max_pages: int = MAX_PAGES_PER_CALENDAR,
) -> list[CalendarDescriptor]:
    """Fetch every calendar the account has access to."""
    client = http_client or get_http_client()
    calendars: list[CalendarDescriptor] = []

    async for items in _iter_pages(
        client, token_provider, "/users/me/calendarList", {}, "calendar list", max_pages
    ):
        for item in items:
            if not item.get("id"):
                logger.warning("Skipping calendar list entry without id")
                continue
            calendars.append(CalendarDescriptor.from_api(item))

    logger.info("Found %d calendars", len(calendars))
    return calendars


# =============================================================================
# EVENTS
# =============================================================================


async def fetch_calendar_events(
    token_provider: TokenProvider,
    calendar_id: str,
    time_min: str,
    time_max: str | None = None,
    http_client: httpx.AsyncClient | None = None,
    page_size: int = EVENTS_PAGE_SIZE,
    max_pages: int = MAX_PAGES_PER_CALENDAR,
) -> list[CalendarEvent]:
    """
    Fetch all events of one calendar within [time_min, time_max).

    Walks every page and stamps each event with `calendar_id`.
    """
    client = http_client or get_http_client()
    params: dict[str, Any] = {
        "maxResults": page_size,
        "orderBy": "startTime",
        "singleEvents": True,
        "timeMin": time_min,
        "timeZone": "UTC",
    }
    if time_max:
        params["timeMax"] = time_max

    events: list[CalendarEvent] = []
    seen: set[str] = set()
    path = f"/calendars/{quote(calendar_id, safe='')}/events"

    async for items in _iter_pages(
        client, token_provider, path, params, f"events for calendar {calendar_id}", max_pages
    ):
        for item in items:
            event_id = item.get("id")
            if not event_id:
                logger.warning("Skipping event without id in calendar %s", calendar_id)
                continue
            if event_id in seen:
                logger.debug("Duplicate event %s in calendar %s", event_id, calendar_id)
                continue
            seen.add(event_id)
            events.append(CalendarEvent.from_api(item, calendar_id))

    logger.debug("Fetched %d events from calendar %s", len(events), calendar_id)
    return events


async def collect_events(
    token_provider: TokenProvider,
    time_min: str,
    time_max: str | None = None,
    http_client: httpx.AsyncClient | None = None,
    page_size: int = EVENTS_PAGE_SIZE,
    max_pages: int = MAX_PAGES_PER_CALENDAR,
) -> AggregatedEvents:
    """
    Fetch the calendar list, then every calendar's events concurrently.

    Fail-fast: the first calendar that fails cancels the remaining fetches
    and its error propagates to the caller.
    """
    client = http_client or get_http_client()
    calendars = await fetch_calendar_list(token_provider, client, max_pages)

    tasks = [
        asyncio.create_task(
            fetch_calendar_events(
                token_provider, calendar.id, time_min, time_max, client, page_size, max_pages
            )
        )
        for calendar in calendars
    ]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    all_events = [event for calendar_events in results for event in calendar_events]
    logger.info(
        "Collected %d events from %d calendars (%s to %s)",
        len(all_events),
        len(calendars),
        time_min,
        time_max,
    )
    return AggregatedEvents(events=all_events, calendars=calendars)


async def get_aggregated_events(
    token_provider: TokenProvider,
    window: WeekWindow,
    http_client: httpx.AsyncClient | None = None,
    page_size: int = EVENTS_PAGE_SIZE,
    max_pages: int = MAX_PAGES_PER_CALENDAR,
) -> AggregatedEvents:
    """Fetch every calendar's events for a week window."""
    return await collect_events(
        token_provider,
        window.time_min,
        window.time_max,
        http_client=http_client,
        page_size=page_size,
        max_pages=max_pages,
    )
