"""Tests for calendar list fetching and paginated event collection."""

import asyncio
from datetime import UTC, date, datetime, timedelta

import httpx
import pytest

from fixtures.generate_events import (
    all_day_event_item,
    calendar_item,
    generate_event_items,
    paged_responses,
    timed_event_item,
)
from models.events import WeekWindow
from services.calendar import (
    CredentialError,
    CredentialExpiredError,
    PaginationLimitError,
    StaticTokenProvider,
    UpstreamUnavailableError,
    collect_events,
    fetch_calendar_events,
    fetch_calendar_list,
    get_aggregated_events,
)

TOKEN = StaticTokenProvider("tok-1")
WEEK = WeekWindow(start=date(2024, 3, 4))


def calendar_list_response(*items, next_page_token=None):
    payload = {"items": list(items)}
    if next_page_token:
        payload["nextPageToken"] = next_page_token
    return httpx.Response(200, json=payload)


def events_handler(pages_by_calendar: dict, requests: list | None = None):
    """Serve calendarList + per-calendar paged events."""
    calendars = [calendar_item(calendar_id) for calendar_id in pages_by_calendar]

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.url.path.endswith("/users/me/calendarList"):
            return calendar_list_response(*calendars)
        for calendar_id, pages in pages_by_calendar.items():
            if request.url.path.endswith(f"/calendars/{calendar_id}/events"):
                return httpx.Response(200, json=pages[request.url.params.get("pageToken")])
        return httpx.Response(404, json={"error": {"message": "Not Found"}})

    return handler


class TestFetchCalendarList:
    async def test_parses_descriptors(self, mock_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer tok-1"
            return calendar_list_response(
                calendar_item("me@example.com", "Me", "America/New_York", primary=True),
                calendar_item("team@example.com", "Team", None),
            )

        calendars = await fetch_calendar_list(TOKEN, mock_client_factory(handler))

        assert [c.id for c in calendars] == ["me@example.com", "team@example.com"]
        assert calendars[0].primary is True
        assert calendars[0].time_zone == "America/New_York"
        assert calendars[1].primary is False
        assert calendars[1].time_zone is None

    async def test_follows_calendar_list_pages(self, mock_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("pageToken") == "next":
                return calendar_list_response(calendar_item("second"))
            return calendar_list_response(calendar_item("first"), next_page_token="next")

        calendars = await fetch_calendar_list(TOKEN, mock_client_factory(handler))
        assert [c.id for c in calendars] == ["first", "second"]

    async def test_401_is_credential_expired(self, mock_client_factory):
        client = mock_client_factory(lambda request: httpx.Response(401, json={}))
        with pytest.raises(CredentialExpiredError):
            await fetch_calendar_list(TOKEN, client)

    async def test_other_failures_are_upstream_errors(self, mock_client_factory):
        client = mock_client_factory(
            lambda request: httpx.Response(503, json={"error": {"message": "Backend Error"}})
        )
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await fetch_calendar_list(TOKEN, client)
        assert exc_info.value.status_code == 503
        assert "Backend Error" in str(exc_info.value)
        assert not isinstance(exc_info.value, CredentialExpiredError)

    async def test_transport_error_is_upstream_error(self, mock_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamUnavailableError):
            await fetch_calendar_list(TOKEN, mock_client_factory(handler))

    async def test_timeout_is_upstream_error(self, mock_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await fetch_calendar_list(TOKEN, mock_client_factory(handler))
        assert "Timed out" in str(exc_info.value)
        assert exc_info.value.status_code is None

    async def test_invalid_json_is_upstream_error(self, mock_client_factory):
        client = mock_client_factory(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(UpstreamUnavailableError):
            await fetch_calendar_list(TOKEN, client)


class TestFetchCalendarEvents:
    async def test_merges_three_pages(self, mock_client_factory):
        items = generate_event_items(510, "cal1")
        pages = paged_responses(items, [250, 250, 10])
        requests: list[httpx.Request] = []
        client = mock_client_factory(events_handler({"cal1": pages}, requests))

        events = await fetch_calendar_events(TOKEN, "cal1", WEEK.time_min, WEEK.time_max, client)

        assert len(events) == 510
        assert len({e.key for e in events}) == 510
        assert all(e.calendar_id == "cal1" for e in events)
        assert [r.url.params.get("pageToken") for r in requests] == [None, "p1", "p2"]

    async def test_request_parameters(self, mock_client_factory):
        requests: list[httpx.Request] = []
        pages = paged_responses([timed_event_item("e1")], [1])
        client = mock_client_factory(events_handler({"cal1": pages}, requests))

        await fetch_calendar_events(TOKEN, "cal1", WEEK.time_min, WEEK.time_max, client)

        params = requests[0].url.params
        assert params["singleEvents"] == "true"
        assert params["orderBy"] == "startTime"
        assert params["maxResults"] == "250"
        assert params["timeMin"] == "2024-03-04T00:00:00Z"
        assert params["timeMax"] == "2024-03-11T00:00:00Z"
        assert "pageToken" not in params

    async def test_calendar_id_is_url_quoted(self, mock_client_factory):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path.decode())
            return httpx.Response(200, json={"items": []})

        await fetch_calendar_events(
            TOKEN, "en.usa#holiday@group.v.calendar.google.com", WEEK.time_min, None,
            mock_client_factory(handler),
        )
        assert "/calendars/en.usa%23holiday%40group.v.calendar.google.com/events" in seen[0]

    async def test_duplicate_ids_in_calendar_kept_once(self, mock_client_factory):
        item = timed_event_item("dup")
        pages = paged_responses([item, item, timed_event_item("other")], [2, 1])
        client = mock_client_factory(events_handler({"cal1": pages}))

        events = await fetch_calendar_events(TOKEN, "cal1", WEEK.time_min, None, client)
        assert [e.id for e in events] == ["dup", "other"]

    async def test_page_ceiling_bounds_token_loops(self, mock_client_factory):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"items": [], "nextPageToken": "again"})

        with pytest.raises(PaginationLimitError):
            await fetch_calendar_events(
                TOKEN, "cal1", WEEK.time_min, None, mock_client_factory(handler), max_pages=5
            )
        assert len(calls) == 5

    async def test_events_keep_raw_boundaries(self, mock_client_factory):
        items = [
            all_day_event_item("holiday", date(2024, 3, 4), days=2),
            timed_event_item(
                "call", datetime(2024, 3, 5, 14, 0, tzinfo=UTC), time_zone="Europe/London"
            ),
        ]
        client = mock_client_factory(events_handler({"cal1": paged_responses(items, [2])}))

        events = {e.id: e for e in await fetch_calendar_events(TOKEN, "cal1", WEEK.time_min, None, client)}

        assert events["holiday"].start.date == "2024-03-04"
        assert events["holiday"].end.date == "2024-03-06"
        assert events["call"].start.date_time == "2024-03-05T14:00:00+00:00"
        assert events["call"].start.time_zone == "Europe/London"
        assert events["call"].organizer_email


class TestAggregatedEvents:
    async def test_merges_all_calendars(self, mock_client_factory):
        pages = {
            "cal1": paged_responses(generate_event_items(3, "a"), [2, 1]),
            "cal2": paged_responses(generate_event_items(2, "b"), [2]),
        }
        client = mock_client_factory(events_handler(pages))

        result = await get_aggregated_events(TOKEN, WEEK, http_client=client)

        assert [c.id for c in result.calendars] == ["cal1", "cal2"]
        assert sorted((e.calendar_id, e.id) for e in result.events) == [
            ("cal1", "a-0"), ("cal1", "a-1"), ("cal1", "a-2"), ("cal2", "b-0"), ("cal2", "b-1"),
        ]

    async def test_same_event_id_in_two_calendars_is_kept_twice(self, mock_client_factory):
        pages = {
            "cal1": paged_responses([timed_event_item("shared")], [1]),
            "cal2": paged_responses([timed_event_item("shared")], [1]),
        }
        result = await get_aggregated_events(TOKEN, WEEK, http_client=mock_client_factory(events_handler(pages)))
        assert {e.key for e in result.events} == {("cal1", "shared"), ("cal2", "shared")}

    async def test_calendars_fetched_concurrently(self, mock_client_factory):
        in_flight = 0
        peak = 0

        async def slow_handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            if request.url.path.endswith("/calendarList"):
                return calendar_list_response(*(calendar_item(f"cal{i}") for i in range(3)))
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return httpx.Response(200, json={"items": []})

        await collect_events(TOKEN, WEEK.time_min, WEEK.time_max, http_client=mock_client_factory(slow_handler))
        assert peak == 3

    async def test_one_failing_calendar_fails_the_aggregate(self, mock_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/calendarList"):
                return calendar_list_response(calendar_item("ok"), calendar_item("broken"))
            if "/calendars/broken/" in request.url.path:
                return httpx.Response(500, json={"error": {"message": "boom"}})
            return httpx.Response(200, json={"items": [timed_event_item("e1")]})

        with pytest.raises(UpstreamUnavailableError):
            await get_aggregated_events(TOKEN, WEEK, http_client=mock_client_factory(handler))

    async def test_failure_cancels_calendars_still_loading(self, mock_client_factory):
        slow_started = asyncio.Event()
        slow_cancelled = []

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/calendarList"):
                return calendar_list_response(calendar_item("slow"), calendar_item("broken"))
            if "/calendars/slow/" in request.url.path:
                slow_started.set()
                try:
                    await asyncio.sleep(30)
                except asyncio.CancelledError:
                    slow_cancelled.append(True)
                    raise
                return httpx.Response(200, json={"items": []})
            await slow_started.wait()
            return httpx.Response(500, json={"error": {"message": "boom"}})

        with pytest.raises(UpstreamUnavailableError):
            await asyncio.wait_for(
                get_aggregated_events(TOKEN, WEEK, http_client=mock_client_factory(handler)),
                timeout=5,
            )
        assert slow_cancelled == [True]

    async def test_401_on_events_surfaces_as_credential_expired(self, mock_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/calendarList"):
                return calendar_list_response(calendar_item("cal1"))
            return httpx.Response(401, json={"error": {"message": "Invalid Credentials"}})

        with pytest.raises(CredentialExpiredError):
            await get_aggregated_events(TOKEN, WEEK, http_client=mock_client_factory(handler))

    async def test_no_calendars_gives_empty_result(self, mock_client_factory):
        client = mock_client_factory(lambda request: calendar_list_response())
        result = await get_aggregated_events(TOKEN, WEEK, http_client=client)
        assert result.events == []
        assert result.calendars == []


class TestStaticTokenProvider:
    async def test_returns_token(self):
        assert await StaticTokenProvider(" abc ").get_token() == "abc"

    async def test_empty_token_is_invalid_not_expired(self):
        with pytest.raises(CredentialError) as exc_info:
            await StaticTokenProvider("").get_token()
        assert not isinstance(exc_info.value, CredentialExpiredError)

    async def test_expired_token(self):
        provider = StaticTokenProvider("abc", expires_at=datetime.now(UTC) - timedelta(minutes=1))
        with pytest.raises(CredentialExpiredError):
            await provider.get_token()
