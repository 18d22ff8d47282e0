"""Calendar event, day bucket, summary and assignment endpoints."""

import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from api.dependencies import (
    get_assignment_store,
    get_calendar_client,
    get_category_store,
    get_token_provider,
)
from api.logging import RequestLog, log_request
from api.models.responses import (
    AggregatedEventsResponse,
    AssignmentRequest,
    AssignmentResponse,
    CalendarResponse,
    CategorySummaryResponse,
    DayBucketResponse,
    DayEventResponse,
    ErrorCodes,
    EventResponse,
    WeekDaysResponse,
    WeekSummaryResponse,
)
from models.events import AggregatedEvents, EventKey, WeekWindow
from services.buckets import format_event_time, get_event_colors
from services.calendar import (
    CredentialError,
    TokenProvider,
    UpstreamUnavailableError,
    collect_events,
    get_aggregated_events,
)
from services.categories import (
    AssignmentStore,
    CategoryNotFoundError,
    CategoryStore,
    PersistenceError,
)
from services.categorization import CategorizationEngine
from services.reports import format_week_title
from services.weeks import parse_week_anchor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def parse_week(anchor: str) -> WeekWindow:
    """Parse the week anchor path segment (YYYY-MM-DD)."""
    try:
        return parse_week_anchor(anchor)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid week anchor format",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": ["Expected format: YYYY-MM-DD"],
            },
        )


async def fetch_logged(
    request: Request,
    endpoint: str,
    fetch: Callable[[], Awaitable[AggregatedEvents]],
    week_start: str | None = None,
) -> AggregatedEvents:
    """
    Run an aggregate fetch, mapping upstream failures to HTTP errors and
    recording the request in the api_requests table.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint=endpoint,
        method=request.method,
        client_ip=get_client_ip(request),
        week_start=week_start,
    )

    try:
        result = await fetch()
        request_log.status_code = 200
        request_log.calendars_fetched = len(result.calendars)
        request_log.events_fetched = len(result.events)
        return result

    except CredentialError as e:
        # Expired/invalid credentials: the client must re-authenticate
        request_log.status_code = 401
        request_log.error_code = ErrorCodes.CREDENTIAL_EXPIRED
        request_log.error_message = str(e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Token expired",
                "code": ErrorCodes.CREDENTIAL_EXPIRED,
                "details": [str(e)],
            },
        )

    except UpstreamUnavailableError as e:
        request_log.status_code = 502
        request_log.error_code = ErrorCodes.UPSTREAM_UNAVAILABLE
        request_log.error_message = str(e)
        if e.status_code is not None:
            request_log.details.append(("upstream_status", str(e.status_code)))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Failed to fetch calendar events",
                "code": ErrorCodes.UPSTREAM_UNAVAILABLE,
                "details": [str(e)],
            },
        )

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        try:
            log_request(request_log)
        except Exception as e:
            # Don't fail the request if logging fails
            logger.warning("Could not record request log: %s", e)


def build_engine(
    result: AggregatedEvents,
    category_store: CategoryStore,
    assignment_store: AssignmentStore,
    hidden: list[str] | None = None,
) -> CategorizationEngine:
    engine = CategorizationEngine(result.events, result.calendars, category_store, assignment_store)
    for calendar_id in hidden or []:
        engine.set_calendar_visibility(calendar_id, False)
    return engine


def aggregated_response(
    result: AggregatedEvents, engine: CategorizationEngine, window: WeekWindow | None = None
) -> AggregatedEventsResponse:
    return AggregatedEventsResponse(
        events=[EventResponse.from_event(e, engine.category_for(e)) for e in result.events],
        calendars=[CalendarResponse.from_calendar(c) for c in result.calendars],
        week_start=window.start.isoformat() if window else None,
        week_end=window.end.isoformat() if window else None,
    )


def summaries_response(engine: CategorizationEngine) -> list[CategorySummaryResponse]:
    return [CategorySummaryResponse.from_summary(s) for s in engine.summaries()]


@router.get("/calendar/events", response_model=AggregatedEventsResponse)
async def calendar_events(
    request: Request,
    time_min: Annotated[str | None, Query(alias="timeMin")] = None,
    time_max: Annotated[str | None, Query(alias="timeMax")] = None,
    token_provider: TokenProvider = Depends(get_token_provider),
    client: httpx.AsyncClient = Depends(get_calendar_client),
    category_store: CategoryStore = Depends(get_category_store),
    assignment_store: AssignmentStore = Depends(get_assignment_store),
):
    """All events of every calendar between timeMin (default: now) and timeMax."""
    time_min = time_min or datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    result = await fetch_logged(
        request,
        "/v1/calendar/events",
        lambda: collect_events(token_provider, time_min, time_max, http_client=client),
    )
    return aggregated_response(result, build_engine(result, category_store, assignment_store))


@router.get("/weeks/{anchor}/events", response_model=AggregatedEventsResponse)
async def week_events(
    request: Request,
    anchor: str,
    token_provider: TokenProvider = Depends(get_token_provider),
    client: httpx.AsyncClient = Depends(get_calendar_client),
    category_store: CategoryStore = Depends(get_category_store),
    assignment_store: AssignmentStore = Depends(get_assignment_store),
):
    """Aggregated events for the Monday-aligned week containing `anchor`."""
    window = parse_week(anchor)
    result = await fetch_logged(
        request,
        "/v1/weeks/{anchor}/events",
        lambda: get_aggregated_events(token_provider, window, http_client=client),
        week_start=window.start.isoformat(),
    )
    engine = build_engine(result, category_store, assignment_store)
    return aggregated_response(result, engine, window)


@router.get("/weeks/{anchor}/days", response_model=WeekDaysResponse)
async def week_days(
    request: Request,
    anchor: str,
    hidden: Annotated[list[str], Query()] = [],
    search: str = "",
    token_provider: TokenProvider = Depends(get_token_provider),
    client: httpx.AsyncClient = Depends(get_calendar_client),
    category_store: CategoryStore = Depends(get_category_store),
    assignment_store: AssignmentStore = Depends(get_assignment_store),
):
    """Visible events matching `search`, split into the 7 days of the week."""
    window = parse_week(anchor)
    result = await fetch_logged(
        request,
        "/v1/weeks/{anchor}/days",
        lambda: get_aggregated_events(token_provider, window, http_client=client),
        week_start=window.start.isoformat(),
    )
    engine = build_engine(result, category_store, assignment_store, hidden)
    engine.set_search(search)

    days = []
    for day, events in zip(window.days, engine.day_buckets(window)):
        day_events = []
        for event in events:
            calendar = engine.calendars.get(event.calendar_id)
            background, text = get_event_colors(event, engine.calendars)
            base = EventResponse.from_event(event, engine.category_for(event))
            day_events.append(
                DayEventResponse(
                    **base.model_dump(),
                    display_time=format_event_time(event, calendar.time_zone if calendar else None),
                    background_color=background,
                    text_color=text,
                )
            )
        days.append(
            DayBucketResponse(date=day.isoformat(), day_name=day.strftime("%a"), events=day_events)
        )

    return WeekDaysResponse(
        week_start=window.start.isoformat(),
        week_end=window.end.isoformat(),
        title=format_week_title(window),
        days=days,
    )


@router.get("/weeks/{anchor}/summary", response_model=WeekSummaryResponse)
async def week_summary(
    request: Request,
    anchor: str,
    hidden: Annotated[list[str], Query()] = [],
    token_provider: TokenProvider = Depends(get_token_provider),
    client: httpx.AsyncClient = Depends(get_calendar_client),
    category_store: CategoryStore = Depends(get_category_store),
    assignment_store: AssignmentStore = Depends(get_assignment_store),
):
    """Event count and hours per category for the week's visible calendars."""
    window = parse_week(anchor)
    result = await fetch_logged(
        request,
        "/v1/weeks/{anchor}/summary",
        lambda: get_aggregated_events(token_provider, window, http_client=client),
        week_start=window.start.isoformat(),
    )
    engine = build_engine(result, category_store, assignment_store, hidden)
    return WeekSummaryResponse(
        week_start=window.start.isoformat(),
        week_end=window.end.isoformat(),
        summaries=summaries_response(engine),
    )


@router.post("/weeks/{anchor}/assignments", response_model=AssignmentResponse)
async def assign_events(
    request: Request,
    anchor: str,
    body: AssignmentRequest,
    token_provider: TokenProvider = Depends(get_token_provider),
    client: httpx.AsyncClient = Depends(get_calendar_client),
    category_store: CategoryStore = Depends(get_category_store),
    assignment_store: AssignmentStore = Depends(get_assignment_store),
):
    """
    Assign the given events to a category.

    Events on calendars listed in `hidden_calendars` are skipped.
    """
    window = parse_week(anchor)
    result = await fetch_logged(
        request,
        "/v1/weeks/{anchor}/assignments",
        lambda: get_aggregated_events(token_provider, window, http_client=client),
        week_start=window.start.isoformat(),
    )
    engine = build_engine(result, category_store, assignment_store, body.hidden_calendars)
    for key in body.events:
        engine.selection.add(EventKey(key.calendar_id, key.event_id))

    try:
        assigned = engine.assign(body.category_id)
    except CategoryNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": str(e), "code": ErrorCodes.NOT_FOUND, "details": []},
        )
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Assignments could not be saved",
                "code": ErrorCodes.PERSISTENCE_ERROR,
                "details": [str(e)],
            },
        )

    return AssignmentResponse(assigned=assigned, summaries=summaries_response(engine))
