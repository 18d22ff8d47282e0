"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, Field

from models.events import CalendarDescriptor, CalendarEvent, Category, CategorySummary


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    CREDENTIAL_EXPIRED = "CREDENTIAL_EXPIRED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    NOT_FOUND = "NOT_FOUND"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# CALENDARS AND EVENTS
# =============================================================================


class BoundaryResponse(BaseModel):
    date: str | None = None
    date_time: str | None = None
    time_zone: str | None = None


class EventResponse(BaseModel):
    """Calendar event as returned to the UI."""

    id: str
    calendar_id: str
    summary: str
    start: BoundaryResponse
    end: BoundaryResponse
    color_id: str | None = None
    organizer_email: str | None = None
    category_id: str | None = None

    @classmethod
    def from_event(cls, event: CalendarEvent, category_id: str | None = None) -> "EventResponse":
        return cls(
            id=event.id,
            calendar_id=event.calendar_id,
            summary=event.summary,
            start=BoundaryResponse(**vars(event.start)),
            end=BoundaryResponse(**vars(event.end)),
            color_id=event.color_id,
            organizer_email=event.organizer_email,
            category_id=category_id,
        )


class DayEventResponse(EventResponse):
    """Event inside a day bucket, with display fields."""

    display_time: str
    background_color: str
    text_color: str


class CalendarResponse(BaseModel):
    id: str
    summary: str
    background_color: str | None = None
    foreground_color: str | None = None
    selected: bool
    primary: bool
    access_role: str | None = None
    time_zone: str | None = None

    @classmethod
    def from_calendar(cls, calendar: CalendarDescriptor) -> "CalendarResponse":
        return cls(**vars(calendar))


class AggregatedEventsResponse(BaseModel):
    events: list[EventResponse]
    calendars: list[CalendarResponse]
    week_start: str | None = None
    week_end: str | None = None


class DayBucketResponse(BaseModel):
    date: str
    day_name: str  # Mon, Tue, ...
    events: list[DayEventResponse]


class WeekDaysResponse(BaseModel):
    week_start: str
    week_end: str
    title: str
    days: list[DayBucketResponse]


# =============================================================================
# CATEGORIES
# =============================================================================


class CategoryResponse(BaseModel):
    id: str
    name: str
    color: str | None = None

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(id=category.id, name=category.name, color=category.color)


class CategoryListResponse(BaseModel):
    """Categories in display order; `has_unsaved_changes` is set after a failed save."""

    categories: list[CategoryResponse]
    has_unsaved_changes: bool = False


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    color: str | None = None


class CategoryUpdateRequest(BaseModel):
    name: str | None = None
    color: str | None = None


class CategoryOrderRequest(BaseModel):
    category_ids: list[str]


class CategoryMoveRequest(BaseModel):
    source_index: int
    destination_index: int


class CategorySummaryResponse(BaseModel):
    category: CategoryResponse
    event_count: int
    total_hours: float

    @classmethod
    def from_summary(cls, summary: CategorySummary) -> "CategorySummaryResponse":
        return cls(
            category=CategoryResponse.from_category(summary.category),
            event_count=summary.event_count,
            total_hours=summary.total_hours,
        )


class WeekSummaryResponse(BaseModel):
    week_start: str
    week_end: str
    summaries: list[CategorySummaryResponse]


# =============================================================================
# ASSIGNMENTS
# =============================================================================


class EventKeyRequest(BaseModel):
    calendar_id: str
    event_id: str


class AssignmentRequest(BaseModel):
    category_id: str
    events: list[EventKeyRequest]
    hidden_calendars: list[str] = []


class AssignmentResponse(BaseModel):
    assigned: int
    summaries: list[CategorySummaryResponse]
