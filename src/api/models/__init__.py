"""API Pydantic models."""

from .responses import (
    AggregatedEventsResponse,
    AssignmentRequest,
    AssignmentResponse,
    CalendarResponse,
    CategoryCreateRequest,
    CategoryListResponse,
    CategoryMoveRequest,
    CategoryOrderRequest,
    CategoryResponse,
    CategorySummaryResponse,
    CategoryUpdateRequest,
    DayBucketResponse,
    DayEventResponse,
    ErrorCodes,
    ErrorResponse,
    EventResponse,
    HealthResponse,
    WeekDaysResponse,
    WeekSummaryResponse,
)

__all__ = [
    "AggregatedEventsResponse",
    "AssignmentRequest",
    "AssignmentResponse",
    "CalendarResponse",
    "CategoryCreateRequest",
    "CategoryListResponse",
    "CategoryMoveRequest",
    "CategoryOrderRequest",
    "CategoryResponse",
    "CategorySummaryResponse",
    "CategoryUpdateRequest",
    "DayBucketResponse",
    "DayEventResponse",
    "ErrorCodes",
    "ErrorResponse",
    "EventResponse",
    "HealthResponse",
    "WeekDaysResponse",
    "WeekSummaryResponse",
]
