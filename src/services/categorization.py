"""
Event categorization: visibility/search filters, selection, assignment and
per-category totals.

The engine owns the event -> category mapping; events themselves are never
modified. Calendar visibility is checked when assigning, not when selecting,
so events on a calendar hidden after selection are left alone.
"""

import logging
from collections.abc import Iterable

from core.validation import MalformedEventError, event_duration_hours
from models.events import (
    CalendarDescriptor,
    CalendarEvent,
    Category,
    CategorySummary,
    EventKey,
    WeekWindow,
)
from services.buckets import calendar_lookup, get_day_buckets
from services.categories import AssignmentStore, CategoryNotFoundError, CategoryStore

logger = logging.getLogger(__name__)


class CategorizationEngine:
    """Selection, filtering and category assignment over one fetched event set."""

    def __init__(
        self,
        events: Iterable[CalendarEvent],
        calendars: Iterable[CalendarDescriptor],
        category_store: CategoryStore,
        assignment_store: AssignmentStore | None = None,
    ):
        self.events = list(events)
        self.category_store = category_store
        self.assignment_store = assignment_store
        self.calendars: dict[str, CalendarDescriptor] = {}
        self.visible_calendars: dict[str, bool] = {}
        self.search = ""
        self.selection: set[EventKey] = set()
        self.assignments: dict[EventKey, str] = (
            assignment_store.load() if assignment_store is not None else {}
        )
        self.set_calendars(calendars)

    # -------------------------------------------------------------------------
    # Visibility and search
    # -------------------------------------------------------------------------

    def set_calendars(self, calendars: Iterable[CalendarDescriptor]):
        """Register calendars; new ones start visible, known ones keep their state."""
        self.calendars = calendar_lookup(calendars)
        for calendar_id in self.calendars:
            self.visible_calendars.setdefault(calendar_id, True)

    def set_calendar_visibility(self, calendar_id: str, visible: bool):
        self.visible_calendars[calendar_id] = visible

    def toggle_calendar_visibility(self, calendar_id: str) -> bool:
        visible = not self.visible_calendars.get(calendar_id, False)
        self.visible_calendars[calendar_id] = visible
        return visible

    def is_visible(self, event: CalendarEvent) -> bool:
        """Events of unknown calendars are never visible."""
        return event.calendar_id in self.calendars and self.visible_calendars.get(
            event.calendar_id, False
        )

    def set_search(self, text: str):
        self.search = text or ""

    @property
    def filtered_events(self) -> list[CalendarEvent]:
        query = self.search.lower()
        return [
            event
            for event in self.events
            if self.is_visible(event) and (not query or query in event.summary.lower())
        ]

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def toggle_selection(self, key: EventKey) -> bool:
        """Add or remove one event from the selection; returns True if now selected."""
        if key in self.selection:
            self.selection.discard(key)
            return False
        self.selection.add(key)
        return True

    def select_all_visible(self):
        self.selection = {event.key for event in self.filtered_events}

    def clear(self):
        """Reset both the selection and the search text."""
        self.selection = set()
        self.search = ""

    @property
    def selected_visible_events(self) -> list[CalendarEvent]:
        return [
            event
            for event in self.filtered_events
            if event.key in self.selection
        ]

    # -------------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------------

    def assign(self, category_id: str) -> int:
        """
        Assign the selected events on visible calendars to `category_id`.

        Clears the selection and persists the mapping.

        Returns:
            Number of events assigned

        Raises:
            CategoryNotFoundError: if the category does not exist
            PersistenceError: if the assignment store cannot be written
        """
        if category_id not in self.category_store:
            raise CategoryNotFoundError(category_id)

        assigned = 0
        for event in self.events:
            if event.key in self.selection and self.is_visible(event):
                self.assignments[event.key] = category_id
                assigned += 1

        self.selection = set()
        logger.info("Assigned %d events to category %s", assigned, category_id)
        self._persist()
        return assigned

    def unassign(self, keys: Iterable[EventKey]) -> int:
        removed = 0
        for key in keys:
            if self.assignments.pop(key, None) is not None:
                removed += 1
        if removed:
            self._persist()
        return removed

    def _persist(self):
        # Assignments to deleted categories are dropped rather than persisted
        self.assignments = {
            key: category_id
            for key, category_id in self.assignments.items()
            if category_id in self.category_store
        }
        if self.assignment_store is not None:
            self.assignment_store.save(self.assignments)

    def category_for(self, event: CalendarEvent) -> str | None:
        """Assigned category id, or None if unassigned or the category was deleted."""
        category_id = self.assignments.get(event.key)
        if category_id is None or category_id not in self.category_store:
            return None
        return category_id

    def is_categorized(self, event: CalendarEvent) -> bool:
        return self.category_for(event) is not None

    # -------------------------------------------------------------------------
    # Aggregates and views
    # -------------------------------------------------------------------------

    def summarize(self, category: Category) -> CategorySummary:
        """Event count and timed hours for one category, visible calendars only."""
        count = 0
        hours = 0.0
        for event in self.events:
            if self.assignments.get(event.key) != category.id or not self.is_visible(event):
                continue
            count += 1
            calendar = self.calendars.get(event.calendar_id)
            try:
                hours += event_duration_hours(event, calendar.time_zone if calendar else None)
            except MalformedEventError as e:
                logger.warning("No duration for event %s: %s", event.id, e)
        return CategorySummary(category=category, event_count=count, total_hours=round(hours, 2))

    def summaries(self) -> list[CategorySummary]:
        """One summary per category, in display order (empty categories included)."""
        return [self.summarize(category) for category in self.category_store.list()]

    def day_buckets(self, window: WeekWindow) -> list[list[CalendarEvent]]:
        """Filtered events split into the 7 days of `window`."""
        return get_day_buckets(window, self.filtered_events, self.calendars)

    def reorder_categories(self, source_index: int, destination_index: int) -> list[Category]:
        return self.category_store.move(source_index, destination_index)
