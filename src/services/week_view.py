"""
Load state for one week view session.

    idle -> loading -> loaded | failed | unauthenticated

Loading starts whenever the week changes or on retry. An expired credential
ends in `unauthenticated` (the user has to sign in again) rather than
`failed`, which is recovered with `retry()`.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import date
from enum import StrEnum

from models.events import AggregatedEvents, WeekWindow
from services.calendar import (
    CalendarFetchError,
    CredentialError,
    TokenProvider,
    get_aggregated_events,
)
from services.categories import AssignmentStore, CategoryStore
from services.categorization import CategorizationEngine
from services.weeks import current_week, next_week, previous_week, week_window

logger = logging.getLogger(__name__)

Fetcher = Callable[[TokenProvider, WeekWindow], Awaitable[AggregatedEvents]]


class LoadState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"
    UNAUTHENTICATED = "unauthenticated"


class WeekViewSession:
    """Drives fetching for the displayed week and owns its CategorizationEngine."""

    def __init__(
        self,
        token_provider: TokenProvider,
        category_store: CategoryStore,
        assignment_store: AssignmentStore | None = None,
        week: WeekWindow | None = None,
        fetcher: Fetcher = get_aggregated_events,
    ):
        self.token_provider = token_provider
        self.category_store = category_store
        self.assignment_store = assignment_store
        self.week = week or current_week()
        self.fetcher = fetcher
        self.state = LoadState.IDLE
        self.error: str | None = None
        self.engine: CategorizationEngine | None = None

    @property
    def needs_reauthentication(self) -> bool:
        return self.state is LoadState.UNAUTHENTICATED

    async def load(self) -> LoadState:
        """Fetch the current week; never raises for fetch failures."""
        self.state = LoadState.LOADING
        self.error = None
        logger.info("Loading events for week of %s", self.week.start)

        try:
            result = await self.fetcher(self.token_provider, self.week)
        except CredentialError as e:
            logger.warning("Credential rejected: %s", e)
            self.state = LoadState.UNAUTHENTICATED
            self.error = str(e)
            return self.state
        except CalendarFetchError as e:
            logger.error("Failed to load calendar events: %s", e)
            self.state = LoadState.FAILED
            self.error = f"Failed to load calendar events: {e}"
            return self.state

        previous_visibility = self.engine.visible_calendars if self.engine else {}
        self.engine = CategorizationEngine(
            result.events, result.calendars, self.category_store, self.assignment_store
        )
        for calendar_id, visible in previous_visibility.items():
            if calendar_id in self.engine.visible_calendars:
                self.engine.set_calendar_visibility(calendar_id, visible)

        logger.info(
            "Received %d events for week of %s", len(result.events), self.week.start.isoformat()
        )
        self.state = LoadState.LOADED
        return self.state

    async def retry(self) -> LoadState:
        return await self.load()

    async def go_to_week(self, anchor: date) -> LoadState:
        self.week = week_window(anchor)
        return await self.load()

    async def go_to_next_week(self) -> LoadState:
        self.week = next_week(self.week)
        return await self.load()

    async def go_to_previous_week(self) -> LoadState:
        self.week = previous_week(self.week)
        return await self.load()
