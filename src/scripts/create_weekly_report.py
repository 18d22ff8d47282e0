#!/usr/bin/env python3
"""
Create a weekly category hours report from Google Calendar.

Fetches every calendar's events for the week containing --date, prints the
events day by day with their categories, prints hours per category and saves
the report as Excel and/or Numbers.

Usage:
    GOOGLE_ACCESS_TOKEN=... uv run python src/scripts/create_weekly_report.py --date 2024-03-06
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import GOOGLE_ACCESS_TOKEN, OUTPUT_DIR, UNCATEGORIZED_LABEL
from core.database import SqliteKeyValueStore
from core.google_client import close_http_client
from services.buckets import format_event_time
from services.calendar import StaticTokenProvider
from services.categories import AssignmentStore, CategoryStore
from services.categorization import CategorizationEngine
from services.reports import (
    create_weekly_excel_report,
    create_weekly_numbers_report,
    format_day_heading,
    format_week_title,
)
from services.week_view import LoadState, WeekViewSession
from services.weeks import parse_week_anchor


def print_week(engine: CategorizationEngine, session: WeekViewSession):
    """Print each day's events with time, calendar and category."""
    names = {c.id: c.name for c in engine.category_store.list()}
    window = session.week

    print(f"\n{format_week_title(window)}")
    for day, events in zip(window.days, engine.day_buckets(window)):
        print(f"\n{format_day_heading(day)}")
        if not events:
            print("  No events")
            continue
        for event in events:
            calendar = engine.calendars.get(event.calendar_id)
            when = format_event_time(event, calendar.time_zone if calendar else None)
            category = names.get(engine.category_for(event), UNCATEGORIZED_LABEL)
            print(f"  {when:>8}  {event.summary}  [{category}]")


def print_summary(engine: CategorizationEngine):
    print("\nHours by category:")
    summaries = engine.summaries()
    if not summaries:
        print("  No categories defined")
    for summary in summaries:
        print(
            f"  {summary.category.name}: {summary.event_count} events, "
            f"{summary.total_hours:.1f} hours"
        )


async def main(
    as_of_date_str: str | None = None,
    hidden: list[str] | None = None,
    search: str = "",
    output_format: str = "xlsx",
):
    """Main entry point."""
    storage = SqliteKeyValueStore()
    session = WeekViewSession(
        StaticTokenProvider(GOOGLE_ACCESS_TOKEN),
        CategoryStore(storage),
        AssignmentStore(storage),
        week=parse_week_anchor(as_of_date_str),
    )
    print(f"Generating report for {session.week.start} to {session.week.end}")

    try:
        state = await session.load()
    finally:
        await close_http_client()

    if state is LoadState.UNAUTHENTICATED:
        print(f"\nAccess token rejected ({session.error}). Sign in again and update GOOGLE_ACCESS_TOKEN.")
        sys.exit(2)
    if state is LoadState.FAILED:
        print(f"\n{session.error}")
        sys.exit(1)

    engine = session.engine
    for calendar_id in hidden or []:
        engine.set_calendar_visibility(calendar_id, False)
    engine.set_search(search)

    print(f"Found {len(engine.events)} events in {len(engine.calendars)} calendar(s)")
    print_week(engine, session)
    print_summary(engine)

    output_dir = OUTPUT_DIR / "reports" / "weekly"
    report_name = f"time_report_{session.week.start.strftime('%Y_%m_%d')}"
    if output_format in ("xlsx", "both"):
        create_weekly_excel_report(engine, session.week, output_dir / f"{report_name}.xlsx")
    if output_format in ("numbers", "both"):
        create_weekly_numbers_report(engine, session.week, output_dir / f"{report_name}.numbers")

    print("\nDone!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate weekly category hours report")
    parser.add_argument(
        "--date",
        help="Any date in the week (YYYY-MM-DD). Weeks start on Monday. Defaults to today.",
    )
    parser.add_argument(
        "--hide",
        action="append",
        default=[],
        metavar="CALENDAR_ID",
        help="Hide a calendar from the report (repeatable).",
    )
    parser.add_argument("--search", default="", help="Only list events whose title contains this text.")
    parser.add_argument(
        "--format",
        choices=["xlsx", "numbers", "both", "none"],
        default="xlsx",
        help="Report file format.",
    )
    args = parser.parse_args()

    asyncio.run(main(args.date, args.hide, args.search, args.format))
