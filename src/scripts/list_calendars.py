#!/usr/bin/env python3
"""
List all calendars the Google account has access to.

Usage:
    GOOGLE_ACCESS_TOKEN=... uv run python src/scripts/list_calendars.py
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import GOOGLE_ACCESS_TOKEN
from core.google_client import close_http_client
from services.calendar import CalendarFetchError, StaticTokenProvider, fetch_calendar_list


async def main():
    """List all calendars."""
    print("Fetching calendars from Google Calendar...\n")

    try:
        calendars = await fetch_calendar_list(StaticTokenProvider(GOOGLE_ACCESS_TOKEN))
    except CalendarFetchError as e:
        print(f"Error fetching calendars: {e}")
        return
    finally:
        await close_http_client()

    print(f"Found {len(calendars)} calendars\n")
    print("=" * 80)

    for cal in calendars:
        label = " (primary)" if cal.primary else ""
        print(f"\nCalendar: {cal.summary}{label}")
        print(f"  ID: {cal.id}")
        print(f"  Access: {cal.access_role}")
        print(f"  Time zone: {cal.time_zone or 'UTC'}")
        if cal.background_color:
            print(f"  Color: {cal.background_color}")
        print("-" * 80)

    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
