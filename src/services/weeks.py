"""
Week navigation. Weeks start on Monday.
"""

from datetime import date, datetime, timedelta

from models.events import WeekWindow


def start_of_week(value: date | datetime) -> date:
    """The Monday at or before `value` (time of day is dropped)."""
    day = value.date() if isinstance(value, datetime) else value
    return day - timedelta(days=day.weekday())


def week_window(anchor: date | datetime) -> WeekWindow:
    return WeekWindow(start=start_of_week(anchor))


def current_week(today: date | None = None) -> WeekWindow:
    return week_window(today or date.today())


def next_week(window: WeekWindow) -> WeekWindow:
    return WeekWindow(start=window.start + timedelta(days=7))


def previous_week(window: WeekWindow) -> WeekWindow:
    return WeekWindow(start=window.start - timedelta(days=7))


def parse_week_anchor(anchor_str: str | None) -> WeekWindow:
    """
    Week containing a YYYY-MM-DD date string; the current week if empty.

    Raises:
        ValueError: if the string is not a valid date
    """
    if not anchor_str:
        return current_week()
    return week_window(datetime.strptime(anchor_str, "%Y-%m-%d").date())
