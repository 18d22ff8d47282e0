"""Tests for week navigation."""

from datetime import date, datetime

import pytest

from models.events import WeekWindow
from services.weeks import (
    current_week,
    next_week,
    parse_week_anchor,
    previous_week,
    start_of_week,
    week_window,
)


class TestStartOfWeek:
    @pytest.mark.parametrize(
        "day",
        [date(2024, 3, 4), date(2024, 3, 6), date(2024, 3, 10)],
    )
    def test_monday_on_or_before(self, day):
        assert start_of_week(day) == date(2024, 3, 4)

    def test_datetime_drops_time(self):
        assert start_of_week(datetime(2024, 3, 10, 23, 59)) == date(2024, 3, 4)

    def test_crosses_year_boundary(self):
        assert start_of_week(date(2025, 1, 1)) == date(2024, 12, 30)


class TestWeekWindow:
    def test_seven_days_end_exclusive(self):
        window = week_window(date(2024, 3, 7))
        assert window.days[0] == date(2024, 3, 4)
        assert window.days[-1] == date(2024, 3, 10)
        assert window.end == date(2024, 3, 11)
        assert date(2024, 3, 10) in window
        assert date(2024, 3, 11) not in window

    def test_query_bounds(self):
        window = WeekWindow(start=date(2024, 3, 4))
        assert window.time_min == "2024-03-04T00:00:00Z"
        assert window.time_max == "2024-03-11T00:00:00Z"


class TestNavigation:
    def test_next_and_previous(self, week):
        assert next_week(week).start == date(2024, 3, 11)
        assert previous_week(week).start == date(2024, 2, 26)
        assert previous_week(next_week(week)) == week

    def test_current_week(self):
        assert current_week(date(2024, 2, 29)).start == date(2024, 2, 26)

    def test_current_week_defaults_to_today(self):
        assert date.today() in current_week()


class TestParseWeekAnchor:
    def test_parses_any_day_of_week(self):
        assert parse_week_anchor("2024-03-08").start == date(2024, 3, 4)

    def test_empty_means_current_week(self):
        assert parse_week_anchor(None) == current_week()
        assert parse_week_anchor("") == current_week()

    @pytest.mark.parametrize("value", ["2024-13-01", "next week", "04/03/2024"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_week_anchor(value)
