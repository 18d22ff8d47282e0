"""
Weekly category report generation for Numbers and Excel formats.
"""

from datetime import date
from pathlib import Path

from numbers_parser import Document
from openpyxl import Workbook
from openpyxl.styles import Font

from core.config import DETAIL_HEADERS, MIN_TABLE_ROWS, SUMMARY_HEADERS, UNCATEGORIZED_LABEL
from core.validation import MalformedEventError, event_duration_hours
from models.events import WeekWindow
from services.buckets import format_event_time
from services.categorization import CategorizationEngine


def format_date_display(d: date) -> str:
    """Format date as M/D/YYYY (platform-safe, no zero-padding)."""
    return f"{d.month}/{d.day}/{d.year}"


def format_day_heading(d: date) -> str:
    """Format date as 'Mon 4' (platform-safe)."""
    return f"{d.strftime('%a')} {d.day}"


def format_week_title(window: WeekWindow) -> str:
    """'Week of March 4th, 2024'."""
    day = window.start.day
    suffix = "th" if 11 <= day <= 13 else {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"Week of {window.start.strftime('%B')} {day}{suffix}, {window.start.year}"


def build_summary_rows(engine: CategorizationEngine) -> list[list]:
    """Category, event count and hours per category, plus a Total row."""
    rows = []
    total_events = 0
    total_hours = 0.0
    for summary in engine.summaries():
        rows.append([summary.category.name, summary.event_count, summary.total_hours])
        total_events += summary.event_count
        total_hours += summary.total_hours
    rows.append(["Total", total_events, round(total_hours, 2)])
    return rows


def build_detail_rows(engine: CategorizationEngine, window: WeekWindow) -> list[list]:
    """One row per visible event per day of the week, in display order."""
    names = {category.id: category.name for category in engine.category_store.list()}
    rows = []
    for day, events in zip(window.days, engine.day_buckets(window)):
        for event in events:
            calendar = engine.calendars.get(event.calendar_id)
            time_zone = calendar.time_zone if calendar else None
            try:
                hours = round(event_duration_hours(event, time_zone), 2)
            except MalformedEventError:
                hours = 0.0
            category_id = engine.category_for(event)
            rows.append(
                [
                    format_date_display(day),
                    format_event_time(event, time_zone),
                    calendar.summary if calendar else "",
                    event.summary,
                    hours,
                    names.get(category_id, UNCATEGORIZED_LABEL),
                ]
            )
    return rows


# =============================================================================
# EXCEL REPORT GENERATION
# =============================================================================


def write_excel_sheet(ws, headers: list[str], rows: list[list]):
    """Write bold headers in row 1 followed by data rows."""
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)

    for row_idx, row_data in enumerate(rows, start=2):
        for col_idx, value in enumerate(row_data, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)


def create_weekly_excel_report(engine: CategorizationEngine, window: WeekWindow, output_path: Path):
    """
    Create Excel weekly report with two sheets.

    Sheet 1: "Category Summary" - Category, Events, Hours + Total row
    Sheet 2: "Week Detail" - one row per visible event
    """
    wb = Workbook()

    ws_summary = wb.active
    ws_summary.title = "Category Summary"
    write_excel_sheet(ws_summary, SUMMARY_HEADERS, build_summary_rows(engine))
    ws_summary.cell(row=1, column=len(SUMMARY_HEADERS) + 2, value=format_week_title(window))

    ws_detail = wb.create_sheet(title="Week Detail")
    write_excel_sheet(ws_detail, DETAIL_HEADERS, build_detail_rows(engine, window))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output_path))
    print(f"Saved Excel report to: {output_path}")


# =============================================================================
# NUMBERS REPORT GENERATION
# =============================================================================


def write_numbers_table(table, headers: list[str], rows: list[list]):
    for col_idx, header in enumerate(headers):
        table.write(0, col_idx, header)
    for row_idx, row_data in enumerate(rows, start=1):
        for col_idx, value in enumerate(row_data):
            table.write(row_idx, col_idx, value)


def create_weekly_numbers_report(engine: CategorizationEngine, window: WeekWindow, output_path: Path):
    """Create Numbers report with Category Summary and Week Detail sheets."""
    summary_rows = build_summary_rows(engine)
    detail_rows = build_detail_rows(engine, window)

    doc = Document(
        sheet_name="Category Summary",
        table_name=format_week_title(window),
        num_rows=len(summary_rows) + 1,
        num_cols=len(SUMMARY_HEADERS),
        num_header_rows=1,
        num_header_cols=1,
    )
    summary_table = doc.sheets["Category Summary"].tables[format_week_title(window)]
    write_numbers_table(summary_table, SUMMARY_HEADERS, summary_rows)

    doc.add_sheet(
        "Week Detail",
        table_name="Week Detail",
        num_rows=max(len(detail_rows) + 1, MIN_TABLE_ROWS),
        num_cols=len(DETAIL_HEADERS),
    )
    detail_table = doc.sheets["Week Detail"].tables["Week Detail"]
    write_numbers_table(detail_table, DETAIL_HEADERS, detail_rows)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(str(output_path))
    print(f"Saved Numbers report to: {output_path}")
