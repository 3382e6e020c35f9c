"""
Calendar enumeration for the planner.

Month grids always cover whole display weeks, so the first and last rows
usually carry "bleed" days from the neighbouring months. Those days reuse the
single day page for their date; they never get a page of their own.
"""
from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import List

MONTH_NAMES: List[str] = list(calendar.month_name)[1:]
MONTH_ABBREVS: List[str] = list(calendar.month_abbr)[1:]
WEEKDAY_NAMES: List[str] = list(calendar.day_name)        # Monday first
WEEKDAY_ABBREVS: List[str] = list(calendar.day_abbr)


def _first_weekday(week_start: str) -> int:
    if week_start == "sunday":
        return calendar.SUNDAY
    if week_start == "monday":
        return calendar.MONDAY
    raise ValueError(f"Unknown week start: {week_start}")


def month_anchors(year: int, start_month: int, duration_months: int) -> List[date]:
    """First day of each month in the span, wrapping into following years."""
    anchors: List[date] = []
    for offset in range(duration_months):
        index = (start_month - 1) + offset
        anchors.append(date(year + index // 12, index % 12 + 1, 1))
    return anchors


def grid_weeks(year: int, month: int, week_start: str = "sunday") -> List[List[date]]:
    cal = calendar.Calendar(firstweekday=_first_weekday(week_start))
    return cal.monthdatescalendar(year, month)


def month_grid(year: int, month: int, week_start: str = "sunday") -> List[date]:
    return [day for week in grid_weeks(year, month, week_start) for day in week]


def week_start_of(day: date, week_start: str = "sunday") -> date:
    back = (day.weekday() - _first_weekday(week_start)) % 7
    return day - timedelta(days=back)


def weekday_labels(week_start: str = "sunday", width: int = 3) -> List[str]:
    first = _first_weekday(week_start)
    names = WEEKDAY_NAMES if width > 3 else WEEKDAY_ABBREVS
    ordered = [names[(first + i) % 7] for i in range(7)]
    if width < 3:
        return [name[:width] for name in ordered]
    return ordered
