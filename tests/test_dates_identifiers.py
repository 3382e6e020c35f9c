from __future__ import annotations

from datetime import date

import pytest

from planner.pipeline.dates import grid_weeks, month_anchors, week_start_of, weekday_labels
from planner.pipeline.identifiers import (
    CoverId,
    DayId,
    MonthId,
    NoteId,
    WeekId,
    YearOverviewId,
    parse_page_id,
)


def test_month_anchors_wrap_into_next_year() -> None:
    anchors = month_anchors(2025, 11, 4)
    assert anchors == [date(2025, 11, 1), date(2025, 12, 1), date(2026, 1, 1), date(2026, 2, 1)]


def test_grid_weeks_are_whole_weeks_starting_on_week_start() -> None:
    weeks = grid_weeks(2025, 1, "sunday")
    assert weeks[0][0] == date(2024, 12, 29)
    assert weeks[-1][-1] == date(2025, 2, 1)
    assert all(len(week) == 7 for week in weeks)
    assert all(week[0].weekday() == 6 for week in weeks)

    monday_weeks = grid_weeks(2025, 1, "monday")
    assert monday_weeks[0][0] == date(2024, 12, 30)


def test_week_start_of() -> None:
    assert week_start_of(date(2025, 1, 1), "sunday") == date(2024, 12, 29)
    assert week_start_of(date(2025, 1, 1), "monday") == date(2024, 12, 30)
    assert week_start_of(date(2025, 1, 5), "sunday") == date(2025, 1, 5)


def test_weekday_labels() -> None:
    assert weekday_labels("sunday") == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    assert weekday_labels("monday", width=1) == ["M", "T", "W", "T", "F", "S", "S"]
    assert weekday_labels("sunday", width=9)[0] == "Sunday"


def test_identifier_formats() -> None:
    assert CoverId().format() == "cover"
    assert YearOverviewId().format() == "year-overview"
    assert MonthId(2025, 1).format() == "month-2025-01"
    assert WeekId(date(2024, 12, 29)).format() == "week-2024-12-29"
    assert DayId(date(2025, 1, 1)).format() == "2025-01-01"
    assert NoteId(0, 2).format() == "section-0-page-2"
    assert WeekId.containing(date(2025, 1, 1), "sunday") == WeekId(date(2024, 12, 29))


def test_parse_page_id_returns_typed_ids() -> None:
    assert parse_page_id("index").format() == "index"
    assert parse_page_id("month-2026-03") == MonthId(2026, 3)
    assert parse_page_id("week-2025-01-26") == WeekId(date(2025, 1, 26))
    assert parse_page_id("2025-02-28") == DayId(date(2025, 2, 28))
    assert parse_page_id("section-3-page-10") == NoteId(3, 10)


@pytest.mark.parametrize("text", ["", "bogus", "month-2025-13", "2025-02-30", "week-2025-1-1", "section-a-page-1"])
def test_parse_page_id_rejects_malformed(text: str) -> None:
    with pytest.raises(ValueError):
        parse_page_id(text)
