from __future__ import annotations

from datetime import date

import pytest

from planner.pipeline.dates import grid_weeks, month_anchors
from planner.pipeline.errors import DuplicatePageError
from planner.pipeline.graph import PageGraph, build_page_graph
from planner.pipeline.identifiers import MonthId, NoteId
from planner.pipeline.types import CustomSection, PageNode, PageType, PlannerConfig


def _expected_count(planner: PlannerConfig) -> int:
    weeks = set()
    days = set()
    for anchor in month_anchors(planner.year, planner.start_month, planner.duration_months):
        for week in grid_weeks(anchor.year, anchor.month, planner.week_start):
            weeks.add(week[0])
            days.update(week)
    notes = sum(section.page_count for section in planner.custom_sections)
    return 3 + planner.duration_months + len(weeks) + len(days) + notes


@pytest.mark.parametrize(
    "planner",
    [
        PlannerConfig(year=2025),
        PlannerConfig(year=2024, start_month=7, duration_months=18, week_start="monday"),
        PlannerConfig(year=2026, start_month=2, duration_months=1),
        PlannerConfig(year=2025, custom_sections=(CustomSection("Journal", 5), CustomSection("Ideas", 2))),
    ],
)
def test_node_count_law(planner: PlannerConfig) -> None:
    graph = build_page_graph(planner)
    assert len(graph) == _expected_count(planner)
    assert len(set(graph.page_order)) == len(graph)


def test_build_is_idempotent() -> None:
    planner = PlannerConfig(year=2025, custom_sections=(CustomSection("Journal", 3),))
    first = build_page_graph(planner)
    second = build_page_graph(planner)
    assert first.page_order == second.page_order
    assert [node.title for node in first] == [node.title for node in second]


def test_full_year_2025_order_and_year_links() -> None:
    graph = build_page_graph(PlannerConfig(year=2025))
    assert len(graph) == 439
    assert graph.page_order[:6] == [
        "cover",
        "index",
        "year-overview",
        "month-2025-01",
        "week-2024-12-29",
        "2024-12-29",
    ]
    overview = graph.get("year-overview")
    assert overview is not None
    assert overview.title == "2025 Overview"
    assert len(overview.links) == 12
    assert [link.label for link in overview.links][:3] == ["Jan", "Feb", "Mar"]
    assert overview.links[-1].target_page_id == "month-2025-12"
    assert graph.get("2025-01-01").title == "Wednesday, January 1, 2025"
    assert graph.get("month-2025-01").title == "January 2025"
    assert graph.get("week-2024-12-29").title == "Week of Dec 29"
    assert "2026-01-03" in graph
    assert "2026-01-04" not in graph


def test_boundary_week_is_added_once_between_months() -> None:
    graph = build_page_graph(PlannerConfig(year=2025, duration_months=2))
    assert graph.page_order.count("week-2025-01-26") == 1
    assert graph.page_order.count("2025-02-01") == 1
    assert graph.position("month-2025-01") < graph.position("week-2025-01-26") < graph.position("month-2025-02")
    assert graph.position(MonthId(2025, 2)) == graph.position("month-2025-02")


def test_journal_section_pages() -> None:
    planner = PlannerConfig(year=2025, duration_months=1, custom_sections=(CustomSection("Journal", 5),))
    graph = build_page_graph(planner)
    notes = graph.of_type(PageType.NOTE)
    assert [node.id for node in notes] == [NoteId(0, i).format() for i in range(5)]
    assert notes[0].title == "Journal - Page 1"
    assert notes[-1].title == "Journal - Page 5"
    assert dict(notes[2].metadata) == {
        "sectionTitle": "Journal",
        "template": "lined",
        "pageIndex": 2,
        "totalPages": 5,
    }
    assert graph.page_order[-1] == "section-0-page-4"


def test_node_metadata_is_read_only() -> None:
    planner = PlannerConfig(year=2025, duration_months=1, custom_sections=(CustomSection("Journal", 1),))
    node = build_page_graph(planner).get("section-0-page-0")
    with pytest.raises(TypeError):
        node.metadata["template"] = "blank"  # type: ignore[index]


def test_duplicate_page_rejected() -> None:
    graph = PageGraph()
    graph.add_page(PageNode(id="2025-01-01", type=PageType.DAY, title="Day", date=date(2025, 1, 1)))
    with pytest.raises(DuplicatePageError):
        graph.add_page(PageNode(id="2025-01-01", type=PageType.DAY, title="Again", date=date(2025, 1, 1)))
    assert len(graph) == 1
