from __future__ import annotations

from concurrent.futures import CancelledError
import threading
import unittest

import pytest

from planner.pipeline.errors import ConfigError, GenerationError
from planner.pipeline.graph import build_page_graph
from planner.pipeline.orchestrator import (
    Generation,
    HandleResolver,
    PageAllocator,
    RunState,
    generate_planner,
)
from planner.pipeline.run import start_generation
from planner.pipeline.types import CoverSpec, CustomSection, PlannerConfig, Theme
from planner.pipeline.writer import ReportLabWriter


JANUARY = PlannerConfig(
    year=2025,
    duration_months=1,
    custom_sections=(CustomSection("Journal", 2),),
)


class GenerationTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.events = []
        cls.result = generate_planner(JANUARY, on_progress=cls.events.append)

    def test_encodes_one_page_per_node(self) -> None:
        self.assertTrue(self.result.pdf_bytes.startswith(b"%PDF"))
        # 3 fixed pages, 1 month, 5 weeks, 35 days, 2 notes
        self.assertEqual(self.result.page_count, 46)
        self.assertEqual(list(self.result.links), self.result.graph.page_order)

    def test_progress_is_monotonic_and_complete(self) -> None:
        currents = [event.current for event in self.events]
        self.assertEqual(currents, list(range(1, 47)))
        self.assertTrue(all(event.total == 46 for event in self.events))
        self.assertEqual(self.events[0].message, "Rendering Cover...")
        self.assertEqual(self.events[-1].percent, 100)

    def test_every_emitted_link_targets_a_page(self) -> None:
        for source, requests in self.result.links.items():
            for request in requests:
                self.assertEqual(request.source_id, source)
                self.assertIn(request.target_id, self.result.graph)
        self.assertGreater(self.result.link_count, 0)

    def test_cover_has_no_links(self) -> None:
        self.assertEqual(self.result.links["cover"], [])

    def test_jan_first_links_forward_not_back(self) -> None:
        targets = {request.target_id for request in self.result.links["2025-01-01"]}
        self.assertIn("2025-01-02", targets)
        self.assertNotIn("2024-12-31", targets)

    def test_month_page_links_its_grid_days(self) -> None:
        targets = [request.target_id for request in self.result.links["month-2025-01"]]
        self.assertIn("2024-12-29", targets)
        self.assertIn("2025-02-01", targets)
        self.assertIn("section-0-page-0", targets)

    def test_week_page_links_its_days(self) -> None:
        targets = [request.target_id for request in self.result.links["week-2025-01-05"]]
        for day in range(5, 12):
            self.assertIn(f"2025-01-{day:02d}", targets)


def test_boundary_day_linked_from_both_months() -> None:
    result = generate_planner(PlannerConfig(year=2025, start_month=1, duration_months=2))
    for month in ("month-2025-01", "month-2025-02"):
        targets = {request.target_id for request in result.links[month]}
        assert "2025-02-01" in targets
        assert "2025-01-26" in targets
    assert result.graph.page_order.count("week-2025-01-26") == 1


def test_boundary_week_across_new_year() -> None:
    result = generate_planner(PlannerConfig(year=2025, start_month=12, duration_months=2))
    assert result.graph.page_order.count("week-2025-12-28") == 1
    assert "2026-01-01" in result.graph.page_order
    for month in ("month-2025-12", "month-2026-01"):
        targets = {request.target_id for request in result.links[month]}
        assert "2026-01-01" in targets
        assert "2025-12-31" in targets


@pytest.mark.parametrize(
    "planner",
    [
        PlannerConfig(year=1800),
        PlannerConfig(year=2025, duration_months=0),
        PlannerConfig(year=2025, duration_months=25),
        PlannerConfig(year=2025, start_month=13),
        PlannerConfig(year=2025, device="fold"),
        PlannerConfig(year=2025, orientation="landscape"),
        PlannerConfig(year=2025, handedness="both"),
        PlannerConfig(year=2025, week_start="friday"),
        PlannerConfig(year=2025, theme=Theme(font="comic-sans")),
        PlannerConfig(year=2025, theme=Theme(accent_color="blue")),
        PlannerConfig(year=2025, theme=Theme(line_height=3.0)),
        PlannerConfig(year=2025, custom_sections=(CustomSection("Journal", 0),)),
        PlannerConfig(year=2025, custom_sections=(CustomSection("Journal", 201),)),
        PlannerConfig(year=2025, custom_sections=(CustomSection("Journal", 1, "graph"),)),
    ],
)
def test_invalid_configs_are_rejected_before_generation(planner: PlannerConfig) -> None:
    events = []
    with pytest.raises(ConfigError):
        generate_planner(planner, on_progress=events.append)
    assert events == []


def test_unreadable_cover_image_fails_render_stage() -> None:
    planner = PlannerConfig(year=2025, duration_months=1, cover=CoverSpec(title="Mine", image=b"junk"))
    with pytest.raises(GenerationError) as excinfo:
        generate_planner(planner)
    assert excinfo.value.stage == "render"
    assert excinfo.value.page_id == "cover"


def test_links_cannot_resolve_before_allocation() -> None:
    generation = Generation(JANUARY)
    assert generation.state is RunState.ALLOCATING
    with pytest.raises(GenerationError) as excinfo:
        generation.resolve(HandleResolver({}))
    assert excinfo.value.stage == "resolve"


def test_allocation_seals_every_page() -> None:
    graph = build_page_graph(JANUARY)
    writer = ReportLabWriter()
    allocator = PageAllocator(graph, writer)
    with pytest.raises(GenerationError):
        allocator.seal()
    allocator.allocate(JANUARY)
    resolver = allocator.seal()
    assert len(resolver) == len(graph) == writer.page_count
    assert resolver("index").index == 1
    assert resolver("2023-01-01") is None


def test_background_generation_returns_result() -> None:
    task = start_generation(JANUARY)
    result = task.result(timeout=120)
    assert result.page_count == 46
    assert task.done()


def test_cancelled_generation_stops() -> None:
    holder = {}
    ready = threading.Event()

    def on_progress(event) -> None:
        if event.current == 1:
            ready.wait(10)
            holder["task"].cancel()

    task = start_generation(JANUARY, on_progress=on_progress)
    holder["task"] = task
    ready.set()
    with pytest.raises(CancelledError):
        task.result(timeout=120)
    assert task.cancelled
