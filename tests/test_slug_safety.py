from __future__ import annotations

from planner.pipeline.ingest import slug_for
from planner.pipeline.types import PlannerConfig


def test_slug_sanitization() -> None:
    slug = slug_for(PlannerConfig(year=2025))
    assert slug == "planner-2025-tab-s-portrait"


def test_slug_strips_unsafe_characters() -> None:
    slug = slug_for(PlannerConfig(year=2025, device="../Tab S", orientation="Portrait/.."))
    assert "/" not in slug
    assert ".." not in slug
    assert slug == "planner-2025-tab-s-portrait"
