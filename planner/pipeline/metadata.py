from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from ..storage import artifact_path
from .orchestrator import GenerationResult
from .types import PageType, PlannerConfig


def _base_tags(planner: PlannerConfig) -> List[str]:
    tags = [
        "planner",
        f"planner-{planner.year}",
        "hyperlinked",
        "pdf",
        planner.device,
        planner.orientation,
        f"{planner.handedness}-handed",
        f"{planner.week_start}-start",
        "digital",
        "monthly",
        "weekly",
        "daily",
    ]
    tags.extend(section.title.lower().replace(" ", "-") for section in planner.custom_sections)
    unique: List[str] = []
    for tag in tags:
        if tag not in unique:
            unique.append(tag)
    return unique[:13]


def _span_label(planner: PlannerConfig) -> str:
    end_index = planner.start_month - 1 + planner.duration_months - 1
    end_year = planner.year + end_index // 12
    end_month = end_index % 12 + 1
    return f"{planner.year}-{planner.start_month:02d} to {end_year}-{end_month:02d}"


def build_metadata(planner: PlannerConfig, result: GenerationResult, slug: str) -> dict:
    counts: Dict[str, int] = {page_type.value: len(result.graph.of_type(page_type)) for page_type in PageType}
    title = (planner.cover.title if planner.cover and planner.cover.title else None) or f"{planner.year} Planner"
    return {
        "slug": slug,
        "title": title,
        "span": _span_label(planner),
        "device": planner.device,
        "orientation": planner.orientation,
        "handedness": planner.handedness,
        "page_count": result.page_count,
        "pages_by_type": counts,
        "link_count": result.link_count,
        "tags": _base_tags(planner),
    }


def write_metadata(metadata: dict, base_dir: Path | None = None, include_slug: bool = True) -> Path:
    if not metadata.get("slug"):
        raise ValueError("Metadata must include slug for output")
    path = artifact_path(metadata["slug"], "metadata", base_dir=base_dir, include_slug=include_slug)
    path.write_text(json.dumps(metadata, indent=2), encoding="utf-8")
    return path
