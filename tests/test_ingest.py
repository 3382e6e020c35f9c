from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest

from planner.pipeline.errors import ConfigError
from planner.pipeline.ingest import config_from_dict, config_to_dict, load_config, validate_config
from planner.pipeline.types import PlannerConfig, Theme


def test_camel_case_config() -> None:
    planner = config_from_dict(
        {
            "year": 2025,
            "startMonth": 3,
            "durationMonths": 6,
            "weekStart": "Monday",
            "handedness": "left",
            "theme": {"accentColor": "#ff0000", "font": "courier", "lineHeight": 1.5},
            "customSections": [{"title": " Journal ", "pageCount": 4, "template": "dotted"}],
            "cover": {"title": "Mine", "image": "data:image/png;base64,aGVsbG8="},
        }
    )
    assert planner.start_month == 3
    assert planner.duration_months == 6
    assert planner.week_start == "monday"
    assert planner.handedness == "left"
    assert planner.theme.line_height == 1.5
    assert planner.custom_sections[0].title == "Journal"
    assert planner.custom_sections[0].page_count == 4
    assert planner.cover.image == b"hello"
    assert planner.cover.subtitle is None


def test_snake_case_and_defaults() -> None:
    planner = config_from_dict({"year": "2026", "duration_months": 2})
    assert planner == PlannerConfig(year=2026, duration_months=2)


def test_missing_year_and_bad_values() -> None:
    with pytest.raises(ConfigError):
        config_from_dict({"startMonth": 1})
    with pytest.raises(ConfigError):
        config_from_dict({"year": "next"})
    with pytest.raises(ConfigError):
        config_from_dict({"year": 2025, "customSections": ["Journal"]})
    with pytest.raises(ConfigError):
        config_from_dict({"year": 2025, "cover": {"image": "data:image/png;base64,@@@"}})
    with pytest.raises(ConfigError):
        config_from_dict([2025])  # type: ignore[arg-type]


def test_cover_image_path_is_relative_to_config() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        base = Path(temp_dir)
        (base / "cover.png").write_bytes(b"png-bytes")
        planner = config_from_dict({"year": 2025, "cover": {"image": "cover.png"}}, base_dir=base)
        assert planner.cover.image == b"png-bytes"
        with pytest.raises(ConfigError):
            config_from_dict({"year": 2025, "cover": {"image": "missing.png"}}, base_dir=base)


def test_validate_normalises_theme() -> None:
    planner = validate_config(PlannerConfig(year=2025, theme=Theme(accent_color="3B82F6", font="times")))
    assert planner.theme.accent_color == "#3B82F6"
    assert planner.theme.font == "Times-Roman"

    unchanged = PlannerConfig(year=2025)
    assert validate_config(unchanged) is unchanged


def test_load_config_errors() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "planner.json"
        with pytest.raises(FileNotFoundError):
            load_config(path)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)
        path.write_text(json.dumps({"year": 2025, "device": "fold"}), encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)
        path.write_text(json.dumps({"year": 2025}), encoding="utf-8")
        assert load_config(path).year == 2025


def test_config_to_dict_reduces_cover_image() -> None:
    planner = config_from_dict({"year": 2025, "cover": {"title": "Mine", "image": "data:image/png;base64,aGVsbG8="}})
    data = config_to_dict(planner)
    assert data["cover"] == {"title": "Mine", "subtitle": None, "imageBytes": 5}
    assert data["theme"]["accentColor"] == "#3b82f6"
    json.dumps(data)


@pytest.mark.parametrize(
    "data",
    [
        {"year": 2025, "theme": {"lineHeight": "tall"}},
        {"year": 2025, "theme": {"lineHeight": True}},
        {"year": 2025, "theme": "dark"},
        {"year": 2025, "customSections": [{"title": "Journal", "pageCount": 2.7}]},
        {"year": 2025, "customSections": {"title": "Journal"}},
        {"year": 2025, "customSections": [{"title": 7}]},
        {"year": 2025, "durationMonths": 1.5},
        {"year": 2025, "cover": "just a string"},
        {"year": 2025, "cover": {"title": ["My", "Year"]}},
    ],
)
def test_wrongly_typed_values_are_config_errors(data) -> None:
    with pytest.raises(ConfigError):
        config_from_dict(data)


def test_whole_number_floats_and_numeric_strings_are_accepted() -> None:
    planner = config_from_dict(
        {
            "year": 2025.0,
            "durationMonths": "3",
            "theme": {"lineHeight": "1.5"},
            "customSections": [{"title": "Journal", "pageCount": 4.0}],
        }
    )
    assert planner.year == 2025
    assert planner.duration_months == 3
    assert planner.theme.line_height == 1.5
    assert planner.custom_sections[0].page_count == 4
