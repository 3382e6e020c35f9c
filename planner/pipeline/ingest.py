from __future__ import annotations

import base64
import binascii
import hashlib
import json
import math
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from slugify import slugify
from sqlmodel import select

from .. import config
from ..models import GenerationRun, RunStatus, get_session, init_db
from .errors import ConfigError
from .types import CoverSpec, CustomSection, PlannerConfig, Theme


HEX_COLOR = re.compile(r"^#?[0-9a-fA-F]{6}$")


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigError(f"{name} must be a whole number, got {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise ConfigError(f"{name} must be a finite number")
    return number


def _as_object(value: Any, name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be an object")
    return value


def _as_text(value: Any, name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{name} must be a string")
    return value


def _load_image(value: str, base_dir: Optional[Path]) -> bytes:
    if value.startswith("data:"):
        _, _, payload = value.partition(",")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ConfigError("Cover image data URL is not valid base64") from exc
    path = Path(value)
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    if not path.exists():
        raise ConfigError(f"Cover image not found: {path}")
    return path.read_bytes()


def config_from_dict(data: Dict[str, Any], base_dir: Optional[Path] = None) -> PlannerConfig:
    """Build a PlannerConfig from JSON-style data (camelCase or snake_case keys)."""
    if not isinstance(data, dict):
        raise ConfigError("Planner config must be a JSON object")
    if _pick(data, "year") is None:
        raise ConfigError("Planner config is missing 'year'")

    theme_data = _as_object(_pick(data, "theme"), "theme")
    theme = Theme(
        accent_color=str(_pick(theme_data, "accentColor", "accent_color", default=config.DEFAULT_ACCENT)),
        font=str(_pick(theme_data, "font", default=config.DEFAULT_FONT)),
        line_height=_as_float(
            _pick(theme_data, "lineHeight", "line_height", default=config.DEFAULT_LINE_HEIGHT), "lineHeight"
        ),
    )

    raw_sections = _pick(data, "customSections", "custom_sections", default=[])
    if not isinstance(raw_sections, list):
        raise ConfigError("customSections must be a list")
    sections = []
    for raw in raw_sections:
        if not isinstance(raw, dict):
            raise ConfigError("Each custom section must be an object")
        sections.append(
            CustomSection(
                title=(_as_text(_pick(raw, "title"), "Section title") or "").strip(),
                page_count=_as_int(_pick(raw, "pageCount", "page_count", default=1), "pageCount"),
                template=str(_pick(raw, "template", default="lined")),
            )
        )

    cover = None
    cover_data = _as_object(_pick(data, "cover"), "cover")
    if cover_data:
        image = _as_text(_pick(cover_data, "image"), "Cover image")
        cover = CoverSpec(
            title=_as_text(_pick(cover_data, "title"), "Cover title") or None,
            subtitle=_as_text(_pick(cover_data, "subtitle"), "Cover subtitle") or None,
            image=_load_image(image, base_dir) if image else None,
        )

    return PlannerConfig(
        year=_as_int(_pick(data, "year"), "year"),
        start_month=_as_int(_pick(data, "startMonth", "start_month", default=1), "startMonth"),
        duration_months=_as_int(_pick(data, "durationMonths", "duration_months", default=12), "durationMonths"),
        week_start=str(_pick(data, "weekStart", "week_start", default="sunday")).lower(),
        device=str(_pick(data, "device", default="tab-s")).lower(),
        orientation=str(_pick(data, "orientation", default="portrait")).lower(),
        handedness=str(_pick(data, "handedness", default="right")).lower(),
        theme=theme,
        custom_sections=tuple(sections),
        cover=cover,
    )


def validate_config(planner: PlannerConfig) -> PlannerConfig:
    """
    Reject configurations the engine must not build. Returns the config with
    the theme font normalised to its reportlab name.
    """
    lo, hi = config.YEAR_RANGE
    if not lo <= planner.year <= hi:
        raise ConfigError(f"year must be between {lo} and {hi}")
    if not 1 <= planner.start_month <= 12:
        raise ConfigError("startMonth must be between 1 and 12")
    lo, hi = config.DURATION_RANGE
    if not lo <= planner.duration_months <= hi:
        raise ConfigError(f"durationMonths must be between {lo} and {hi}")
    if planner.week_start not in config.WEEK_STARTS:
        raise ConfigError(f"weekStart must be one of {', '.join(config.WEEK_STARTS)}")
    if planner.device not in config.DEVICES:
        raise ConfigError(f"Unknown device: {planner.device}")
    if planner.orientation not in config.ORIENTATIONS:
        raise ConfigError(f"Unknown orientation: {planner.orientation}")
    if planner.device not in config.ENABLED_DEVICES:
        raise ConfigError(f"Device not supported yet: {planner.device}")
    if planner.orientation not in config.ENABLED_ORIENTATIONS:
        raise ConfigError(f"Orientation not supported yet: {planner.orientation}")
    if planner.handedness not in config.HANDEDNESS:
        raise ConfigError(f"handedness must be one of {', '.join(config.HANDEDNESS)}")

    theme = planner.theme
    if not HEX_COLOR.match(theme.accent_color):
        raise ConfigError(f"accentColor must be a hex colour, got {theme.accent_color!r}")
    font = config.FONTS.get(theme.font.lower()) if theme.font else None
    if font is None and theme.font in config.FONTS.values():
        font = theme.font
    if font is None:
        raise ConfigError(f"Unsupported font: {theme.font}")
    lo, hi = config.LINE_HEIGHT_RANGE
    if not lo <= theme.line_height <= hi:
        raise ConfigError(f"lineHeight must be between {lo} and {hi}")

    lo, hi = config.SECTION_PAGE_RANGE
    for section in planner.custom_sections:
        if not section.title:
            raise ConfigError("Custom sections need a title")
        if not lo <= section.page_count <= hi:
            raise ConfigError(f"Section '{section.title}' pageCount must be between {lo} and {hi}")
        if section.template not in config.TEMPLATES:
            raise ConfigError(f"Section '{section.title}' has unknown template: {section.template}")

    accent = "#" + theme.accent_color.lstrip("#")
    if font == theme.font and accent == theme.accent_color:
        return planner
    return replace(planner, theme=Theme(accent_color=accent, font=font, line_height=theme.line_height))


def load_config(path: Path) -> PlannerConfig:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config is not valid JSON: {exc}") from exc
    return validate_config(config_from_dict(data, base_dir=path.parent))


def config_to_dict(planner: PlannerConfig) -> Dict[str, Any]:
    """JSON-safe view of a config; the cover image is reduced to its size."""
    data: Dict[str, Any] = {
        "year": planner.year,
        "startMonth": planner.start_month,
        "durationMonths": planner.duration_months,
        "weekStart": planner.week_start,
        "device": planner.device,
        "orientation": planner.orientation,
        "handedness": planner.handedness,
        "theme": {
            "accentColor": planner.theme.accent_color,
            "font": planner.theme.font,
            "lineHeight": planner.theme.line_height,
        },
        "customSections": [
            {"title": s.title, "pageCount": s.page_count, "template": s.template}
            for s in planner.custom_sections
        ],
    }
    if planner.cover is not None:
        data["cover"] = {
            "title": planner.cover.title,
            "subtitle": planner.cover.subtitle,
            "imageBytes": len(planner.cover.image) if planner.cover.image else 0,
        }
    return data


def slug_for(planner: PlannerConfig) -> str:
    raw = f"planner-{planner.year}-{planner.device}-{planner.orientation}"
    slug = slugify(raw)
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5(raw.encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from config")
    return slug


def register_run(config_path: Path) -> GenerationRun:
    """Validate a config file and queue it in the run ledger as DRAFT."""
    init_db()
    planner = load_config(config_path)
    run = GenerationRun(
        slug=slug_for(planner),
        config_path=str(config_path.resolve()),
        config_json=json.dumps(config_to_dict(planner), sort_keys=True),
        status=RunStatus.DRAFT,
    )
    with get_session() as session:
        session.add(run)
        session.commit()
        session.refresh(run)
    return run


def list_runs(statuses: Iterable[RunStatus]) -> List[GenerationRun]:
    init_db()
    with get_session() as session:
        statement = select(GenerationRun)
        if statuses:
            statement = statement.where(GenerationRun.status.in_(list(statuses)))
        return list(session.exec(statement))
