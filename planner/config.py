from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple
import json


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = BASE_DIR / "out"
DB_PATH = OUT_DIR / "planner.db"
STYLE_PRESET_PATH = Path(__file__).resolve().parent / "assets" / "style_preset.json"

# Recognised by the geometry resolver; only the enabled subset may be generated.
DEVICES = ("tab-s", "fold", "standard")
ORIENTATIONS = ("portrait", "landscape")
ENABLED_DEVICES = {"tab-s"}
ENABLED_ORIENTATIONS = {"portrait"}

HANDEDNESS = ("left", "right")
WEEK_STARTS = ("sunday", "monday")
TEMPLATES = ("lined", "dotted", "blank")

YEAR_RANGE: Tuple[int, int] = (1900, 2100)
DURATION_RANGE: Tuple[int, int] = (1, 24)
LINE_HEIGHT_RANGE: Tuple[float, float] = (1.0, 2.0)
SECTION_PAGE_RANGE: Tuple[int, int] = (1, 200)

# Theme font names map onto the reportlab standard fonts.
FONTS: Dict[str, str] = {
    "helvetica": "Helvetica",
    "times": "Times-Roman",
    "times-roman": "Times-Roman",
    "courier": "Courier",
}

DEFAULT_ACCENT = "#3b82f6"
DEFAULT_FONT = "Helvetica"
DEFAULT_LINE_HEIGHT = 1.2


def load_style_preset() -> dict:
    with STYLE_PRESET_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "planner.db"
