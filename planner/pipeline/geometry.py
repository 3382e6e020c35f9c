"""Pure page geometry shared by every page recipe."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Tuple

from .. import config
from .types import PlannerConfig, Rect


# (portrait width, portrait height); landscape swaps them.
DEVICE_SIZES: Dict[str, Tuple[float, float]] = {
    "tab-s": (600.0, 960.0),
    "fold": (600.0, 750.0),
    "standard": (595.0, 842.0),
}

# Safe zones kept clear of the tablet's own toolbars.
SAFE_MARGIN_Y = 50.0
SAFE_MARGIN_X = 20.0

SIDE_TAB_WIDTH = 40.0
TOP_TAB_HEIGHT = 30.0


def round2(value: float) -> float:
    """Round half away from zero at the hundredths place."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class GeometryProfile:
    width: float
    height: float
    margin_top: float
    margin_bottom: float
    margin_left: float
    margin_right: float
    content_width: float
    content_height: float
    tab_width: float
    tab_height: float
    tab_side: str

    @property
    def page_size(self) -> Tuple[float, float]:
        return self.width, self.height

    @property
    def content_rect(self) -> Rect:
        return (
            self.margin_left,
            self.margin_bottom,
            self.margin_left + self.content_width,
            self.margin_bottom + self.content_height,
        )

    @property
    def content_top(self) -> float:
        return self.margin_bottom + self.content_height


def resolve_geometry(device: str, orientation: str, handedness: str) -> GeometryProfile:
    if device not in DEVICE_SIZES:
        raise ValueError(f"Unknown device: {device}")
    if orientation not in config.ORIENTATIONS:
        raise ValueError(f"Unknown orientation: {orientation}")
    if handedness not in config.HANDEDNESS:
        raise ValueError(f"Unknown handedness: {handedness}")

    width, height = DEVICE_SIZES[device]
    if orientation == "landscape":
        width, height = height, width

    # The tab strip sits on the side away from the writing hand.
    tab_side = "left" if handedness == "right" else "right"
    margin_left = SAFE_MARGIN_X + (SIDE_TAB_WIDTH if tab_side == "left" else 0.0)
    margin_right = SAFE_MARGIN_X + (SIDE_TAB_WIDTH if tab_side == "right" else 0.0)
    margin_top = TOP_TAB_HEIGHT + SAFE_MARGIN_Y
    margin_bottom = SAFE_MARGIN_Y

    return GeometryProfile(
        width=round2(width),
        height=round2(height),
        margin_top=round2(margin_top),
        margin_bottom=round2(margin_bottom),
        margin_left=round2(margin_left),
        margin_right=round2(margin_right),
        content_width=round2(width - margin_left - margin_right),
        content_height=round2(height - margin_top - margin_bottom),
        tab_width=round2(SIDE_TAB_WIDTH),
        tab_height=round2(TOP_TAB_HEIGHT),
        tab_side=tab_side,
    )


def geometry_for(planner: PlannerConfig) -> GeometryProfile:
    return resolve_geometry(planner.device, planner.orientation, planner.handedness)
