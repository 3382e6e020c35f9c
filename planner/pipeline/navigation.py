"""
Navigation overlay: month side tabs, the contextual icon row and the appendix
quick-links. The model only computes positions and targets; drawing lives in
render_pdf and link resolution in LinkCollector.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from reportlab.pdfbase.pdfmetrics import stringWidth

from .dates import MONTH_ABBREVS, month_anchors
from .geometry import GeometryProfile
from .identifiers import DayId, IndexId, MonthId, NoteId, WeekId, YearOverviewId
from .links import LinkCollector
from .types import PageNode, PageType, PlannerConfig, Rect


ICON_SIZE = 16.0
ICON_GAP = 20.0
ICON_HIT_PADDING = 5.0
ICON_ROW_OFFSET = 12.0

APPENDIX_FONT_SIZE = 10.0
APPENDIX_LABEL_CHARS = 8
APPENDIX_OFFSET = 20.0
APPENDIX_GAP = 15.0

TAB_FONT_SIZE = 10.0

# One colour per month, winter through autumn.
SEASONAL_PALETTE: Tuple[Tuple[float, float, float], ...] = (
    (0.90, 0.92, 0.95),  # Jan cool grey
    (0.85, 0.90, 0.95),  # Feb pale blue
    (0.70, 0.80, 0.95),  # Mar bluebonnet
    (0.85, 0.70, 0.90),  # Apr wildflower
    (0.70, 0.90, 0.70),  # May fresh green
    (0.95, 0.90, 0.60),  # Jun sunny yellow
    (0.95, 0.80, 0.60),  # Jul bright orange
    (0.95, 0.70, 0.60),  # Aug hot orange
    (0.90, 0.60, 0.40),  # Sep burnt orange
    (0.95, 0.70, 0.40),  # Oct pumpkin
    (0.85, 0.75, 0.65),  # Nov harvest brown
    (0.95, 0.95, 0.98),  # Dec icy white
)


@dataclass(frozen=True)
class MonthTab:
    label: str
    color: Tuple[float, float, float]
    rect: Rect
    rotation: float
    target_id: str

    @property
    def center(self) -> Tuple[float, float]:
        x1, y1, x2, y2 = self.rect
        return (x1 + x2) / 2, (y1 + y2) / 2


@dataclass(frozen=True)
class NavIcon:
    name: str       # home | year | month | week | prev | next
    x: float
    y: float
    size: float
    target_id: str

    @property
    def hit_rect(self) -> Rect:
        pad = ICON_HIT_PADDING
        return (self.x - pad, self.y - pad, self.x + self.size + pad, self.y + self.size + pad)


@dataclass(frozen=True)
class AppendixLabel:
    label: str
    x: float
    y: float
    width: float
    hit_rect: Rect
    target_id: str


@dataclass(frozen=True)
class NavigationOverlay:
    tabs: Tuple[MonthTab, ...]
    icons: Tuple[NavIcon, ...]
    appendix: Tuple[AppendixLabel, ...]
    group_start_x: float

    def emit_links(self, collector: LinkCollector) -> None:
        for tab in self.tabs:
            collector.link(tab.rect, tab.target_id)
        for icon in self.icons:
            collector.link(icon.hit_rect, icon.target_id)
        for label in self.appendix:
            collector.link(label.hit_rect, label.target_id)


def _tab_targets(planner: PlannerConfig) -> List[str]:
    """Tab i jumps to the first month of the span numbered i + 1."""
    first_seen: Dict[int, str] = {}
    for anchor in month_anchors(planner.year, planner.start_month, planner.duration_months):
        first_seen.setdefault(anchor.month, MonthId.of(anchor).format())
    return [first_seen.get(month, MonthId(planner.year, month).format()) for month in range(1, 13)]


def month_tabs(planner: PlannerConfig, geometry: GeometryProfile) -> Tuple[MonthTab, ...]:
    band = geometry.content_height / 12
    if geometry.tab_side == "right":
        x = geometry.width - geometry.tab_width
        rotation = -90.0
    else:
        x = 0.0
        rotation = 90.0
    tabs: List[MonthTab] = []
    for index, target_id in enumerate(_tab_targets(planner)):
        top = geometry.height - geometry.margin_top - index * band
        tabs.append(
            MonthTab(
                label=MONTH_ABBREVS[index],
                color=SEASONAL_PALETTE[index],
                rect=(x, top - band, x + geometry.tab_width, top),
                rotation=rotation,
                target_id=target_id,
            )
        )
    return tuple(tabs)


def icon_targets(node: PageNode, planner: PlannerConfig) -> List[Tuple[str, str]]:
    targets = [
        ("home", IndexId().format()),
        ("year", YearOverviewId().format()),
    ]
    if node.date is None:
        return targets
    targets.append(("month", MonthId.of(node.date).format()))
    targets.append(("week", WeekId.containing(node.date, planner.week_start).format()))
    previous_day = node.date - timedelta(days=1)
    if previous_day.year == planner.year:
        targets.append(("prev", DayId(previous_day).format()))
    next_day = node.date + timedelta(days=1)
    if next_day.year == planner.year:
        targets.append(("next", DayId(next_day).format()))
    return targets


def icon_row_y(geometry: GeometryProfile) -> float:
    return geometry.height - geometry.margin_top + ICON_ROW_OFFSET


def appendix_labels(
    planner: PlannerConfig,
    group_start_x: float,
    top_y: float,
    font_name: Optional[str] = None,
) -> Tuple[AppendixLabel, ...]:
    font = font_name or planner.theme.font
    labels: List[AppendixLabel] = []
    cursor = group_start_x - APPENDIX_OFFSET
    sections = list(enumerate(planner.custom_sections))
    for section_index, section in reversed(sections):
        text = section.title[:APPENDIX_LABEL_CHARS]
        width = stringWidth(text, font, APPENDIX_FONT_SIZE)
        cursor -= width
        labels.append(
            AppendixLabel(
                label=text,
                x=cursor,
                y=top_y + 4,
                width=width,
                hit_rect=(cursor, top_y, cursor + width, top_y + ICON_SIZE),
                target_id=NoteId(section_index, 0).format(),
            )
        )
        cursor -= APPENDIX_GAP
    return tuple(labels)


def build_overlay(node: PageNode, planner: PlannerConfig, geometry: GeometryProfile) -> Optional[NavigationOverlay]:
    """Overlay for one page, or None for the cover which carries no navigation."""
    if node.type == PageType.COVER:
        return None

    top_y = icon_row_y(geometry)
    targets = icon_targets(node, planner)
    total_width = len(targets) * (ICON_SIZE + ICON_GAP) - ICON_GAP
    group_start_x = geometry.width - geometry.margin_right - total_width

    icons = tuple(
        NavIcon(
            name=name,
            x=group_start_x + index * (ICON_SIZE + ICON_GAP),
            y=top_y,
            size=ICON_SIZE,
            target_id=target_id,
        )
        for index, (name, target_id) in enumerate(targets)
    )
    return NavigationOverlay(
        tabs=month_tabs(planner, geometry),
        icons=icons,
        appendix=appendix_labels(planner, group_start_x, top_y),
        group_start_x=group_start_x,
    )
