from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .. import config


class PageType(str, Enum):
    COVER = "cover"
    INDEX = "index"
    YEAR = "year"
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    NOTE = "note"


@dataclass(frozen=True)
class Theme:
    accent_color: str = config.DEFAULT_ACCENT
    font: str = config.DEFAULT_FONT
    line_height: float = config.DEFAULT_LINE_HEIGHT


@dataclass(frozen=True)
class CustomSection:
    title: str
    page_count: int
    template: str = "lined"   # lined | dotted | blank


@dataclass(frozen=True)
class CoverSpec:
    title: Optional[str] = None
    subtitle: Optional[str] = None
    image: Optional[bytes] = field(default=None, repr=False)


@dataclass(frozen=True)
class PlannerConfig:
    year: int
    start_month: int = 1
    duration_months: int = 12
    week_start: str = "sunday"
    device: str = "tab-s"
    orientation: str = "portrait"
    handedness: str = "right"
    theme: Theme = field(default_factory=Theme)
    custom_sections: Tuple[CustomSection, ...] = ()
    cover: Optional[CoverSpec] = None


@dataclass(frozen=True)
class PageLink:
    page_id: str
    label: str
    target_page_id: str


@dataclass(frozen=True)
class PageNode:
    id: str
    type: PageType
    title: str
    date: Optional[date] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    links: Tuple[PageLink, ...] = ()


Rect = Tuple[float, float, float, float]


@dataclass(frozen=True)
class LinkRequest:
    source_id: str
    rect: Rect          # x1, y1, x2, y2 in points, bottom-left origin
    target_id: str


@dataclass(frozen=True)
class ProgressEvent:
    current: int
    total: int
    message: str

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return round(self.current * 100 / self.total)


def note_metadata(section: CustomSection, page_index: int) -> Dict[str, Any]:
    return {
        "sectionTitle": section.title,
        "template": section.template,
        "pageIndex": page_index,
        "totalPages": section.page_count,
    }
