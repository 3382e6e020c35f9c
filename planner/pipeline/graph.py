from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterator, List, Optional, Union

from .dates import MONTH_ABBREVS, grid_weeks, month_anchors
from .errors import DuplicatePageError
from .identifiers import (
    CoverId,
    DayId,
    IndexId,
    MonthId,
    NoteId,
    PageId,
    WeekId,
    YearOverviewId,
)
from .types import PageLink, PageNode, PageType, PlannerConfig, note_metadata


logger = logging.getLogger(__name__)


class PageGraph:
    """Ordered, deduplicated pages of one planner plus an id -> position index."""

    def __init__(self) -> None:
        self._nodes: List[PageNode] = []
        self._positions: Dict[str, int] = {}

    def add_page(self, node: PageNode) -> None:
        if node.id in self._positions:
            raise DuplicatePageError(f"Page already present: {node.id}")
        self._positions[node.id] = len(self._nodes)
        self._nodes.append(node)

    def __contains__(self, page_id: Union[str, PageId]) -> bool:
        return self.position(page_id) is not None

    def __iter__(self) -> Iterator[PageNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def page_order(self) -> List[str]:
        return [node.id for node in self._nodes]

    def get(self, page_id: Union[str, PageId]) -> Optional[PageNode]:
        position = self.position(page_id)
        return None if position is None else self._nodes[position]

    def position(self, page_id: Union[str, PageId]) -> Optional[int]:
        key = page_id if isinstance(page_id, str) else page_id.format()
        return self._positions.get(key)

    def of_type(self, page_type: PageType) -> List[PageNode]:
        return [node for node in self._nodes if node.type == page_type]


def _year_links(config: PlannerConfig) -> tuple:
    page_id = YearOverviewId().format()
    return tuple(
        PageLink(
            page_id=page_id,
            label=MONTH_ABBREVS[anchor.month - 1],
            target_page_id=MonthId.of(anchor).format(),
        )
        for anchor in month_anchors(config.year, config.start_month, config.duration_months)
    )


def build_page_graph(config: PlannerConfig) -> PageGraph:
    """
    Enumerate every page of the planner in print order.

    cover, index and year overview come first, then each month followed by the
    weeks and days of its display grid that are not already present, then the
    appendix sections. A week or day shared by two month grids is added the
    first time it is seen. The caller is expected to have validated the span.
    """
    graph = PageGraph()

    graph.add_page(PageNode(id=CoverId().format(), type=PageType.COVER, title="Cover"))
    graph.add_page(PageNode(id=IndexId().format(), type=PageType.INDEX, title="Index"))

    anchors = month_anchors(config.year, config.start_month, config.duration_months)
    graph.add_page(
        PageNode(
            id=YearOverviewId().format(),
            type=PageType.YEAR,
            title=f"{config.year} Overview",
            date=anchors[0] if anchors else None,
            links=_year_links(config),
        )
    )

    for anchor in anchors:
        graph.add_page(
            PageNode(
                id=MonthId.of(anchor).format(),
                type=PageType.MONTH,
                title=anchor.strftime("%B %Y"),
                date=anchor,
            )
        )
        for week in grid_weeks(anchor.year, anchor.month, config.week_start):
            week_id = WeekId(week[0]).format()
            if week_id not in graph:
                graph.add_page(
                    PageNode(
                        id=week_id,
                        type=PageType.WEEK,
                        title=f"Week of {week[0].strftime('%b')} {week[0].day}",
                        date=week[0],
                    )
                )
            for day in week:
                day_id = DayId(day).format()
                if day_id in graph:
                    continue
                graph.add_page(
                    PageNode(
                        id=day_id,
                        type=PageType.DAY,
                        title=f"{day.strftime('%A, %B')} {day.day}, {day.year}",
                        date=day,
                    )
                )

    for section_index, section in enumerate(config.custom_sections):
        for page_index in range(section.page_count):
            graph.add_page(
                PageNode(
                    id=NoteId(section_index, page_index).format(),
                    type=PageType.NOTE,
                    title=f"{section.title} - Page {page_index + 1}",
                    metadata=MappingProxyType(note_metadata(section, page_index)),
                )
            )

    logger.info("Page graph built: %d pages", len(graph))
    return graph
