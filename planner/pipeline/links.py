from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Union

from .identifiers import PageId
from .types import LinkRequest, Rect


logger = logging.getLogger(__name__)

Resolve = Callable[[str], Optional[Any]]


class LinkCollector:
    """
    Collects the link requests of one source page.

    A target that does not resolve to a page handle is dropped: calendar
    boundaries (the day before January 1, a month outside the span) are
    expected to produce such gaps.
    """

    def __init__(self, source_id: str, resolve: Resolve) -> None:
        self.source_id = source_id
        self._resolve = resolve
        self.requests: List[LinkRequest] = []
        self.dropped: List[str] = []

    def link(self, rect: Rect, target: Union[str, PageId]) -> bool:
        target_id = target if isinstance(target, str) else target.format()
        if self._resolve(target_id) is None:
            logger.debug("Dropping link %s -> %s (no such page)", self.source_id, target_id)
            self.dropped.append(target_id)
            return False
        x1, y1, x2, y2 = rect
        self.requests.append(
            LinkRequest(
                source_id=self.source_id,
                rect=(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2)),
                target_id=target_id,
            )
        )
        return True
