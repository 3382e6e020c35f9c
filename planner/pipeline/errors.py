from __future__ import annotations

from typing import Optional


class ConfigError(ValueError):
    """Raised when a planner configuration is rejected before any page is built."""


class DuplicatePageError(ValueError):
    pass


class WriterError(RuntimeError):
    """The document writer could not draw, embed or encode."""


class GenerationError(RuntimeError):
    def __init__(self, stage: str, message: str, page_id: Optional[str] = None) -> None:
        self.stage = stage
        self.page_id = page_id
        self.detail = message
        where = f"{stage} ({page_id})" if page_id else stage
        super().__init__(f"{where}: {message}")
