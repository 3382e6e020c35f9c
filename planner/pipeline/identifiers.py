"""
Page identifiers.

Every page has a string id that is both the graph's dedup key and the lookup
key used when resolving links. The typed ids below are the only place those
strings are built or taken apart:

    cover                      CoverId
    index                      IndexId
    year-overview              YearOverviewId
    month-2025-01              MonthId(2025, 1)
    week-2024-12-29            WeekId(date(2024, 12, 29))
    2025-01-01                 DayId(date(2025, 1, 1))
    section-0-page-2           NoteId(0, 2)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Union

from .dates import week_start_of


@dataclass(frozen=True)
class CoverId:
    def format(self) -> str:
        return "cover"


@dataclass(frozen=True)
class IndexId:
    def format(self) -> str:
        return "index"


@dataclass(frozen=True)
class YearOverviewId:
    def format(self) -> str:
        return "year-overview"


@dataclass(frozen=True)
class MonthId:
    year: int
    month: int

    @classmethod
    def of(cls, day: date) -> "MonthId":
        return cls(day.year, day.month)

    def format(self) -> str:
        return f"month-{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class WeekId:
    start: date

    @classmethod
    def containing(cls, day: date, week_start: str) -> "WeekId":
        return cls(week_start_of(day, week_start))

    def format(self) -> str:
        return f"week-{self.start.isoformat()}"


@dataclass(frozen=True)
class DayId:
    day: date

    def format(self) -> str:
        return self.day.isoformat()


@dataclass(frozen=True)
class NoteId:
    section_index: int
    page_index: int

    def format(self) -> str:
        return f"section-{self.section_index}-page-{self.page_index}"


PageId = Union[CoverId, IndexId, YearOverviewId, MonthId, WeekId, DayId, NoteId]

_FIXED = {
    "cover": CoverId(),
    "index": IndexId(),
    "year-overview": YearOverviewId(),
}
_MONTH_RE = re.compile(r"^month-(\d{4})-(\d{2})$")
_WEEK_RE = re.compile(r"^week-(\d{4}-\d{2}-\d{2})$")
_DAY_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})$")
_NOTE_RE = re.compile(r"^section-(\d+)-page-(\d+)$")


def parse_page_id(text: str) -> PageId:
    if text in _FIXED:
        return _FIXED[text]
    try:
        match = _MONTH_RE.match(text)
        if match:
            month = MonthId(int(match.group(1)), int(match.group(2)))
            date(month.year, month.month, 1)
            return month
        match = _WEEK_RE.match(text)
        if match:
            return WeekId(date.fromisoformat(match.group(1)))
        match = _DAY_RE.match(text)
        if match:
            return DayId(date.fromisoformat(match.group(1)))
    except ValueError as exc:
        raise ValueError(f"Invalid page id: {text!r}") from exc
    match = _NOTE_RE.match(text)
    if match:
        return NoteId(int(match.group(1)), int(match.group(2)))
    raise ValueError(f"Invalid page id: {text!r}")
