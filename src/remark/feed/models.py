"""Core data models for the day feed.

Plain dataclasses and enums shared by the cache, synchronizer, resolver,
calendar builder and view-mode state machine.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date

from .dayid import DayId, days_ago, to_day_id, validate_day_id


class Resolution(enum.Enum):
    """What the cache knows about a day."""

    UNRESOLVED = "unresolved"  # no cache entry, nobody has looked yet
    ABSENT = "absent"  # confirmed missing upstream
    PRESENT = "present"  # a record exists


@dataclass(frozen=True)
class DayRecord:
    """Cache entry for one day.

    ``exists=False`` means the day was looked up and has no record. A day
    with no cache entry at all is *unknown*; the two must never be merged.

    Attributes:
        exists: Whether the Record Store holds a record for the day.
        cover_ref: Feed cover reference (thumbnail preferred), if any.
        title: Record title, if any.
    """

    exists: bool
    cover_ref: str | None = None
    title: str | None = None

    @classmethod
    def absent(cls) -> DayRecord:
        return cls(exists=False)

    @classmethod
    def present(cls, cover_ref: str | None = None, title: str | None = None) -> DayRecord:
        return cls(exists=True, cover_ref=cover_ref, title=title)

    @property
    def resolution(self) -> Resolution:
        return Resolution.PRESENT if self.exists else Resolution.ABSENT


@dataclass(frozen=True)
class Window:
    """Inclusive ``[start, end]`` range of days kept live by subscription."""

    start: DayId
    end: DayId

    def __post_init__(self):
        validate_day_id(self.start)
        validate_day_id(self.end)
        if self.start > self.end:
            raise ValueError(f"Window start {self.start} is after end {self.end}")

    @classmethod
    def trailing(cls, anchor: date, days: int) -> Window:
        """The *days* most recent days ending at (and including) *anchor*."""
        if days <= 0:
            raise ValueError("days must be positive")
        return cls(start=to_day_id(days_ago(anchor, days - 1)), end=to_day_id(anchor))

    def contains(self, day_id: DayId) -> bool:
        return self.start <= day_id <= self.end

    def __str__(self) -> str:
        return f"[{self.start} .. {self.end}]"


@dataclass(frozen=True)
class MonthDef:
    """A calendar month to display.

    Attributes:
        year: Four-digit year.
        month_index: Zero-based month (0 = January).
        offset_from_current: 0 for the anchor month, 1 for the one before, ...
        label: Human label, e.g. ``October 2026``.
    """

    year: int
    month_index: int
    offset_from_current: int
    label: str = ""

    @property
    def key(self) -> str:
        return f"{self.year}-{self.month_index}"


@dataclass(frozen=True)
class DayCell:
    """One cell of a 6x7 month grid."""

    iso: DayId
    day_of_month: int
    in_current_month: bool


@dataclass(frozen=True)
class CellView:
    """A calendar cell resolved against the cache for rendering."""

    iso: DayId
    day_of_month: int
    in_current_month: bool
    is_today: bool
    is_future: bool
    navigable: bool
    cover_ref: str | None


class ViewMode(enum.IntEnum):
    """Feed renderers, ordered from widest to narrowest unit of display."""

    CALENDAR = 0
    GRID = 1
    LIST = 2

    @classmethod
    def parse(cls, value: str | ViewMode) -> ViewMode:
        if isinstance(value, ViewMode):
            return value
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown view mode: {value!r}") from None


class Direction(enum.Enum):
    """Which way a view-mode transition moved along the mode order."""

    FORWARD = "forward"
    BACKWARD = "backward"
