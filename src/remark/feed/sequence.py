"""Infinite backward sequence of day identifiers.

The sequence is independent of which days have records: page ``p`` holds
``page_size`` consecutive days counting back from the anchor, so
``seed_page(p, n, anchor)[i] == anchor - (p * n + i)`` days.
"""

from __future__ import annotations

from datetime import date

from loguru import logger

from .dayid import DayId, as_date, days_ago, to_day_id


def seed_page(page_index: int, page_size: int, anchor_day: date | DayId) -> list[DayId]:
    """Return page *page_index* of the day sequence ending at *anchor_day*.

    Raises:
        ValueError: If *page_index* is negative or *page_size* is not positive.
        InvalidDayIdError: If *anchor_day* is a malformed day id string.
    """
    if page_index < 0:
        raise ValueError(f"page_index must be >= 0, got {page_index}")
    if page_size <= 0:
        raise ValueError(f"page_size must be > 0, got {page_size}")
    anchor = as_date(anchor_day)
    start_offset = page_index * page_size
    return [to_day_id(days_ago(anchor, start_offset + i)) for i in range(page_size)]


class DateSequence:
    """Append-only paginated day list anchored at "today".

    ``load_more()`` bumps the page counter before extending, so a caller
    that fires it repeatedly never requests the same page twice.
    """

    def __init__(self, page_size: int = 90, anchor: date | DayId | None = None):
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")
        self.page_size = page_size
        self._anchor = as_date(anchor) if anchor is not None else None
        self._days: list[DayId] = []
        self._pages_loaded = -1
        if self._anchor is not None:
            self._seed()

    def _seed(self) -> None:
        self._days = seed_page(0, self.page_size, self._anchor)
        self._pages_loaded = 0

    @property
    def anchor(self) -> date | None:
        return self._anchor

    @property
    def pages_loaded(self) -> int:
        """Index of the last page appended (0 after seeding, -1 before)."""
        return self._pages_loaded

    @property
    def days(self) -> list[DayId]:
        return list(self._days)

    def __len__(self) -> int:
        return len(self._days)

    def __iter__(self):
        return iter(self._days)

    def __getitem__(self, index):
        return self._days[index]

    def load_more(self) -> list[DayId]:
        """Append the next page and return it."""
        if self._anchor is None:
            raise RuntimeError("DateSequence has no anchor; call reanchor() first")
        page = self._pages_loaded + 1
        self._pages_loaded = page
        next_days = seed_page(page, self.page_size, self._anchor)
        self._days.extend(next_days)
        logger.debug(f"Loaded page {page}: {next_days[0]} .. {next_days[-1]}")
        return next_days

    def reanchor(self, anchor: date | DayId) -> bool:
        """Restart the sequence at *anchor*. Returns False when unchanged."""
        new_anchor = as_date(anchor)
        if new_anchor == self._anchor:
            return False
        self._anchor = new_anchor
        self._seed()
        logger.info(f"Day sequence re-anchored at {to_day_id(new_anchor)}")
        return True
