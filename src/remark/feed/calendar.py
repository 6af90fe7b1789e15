"""Calendar month builder.

Month grids are a fixed 6x7 matrix starting on the Sunday on or before the
first of the month. Month lists only ever reach back from the anchor
month; no future month is produced.
"""

from __future__ import annotations

import calendar as _stdlib_calendar
import enum
from datetime import date, timedelta

from loguru import logger

from .cache import RecordCache
from .dayid import DayId, as_date, is_future, to_day_id
from .models import CellView, DayCell, MonthDef, Window

WEEKDAYS = ("SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT")
CELLS_PER_MONTH = 42

_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class MonthOrder(enum.Enum):
    """How a month list is laid out."""

    ASCENDING = "ascending"  # oldest first, anchor month last
    DESCENDING = "descending"  # anchor month first, then further back


def _month_start(year: int, month_index: int) -> date:
    """First day of a month, normalizing month_index outside 0..11."""
    y, m = divmod(year * 12 + month_index, 12)
    return date(y, m + 1, 1)


def days_in_month(year: int, month_index: int) -> int:
    first = _month_start(year, month_index)
    return _stdlib_calendar.monthrange(first.year, first.month)[1]


def format_month_year(year: int, month_index: int) -> str:
    first = _month_start(year, month_index)
    return f"{_MONTH_NAMES[first.month - 1]} {first.year}"


def build_month_matrix(year: int, month_index: int) -> list[DayCell]:
    """Return the 42 cells of the grid for *month_index* (0-based) of *year*."""
    first = _month_start(year, month_index)
    # date.weekday(): Monday=0 .. Sunday=6; shift so Sunday=0
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    cells = []
    for i in range(CELLS_PER_MONTH):
        d = start + timedelta(days=i)
        cells.append(
            DayCell(
                iso=to_day_id(d),
                day_of_month=d.day,
                in_current_month=(d.year, d.month) == (first.year, first.month),
            )
        )
    return cells


def _month_def(anchor: date, offset: int) -> MonthDef:
    first = _month_start(anchor.year, anchor.month - 1 - offset)
    return MonthDef(
        year=first.year,
        month_index=first.month - 1,
        offset_from_current=offset,
        label=format_month_year(first.year, first.month - 1),
    )


def build_months(
    anchor_day: date | DayId,
    count: int,
    order: MonthOrder = MonthOrder.ASCENDING,
    *,
    start_offset: int = 0,
) -> list[MonthDef]:
    """Build *count* consecutive months reaching back from the anchor month.

    Args:
        anchor_day: Day whose month is offset 0 ("this month").
        count: Number of months to produce.
        order: ASCENDING puts the oldest month first and the anchor month
            last; DESCENDING starts at the anchor month.
        start_offset: Offset of the newest month to produce, for paging.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    anchor = as_date(anchor_day)
    offsets = range(start_offset, start_offset + count)
    months = [_month_def(anchor, off) for off in offsets]
    if order is MonthOrder.ASCENDING:
        months.reverse()
    return months


def calendar_cell_view(cell: DayCell, cache: RecordCache, today_id: DayId) -> CellView:
    """Resolve a grid cell for display.

    A future day is never navigable and never shows a cover, whatever the
    cache holds for it.
    """
    future = is_future(cell.iso, today_id)
    record = cache.get(cell.iso)
    cover = None
    if record is not None and record.exists and not future:
        cover = record.cover_ref
    return CellView(
        iso=cell.iso,
        day_of_month=cell.day_of_month,
        in_current_month=cell.in_current_month,
        is_today=cell.iso == today_id,
        is_future=future,
        navigable=not future,
        cover_ref=cover,
    )


class CalendarMonths:
    """Paginated list of displayed months.

    Args:
        anchor: Today's date; its month is the newest one shown.
        initial: Months in the first page.
        batch: Months appended by each :meth:`load_more_months`.
        order: Layout order of :attr:`months`.
    """

    def __init__(
        self,
        anchor: date | DayId,
        initial: int = 12,
        batch: int = 6,
        order: MonthOrder = MonthOrder.ASCENDING,
    ):
        if initial <= 0 or batch <= 0:
            raise ValueError("initial and batch must be positive")
        self.anchor = as_date(anchor)
        self.batch = batch
        self.order = order
        self._count = initial

    @property
    def count(self) -> int:
        return self._count

    @property
    def months(self) -> list[MonthDef]:
        return build_months(self.anchor, self._count, self.order)

    def load_more_months(self) -> list[MonthDef]:
        """Extend one batch further into the past; returns the new months."""
        added = build_months(self.anchor, self.batch, MonthOrder.DESCENDING, start_offset=self._count)
        self._count += self.batch
        logger.debug(f"Calendar extended to {self._count} months (back to {added[-1].label})")
        return added

    def near_end(self, visible_index: int, threshold: int = 2) -> bool:
        """True when *visible_index* is within *threshold* of the oldest month."""
        if self.order is MonthOrder.ASCENDING:
            return visible_index <= threshold
        return visible_index >= self._count - 1 - threshold

    def reanchor(self, anchor: date | DayId) -> bool:
        new_anchor = as_date(anchor)
        if (new_anchor.year, new_anchor.month) == (self.anchor.year, self.anchor.month):
            self.anchor = new_anchor
            return False
        self.anchor = new_anchor
        return True

    def window(self) -> Window:
        """Day range spanning every displayed month, for the live synchronizer."""
        oldest = _month_start(self.anchor.year, self.anchor.month - 1 - (self._count - 1))
        newest = _month_start(self.anchor.year, self.anchor.month - 1)
        newest_last = newest.replace(day=days_in_month(newest.year, newest.month - 1))
        return Window(start=to_day_id(oldest), end=to_day_id(newest_last))
