"""Temporal feed engine.

Day identifiers, the record cache, the live window synchronizer, the lazy
resolver, calendar month grids and the view-mode state machine.
"""

from .cache import RecordCache
from .calendar import CalendarMonths, MonthOrder, build_month_matrix, build_months, calendar_cell_view
from .dayid import DayId, format_mdy, parse_day_id, shift_day, to_day_id, to_parts, today_utc
from .engine import FeedEngine
from .models import CellView, DayCell, DayRecord, Direction, MonthDef, Resolution, ViewMode, Window
from .resolver import LazyResolver
from .screen import FeedScreen
from .sequence import DateSequence, seed_page
from .sync import LiveWindowSynchronizer
from .viewmode import PinchGesture

__all__ = [
    "CalendarMonths",
    "CellView",
    "DateSequence",
    "DayCell",
    "DayId",
    "DayRecord",
    "Direction",
    "FeedEngine",
    "FeedScreen",
    "LazyResolver",
    "LiveWindowSynchronizer",
    "MonthDef",
    "MonthOrder",
    "PinchGesture",
    "RecordCache",
    "Resolution",
    "ViewMode",
    "Window",
    "build_month_matrix",
    "build_months",
    "calendar_cell_view",
    "format_mdy",
    "parse_day_id",
    "seed_page",
    "shift_day",
    "to_day_id",
    "to_parts",
    "today_utc",
]
