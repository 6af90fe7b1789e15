"""Feed screen — wires the engine, calendar months and view mode together.

The screen decides which window the engine keeps live: the trailing
``days_window`` days for grid and list, the whole displayed month range
for the calendar. It also re-establishes the live subscription whenever
the engine reports that it failed.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from loguru import logger

from remark.core.config import Config
from remark.core.events import (
    SCREEN_MOUNTED,
    SCREEN_UNMOUNTED,
    SUBSCRIPTION_FAILED,
    VIEW_MODE_CHANGED,
    Event,
    EventBus,
)
from remark.store.base import RecordStore

from .calendar import CalendarMonths, MonthOrder, build_month_matrix, calendar_cell_view
from .dayid import DayId, is_future, today_utc, validate_day_id
from .engine import FeedEngine
from .models import CellView, Direction, MonthDef, ViewMode, Window
from .viewmode import PinchGesture, cycle_label


class FeedScreen:
    """The journal's home screen, minus the pixels.

    Args:
        store: Record Store backing the feed.
        config: Application config; ``feed``, ``calendar``, ``gesture`` and
            ``view`` sections are read.
        today: Clock returning today's UTC date.
        bus: Shared event bus. A new one is created if omitted.
    """

    max_resubscribe_attempts = 3

    def __init__(
        self,
        store: RecordStore,
        config: Config | None = None,
        *,
        today: Callable[[], date] = today_utc,
        bus: EventBus | None = None,
    ):
        settings = (config or Config(env_prefix="")).validated()
        self.bus = bus or EventBus()
        self.engine = FeedEngine(
            store,
            page_size=settings.feed.page_size,
            days_window=settings.feed.days_window,
            today=today,
            bus=self.bus,
            real_only=settings.feed.real_only,
        )
        self.months = CalendarMonths(
            self.engine.sequence.anchor,
            initial=settings.calendar.initial_months,
            batch=settings.calendar.batch_months,
            order=MonthOrder(settings.calendar.order),
        )
        self.gesture = PinchGesture(
            mode=ViewMode.parse(settings.view.initial_mode),
            threshold=settings.gesture.threshold_px,
            on_change=self._mode_changed,
        )

    # ── Lifecycle ──────────────────────────────────────────────────

    async def mount(self) -> FeedScreen:
        if self.engine.mounted:
            return self
        self.bus.on(SUBSCRIPTION_FAILED, self._on_subscription_failed)
        await self.engine.mount(self.desired_window())
        self.bus.emit_sync(Event(name=SCREEN_MOUNTED, payload={"mode": self.mode.name}, source="screen"))
        return self

    async def unmount(self) -> None:
        await self.engine.unmount()
        self.bus.off(SUBSCRIPTION_FAILED, self._on_subscription_failed)
        self.bus.emit_sync(Event(name=SCREEN_UNMOUNTED, source="screen"))

    async def __aenter__(self) -> FeedScreen:
        return await self.mount()

    async def __aexit__(self, *exc_info) -> None:
        await self.unmount()

    # ── View mode ──────────────────────────────────────────────────

    @property
    def mode(self) -> ViewMode:
        return self.gesture.mode

    @property
    def view_button_label(self) -> str:
        return cycle_label(self.mode)

    def cycle_view_mode(self) -> ViewMode:
        return self.gesture.cycle()

    def desired_window(self) -> Window:
        if self.mode is ViewMode.CALENDAR:
            return self.months.window()
        return self.engine.trailing_window()

    def _mode_changed(self, prev: ViewMode, new: ViewMode, direction: Direction) -> None:
        self.bus.emit_sync(
            Event(
                name=VIEW_MODE_CHANGED,
                payload={"from": prev.name, "to": new.name, "direction": direction.value},
                source="screen",
            )
        )
        if self.engine.mounted:
            self.engine.set_window(self.desired_window())

    def _on_subscription_failed(self, event: Event) -> None:
        if not self.engine.mounted:
            return
        failures = self.engine.synchronizer.consecutive_failures
        if failures > self.max_resubscribe_attempts:
            logger.error(f"Live subscription failed {failures} times in a row; not retrying")
            return
        logger.warning(f"Live subscription lost ({event.payload.get('error')}); re-subscribing")
        self.engine.resubscribe()

    # ── Calendar ───────────────────────────────────────────────────

    @property
    def month_list(self) -> list[MonthDef]:
        return self.months.months

    def load_more_months(self) -> list[MonthDef]:
        """Extend the calendar into the past and widen the live window to match."""
        added = self.months.load_more_months()
        if self.engine.mounted and self.mode is ViewMode.CALENDAR:
            self.engine.set_window(self.months.window())
        return added

    def calendar_cells(self, month: MonthDef) -> list[CellView]:
        today_id = self.engine.today_id
        return [
            calendar_cell_view(cell, self.engine.cache, today_id)
            for cell in build_month_matrix(month.year, month.month_index)
        ]

    def refresh_today(self) -> bool:
        """Pick up a date change (e.g. the app resumed after midnight)."""
        if not self.engine.refresh_anchor():
            return False
        if self.months.reanchor(self.engine.sequence.anchor) and self.mode is ViewMode.CALENDAR and self.engine.mounted:
            self.engine.set_window(self.months.window())
        return True

    # ── Navigation ─────────────────────────────────────────────────

    def open_day(self, day_id: DayId) -> DayId | None:
        """Return *day_id* if it may be opened; future days never can."""
        validate_day_id(day_id)
        if is_future(day_id, self.engine.today_id):
            return None
        return day_id
