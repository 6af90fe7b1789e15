"""Feed engine — the day feed's cache, live window and lazy resolver.

All cache writes happen on one owner task. The live window synchronizer
and the lazy resolver never write directly: their results are queued as
messages on an ``asyncio.Queue`` and applied one at a time, so a batch
and a point-read result can never interleave on the same day.

On overlap the synchronizer wins: a resolver result is applied only if
the day is still unknown when its message is processed.

Usage::

    async with FeedEngine(store, page_size=90, days_window=120) as feed:
        feed.on_viewable_items_changed(feed.data[:12])
        ...
        if feed.version != last_seen:
            redraw(feed.get)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from loguru import logger

from remark.core.events import (
    FEED_VERSION_CHANGED,
    SUBSCRIPTION_FAILED,
    WINDOW_CHANGED,
    Event,
    EventBus,
)
from remark.core.exceptions import EngineClosedError, SubscriptionError
from remark.store.base import RecordStore

from .cache import RecordCache
from .dayid import DayId, to_day_id, today_utc
from .models import DayRecord, Window
from .resolver import LazyResolver, ResolvedDay
from .sequence import DateSequence
from .sync import LiveWindowSynchronizer, SyncBatch

_SENTINEL = object()


@dataclass
class _Resolved:
    result: ResolvedDay
    done: asyncio.Future


@dataclass
class _WindowChange:
    window: Window
    force: bool = False


class FeedEngine:
    """Owner of the day sequence, record cache and its writers.

    Args:
        store: Record Store backing the feed.
        page_size: Days per page of the sequence.
        days_window: Size of the trailing live window, in days.
        today: Clock returning today's UTC date.
        bus: Event bus for version/window/subscription notifications.
        real_only: Start with the feed filtered to days that have a record.
        on_subscription_error: Called when the live subscription fails.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        page_size: int = 90,
        days_window: int = 120,
        today: Callable[[], date] = today_utc,
        bus: EventBus | None = None,
        real_only: bool = False,
        on_subscription_error: Callable[[SubscriptionError], Any] | None = None,
    ):
        if days_window <= 0:
            raise ValueError("days_window must be positive")
        self.store = store
        self.days_window = days_window
        self.bus = bus or EventBus()
        self.real_only = real_only
        self._today = today
        self._on_subscription_error = on_subscription_error

        self.cache = RecordCache(on_version=self._version_changed)
        self.sequence = DateSequence(page_size, today())
        self.synchronizer = LiveWindowSynchronizer(
            store, self.cache, sink=self._post_batch, on_error=self._subscription_failed
        )
        self.resolver = LazyResolver(store, self.cache, deliver=self._deliver_resolved)
        self.resolver.cancel()

        self._queue: asyncio.Queue | None = None
        self._owner_task: asyncio.Task | None = None
        self._mounted = False

    # ── Lifecycle ──────────────────────────────────────────────────

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def mount(self, window: Window | None = None) -> FeedEngine:
        """Start the owner task and subscribe to *window* (default: trailing window)."""
        if self._mounted:
            logger.warning("FeedEngine already mounted")
            return self
        self._queue = asyncio.Queue()
        self._owner_task = asyncio.create_task(self._own_loop(), name="feed-cache-owner")
        self._mounted = True
        self.resolver.mount()
        self.set_window(window or self.trailing_window())
        await self.drain()
        logger.info(f"FeedEngine mounted, window {self.window}")
        return self

    async def unmount(self) -> None:
        """Release the subscription and abandon in-flight fetches."""
        if not self._mounted:
            return
        self._mounted = False
        self.synchronizer.stop()
        self.resolver.cancel()
        assert self._queue is not None and self._owner_task is not None
        self._queue.put_nowait(_SENTINEL)
        await self._owner_task
        self._owner_task = None
        self._queue = None
        logger.info("FeedEngine unmounted")

    async def __aenter__(self) -> FeedEngine:
        return await self.mount()

    async def __aexit__(self, *exc_info) -> None:
        await self.unmount()

    async def drain(self) -> None:
        """Wait until every queued cache write has been applied."""
        if self._queue is not None:
            await self._queue.join()

    # ── Owner task ─────────────────────────────────────────────────

    def _post(self, message: Any) -> bool:
        if not self._mounted or self._queue is None:
            return False
        self._queue.put_nowait(message)
        return True

    def _post_batch(self, batch: SyncBatch) -> None:
        if not self._post(batch):
            logger.debug(f"Discarding batch of {len(batch.changes)} change(s) after unmount")

    async def _deliver_resolved(self, result: ResolvedDay) -> None:
        done = asyncio.get_running_loop().create_future()
        if self._post(_Resolved(result, done)):
            await done

    async def _own_loop(self) -> None:
        """Apply queued messages one at a time; the only cache writer."""
        assert self._queue is not None
        queue = self._queue
        while True:
            item = await queue.get()
            if item is _SENTINEL:
                queue.task_done()
                break
            try:
                self._apply(item)
            except Exception:
                logger.exception(f"Unhandled error applying {type(item).__name__}")
            finally:
                if isinstance(item, _Resolved) and not item.done.done():
                    item.done.set_result(None)
                queue.task_done()

        # Anything still queued arrived after unmount: release waiters only.
        while not queue.empty():
            item = queue.get_nowait()
            if isinstance(item, _Resolved) and not item.done.done():
                item.done.set_result(None)
            queue.task_done()

    def _apply(self, item: Any) -> None:
        if not self._mounted:
            return
        if isinstance(item, SyncBatch):
            self.synchronizer.apply(item)
        elif isinstance(item, _Resolved):
            self.resolver.apply(item.result)
        elif isinstance(item, _WindowChange):
            changed = self.synchronizer.set_window(item.window, force=item.force)
            if changed and self.synchronizer.active:
                self.bus.emit_sync(
                    Event(
                        name=WINDOW_CHANGED,
                        payload={"start": item.window.start, "end": item.window.end},
                        source="feed",
                    )
                )
        else:
            raise TypeError(f"Unknown feed message: {item!r}")

    def _version_changed(self, version: int) -> None:
        self.bus.emit_sync(Event(name=FEED_VERSION_CHANGED, payload={"version": version}, source="feed"))

    def _subscription_failed(self, error: SubscriptionError) -> None:
        self.bus.emit_sync(
            Event(
                name=SUBSCRIPTION_FAILED,
                payload={"error": str(error), "window": error.window},
                source="feed",
            )
        )
        if self._on_subscription_error is not None:
            self._on_subscription_error(error)

    # ── Live window ────────────────────────────────────────────────

    @property
    def window(self) -> Window | None:
        return self.synchronizer.window

    def trailing_window(self) -> Window:
        return Window.trailing(self.sequence.anchor, self.days_window)

    def set_window(self, window: Window) -> None:
        """Move the live window; the subscription is replaced on the owner task.

        Raises:
            EngineClosedError: If the engine is not mounted.
        """
        if not self._post(_WindowChange(window)):
            raise EngineClosedError(f"Cannot move the live window to {window}: engine is not mounted")

    def resubscribe(self) -> None:
        """Re-establish the live subscription on the current window."""
        window = self.window or self.trailing_window()
        logger.info(f"Re-establishing subscription for {window}")
        self._post(_WindowChange(window, force=True))

    def refresh_anchor(self) -> bool:
        """Re-anchor at today's date if it changed since the last anchor.

        The live window follows only when it was the trailing window.
        """
        old_trailing = self.trailing_window()
        if not self.sequence.reanchor(self._today()):
            return False
        if self._mounted and (self.window is None or self.window == old_trailing):
            self.set_window(self.trailing_window())
        return True

    # ── Rendering surface ──────────────────────────────────────────

    @property
    def today_id(self) -> DayId:
        return to_day_id(self.sequence.anchor)

    @property
    def version(self) -> int:
        return self.cache.version

    @property
    def data(self) -> list[DayId]:
        """Day ids for the list/grid renderer, newest first."""
        days = self.sequence.days
        if self.real_only:
            return [d for d in days if (r := self.cache.get(d)) is not None and r.exists]
        return days

    def set_real_only(self, real_only: bool) -> None:
        self.real_only = real_only

    def get(self, day_id: DayId) -> DayRecord | None:
        return self.cache.get(day_id)

    def get_cover(self, day_id: DayId) -> str | None:
        record = self.cache.get(day_id)
        return record.cover_ref if record is not None else None

    def get_title(self, day_id: DayId) -> str | None:
        record = self.cache.get(day_id)
        return record.title if record is not None else None

    def load_more(self) -> list[DayId]:
        """Append the next page of days (the renderer's end-reached trigger)."""
        return self.sequence.load_more()

    def on_viewable_items_changed(self, day_ids: Iterable[DayId]) -> int:
        """Viewport visibility callback: lazily resolve the visible days."""
        if not self._mounted:
            return 0
        return self.resolver.on_visible(day_ids)

    async def ensure_loaded(self, day_id: DayId) -> DayRecord | None:
        return await self.resolver.ensure_loaded(day_id)

    async def settle(self) -> None:
        """Wait for scheduled resolutions and queued writes to finish."""
        await self.resolver.wait_idle()
        await self.drain()
