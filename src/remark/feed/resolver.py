"""Lazy resolver — on-demand point reads for days as they become visible.

A day already in the cache (present or confirmed absent) is never fetched
again. Concurrent requests for the same unknown day share one in-flight
fetch. Fetch failures leave the day unknown so the next visibility event
retries it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from loguru import logger

from remark.store.base import RecordStore

from .cache import RecordCache
from .dayid import DayId, validate_day_id
from .models import DayRecord


@dataclass(frozen=True)
class ResolvedDay:
    """Outcome of one point read, ready to be written to the cache."""

    day_id: DayId
    record: DayRecord


ResolvedSink = Callable[[ResolvedDay], Awaitable[None]]


class LazyResolver:
    """Fetches single days outside the live window, deduplicated.

    Args:
        store: Record Store to read from.
        cache: Cache consulted for deduplication and written on success.
        deliver: Async sink for fetched results. Defaults to writing the
            cache directly; the feed engine routes results through its
            owner task instead.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: RecordCache,
        *,
        deliver: ResolvedSink | None = None,
    ):
        self._store = store
        self._cache = cache
        self._deliver = deliver or self._apply_now
        self._in_flight: dict[DayId, asyncio.Future] = {}
        self._tasks: set[asyncio.Task] = set()
        self._mounted = True
        self.fetch_count = 0

    @property
    def mounted(self) -> bool:
        return self._mounted

    def in_flight(self, day_id: DayId) -> bool:
        return day_id in self._in_flight

    def mount(self) -> None:
        self._mounted = True

    async def ensure_loaded(self, day_id: DayId) -> DayRecord | None:
        """Make sure *day_id* is resolved, fetching it at most once.

        Returns the cached record afterwards, or None when the day is
        still unknown (fetch failed, or the resolver was cancelled).

        Raises:
            InvalidDayIdError: If *day_id* is malformed.
        """
        validate_day_id(day_id)
        if day_id in self._cache:
            return self._cache.get(day_id)
        if not self._mounted:
            return None

        pending = self._in_flight.get(day_id)
        if pending is not None:
            return await asyncio.shield(pending)

        return await self._fetch_claimed(day_id, self._claim(day_id))

    def _claim(self, day_id: DayId) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self._in_flight[day_id] = future
        return future

    def _settle(self, day_id: DayId, future: asyncio.Future) -> None:
        if self._in_flight.get(day_id) is future:
            del self._in_flight[day_id]
        if not future.done():
            future.set_result(self._cache.get(day_id))

    async def _fetch(self, day_id: DayId) -> DayRecord | None:
        self.fetch_count += 1
        try:
            found = await self._store.get_by_id(day_id)
        except Exception as exc:
            logger.warning(f"Could not resolve {day_id}, leaving it unknown: {exc}")
            return None

        if found is None:
            record = DayRecord.absent()
        else:
            record = DayRecord.present(cover_ref=found.feed_cover, title=found.title)
        if self._mounted:
            await self._deliver(ResolvedDay(day_id, record))
        return self._cache.get(day_id)

    async def _fetch_claimed(self, day_id: DayId, future: asyncio.Future) -> DayRecord | None:
        try:
            return await self._fetch(day_id)
        finally:
            self._settle(day_id, future)

    def apply(self, resolved: ResolvedDay) -> bool:
        """Write a fetched result. Returns True if the cache changed.

        Results landing after cancellation are dropped, and an entry that
        appeared while the fetch was in flight (written by the live window
        synchronizer) is left alone.
        """
        if not self._mounted:
            logger.debug(f"Dropping result for {resolved.day_id}: resolver unmounted")
            return False
        if resolved.day_id in self._cache:
            return False
        return self._cache.set(resolved.day_id, resolved.record)

    async def _apply_now(self, resolved: ResolvedDay) -> None:
        self.apply(resolved)

    def on_visible(self, day_ids: Iterable[DayId]) -> int:
        """Schedule resolution for each visible unknown day.

        Returns the number of fetches started.
        """
        if not self._mounted:
            return 0
        started = 0
        for day_id in day_ids:
            validate_day_id(day_id)
            if day_id in self._cache or day_id in self._in_flight:
                continue
            future = self._claim(day_id)
            task = asyncio.get_running_loop().create_task(
                self._fetch_claimed(day_id, future), name=f"resolve-{day_id}"
            )
            self._tasks.add(task)
            # A task cancelled before its first step never reaches its finally.
            task.add_done_callback(lambda _t, d=day_id, f=future: self._settle(d, f))
            task.add_done_callback(self._tasks.discard)
            started += 1
        return started

    async def wait_idle(self) -> None:
        """Wait for every scheduled resolution to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel(self) -> None:
        """Abandon in-flight fetches; later completions never touch the cache."""
        self._mounted = False
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            logger.debug(f"Cancelled {len(self._tasks)} in-flight resolution(s)")
