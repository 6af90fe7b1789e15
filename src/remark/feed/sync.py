"""Live window synchronizer.

Keeps the record cache current for one bounded window of days through a
standing range subscription on the Record Store. Any change of window
bounds releases the old subscription and opens a new one.

Batches are tagged with the subscription generation that produced them;
a batch from a released subscription is dropped on arrival.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from remark.core.exceptions import SubscriptionError
from remark.store.base import Change, ChangeType, RecordStore, Unsubscribe

from .cache import RecordCache
from .dayid import DayId
from .models import DayRecord, Window


@dataclass
class SyncBatch:
    """A change batch as delivered by one subscription generation."""

    generation: int
    changes: list[Change] = field(default_factory=list)


BatchSink = Callable[[SyncBatch], None]
SubscriptionErrorHandler = Callable[[SubscriptionError], None]


class LiveWindowSynchronizer:
    """Standing subscription that mirrors one window into the cache.

    Args:
        store: Record Store to subscribe against.
        cache: Cache to write into.
        sink: Where incoming batches go. Defaults to applying them
            immediately; the feed engine routes them through its owner task.
        on_error: Called with a :class:`SubscriptionError` when the live
            subscription fails or drops.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: RecordCache,
        *,
        sink: BatchSink | None = None,
        on_error: SubscriptionErrorHandler | None = None,
    ):
        self._store = store
        self._cache = cache
        self._sink = sink or self.apply
        self._on_error = on_error
        self._window: Window | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._generation = 0
        self._awaiting_snapshot = False
        self._owned: set[DayId] = set()
        self.consecutive_failures = 0

    @property
    def window(self) -> Window | None:
        return self._window

    @property
    def active(self) -> bool:
        """Whether a live subscription is currently held."""
        return self._unsubscribe is not None

    @property
    def generation(self) -> int:
        return self._generation

    def owns(self, day_id: DayId) -> bool:
        """True when *day_id* falls inside the live window."""
        return self._window is not None and self._window.contains(day_id)

    # ── Lifecycle ──────────────────────────────────────────────────

    def start(self, window: Window) -> None:
        self.set_window(window)

    def set_window(self, window: Window, *, force: bool = False) -> bool:
        """Cover *window*, re-subscribing if the bounds changed.

        Returns False when *window* is already live and *force* is not set.
        """
        if window == self._window and self.active and not force:
            return False

        self._release()
        previous, self._window = self._window, window

        # Entries mirrored from the old window stop being refreshed once it
        # is released; drop them back to unknown rather than serve them stale.
        dropped = {d for d in self._owned if not window.contains(d)}
        if dropped:
            with self._cache.batch():
                for day_id in dropped:
                    self._cache.delete(day_id)
            self._owned -= dropped

        self._generation += 1
        generation = self._generation
        self._awaiting_snapshot = True
        logger.info(f"Subscribing to {window} (generation {generation}, was {previous})")
        try:
            self._unsubscribe = self._store.subscribe_range(
                window.start,
                window.end,
                lambda changes: self._sink(SyncBatch(generation, list(changes))),
                lambda exc: self._handle_store_error(generation, exc),
            )
        except Exception as exc:
            self._handle_store_error(generation, exc)
        return True

    def stop(self) -> None:
        """Release the subscription. No batch delivered afterwards is applied."""
        self._release()
        self._generation += 1
        logger.debug("Live window synchronizer stopped")

    def _release(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def _handle_store_error(self, generation: int, exc: Exception) -> None:
        if generation != self._generation:
            logger.debug(f"Ignoring error from released subscription {generation}: {exc}")
            return
        self._unsubscribe = None
        self.consecutive_failures += 1
        error = SubscriptionError(f"Subscription for {self._window} failed: {exc}", window=self._window)
        logger.error(str(error))
        if self._on_error is not None:
            self._on_error(error)

    # ── Batch application ──────────────────────────────────────────

    def apply(self, batch: SyncBatch) -> bool:
        """Apply one batch to the cache. Returns True if anything changed.

        The version is bumped once per batch, and not at all when the batch
        was empty or changed nothing.
        """
        if batch.generation != self._generation:
            logger.debug(f"Dropping stale batch from generation {batch.generation}")
            return False
        self.consecutive_failures = 0

        before = self._cache.version
        with self._cache.batch():
            if self._awaiting_snapshot:
                self._awaiting_snapshot = False
                self._evict_missing_from_snapshot(batch.changes)
            for change in batch.changes:
                self._apply_change(change)
        changed = self._cache.version != before
        if changed:
            logger.debug(f"Applied batch of {len(batch.changes)} change(s); version {self._cache.version}")
        return changed

    def _evict_missing_from_snapshot(self, changes: list[Change]) -> None:
        # The first batch of a subscription lists every record in range.
        # A cached present entry in range that it lacks was removed while
        # nothing was listening, whoever cached it.
        listed = {c.id for c in changes if c.type is not ChangeType.REMOVED}
        for day_id in self._cache.ids():
            if day_id in listed or not self.owns(day_id):
                continue
            record = self._cache.get(day_id)
            if record is not None and record.exists:
                self._cache.delete(day_id)
            self._owned.discard(day_id)

    def _apply_change(self, change: Change) -> None:
        day_id = change.id
        if change.type is ChangeType.REMOVED:
            self._owned.discard(day_id)
            if day_id in self._cache:
                self._cache.delete(day_id)
            return

        record = change.record
        self._cache.set(day_id, DayRecord.present(cover_ref=record.feed_cover, title=record.title))
        self._owned.add(day_id)
