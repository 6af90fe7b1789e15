"""Record cache with a monotonic version counter.

Maps day id -> :class:`DayRecord`. A day with no entry is *unknown*,
which is distinct from a cached ``DayRecord(exists=False)``. Renderers
treat ``version`` as their only redraw signal: equal versions mean
nothing visible changed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from loguru import logger

from .dayid import DayId
from .models import DayRecord, Resolution

VersionListener = Callable[[int], None]


class RecordCache:
    """Sparse day-record cache.

    Mutations made inside :meth:`batch` are counted and produce exactly one
    version bump when the outermost batch exits, and none when nothing
    changed. Mutations outside a batch bump once each.
    """

    def __init__(self, on_version: VersionListener | None = None):
        self._entries: dict[DayId, DayRecord] = {}
        self._version = 0
        self._batch_depth = 0
        self._batch_dirty = False
        self._on_version = on_version

    # ── Reads ──────────────────────────────────────────────────────

    @property
    def version(self) -> int:
        return self._version

    def get(self, day_id: DayId) -> DayRecord | None:
        """Cached record, or None when the day is still unknown."""
        return self._entries.get(day_id)

    def resolution(self, day_id: DayId) -> Resolution:
        record = self._entries.get(day_id)
        return record.resolution if record is not None else Resolution.UNRESOLVED

    def __contains__(self, day_id: object) -> bool:
        return day_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def ids(self) -> list[DayId]:
        return sorted(self._entries)

    # ── Writes ─────────────────────────────────────────────────────

    def set(self, day_id: DayId, record: DayRecord) -> bool:
        """Store *record*. Returns False when it equals the cached value."""
        if self._entries.get(day_id) == record:
            return False
        self._entries[day_id] = record
        self._mark_dirty()
        return True

    def delete(self, day_id: DayId) -> bool:
        """Forget *day_id* (back to unknown). Returns True if it was cached."""
        if self._entries.pop(day_id, None) is None:
            return False
        self._mark_dirty()
        return True

    def bump_version(self) -> int:
        self._version += 1
        logger.trace(f"Cache version -> {self._version}")
        if self._on_version:
            self._on_version(self._version)
        return self._version

    @contextmanager
    def batch(self) -> Iterator[RecordCache]:
        """Group mutations so they cost a single version bump."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._batch_dirty:
                self._batch_dirty = False
                self.bump_version()

    def _mark_dirty(self) -> None:
        if self._batch_depth:
            self._batch_dirty = True
        else:
            self.bump_version()
