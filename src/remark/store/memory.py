"""In-process Record Store.

Holds records in a dict and fans change batches out to range
subscribers. Used directly in tests and as the notification core of
:class:`~remark.store.local.LocalRecordStore`.
"""

from __future__ import annotations

import dataclasses
import itertools
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from remark.feed.dayid import validate_day_id

from .base import (
    WRITABLE_FIELDS,
    BatchCallback,
    Change,
    ChangeType,
    ErrorCallback,
    StoreRecord,
    Unsubscribe,
)


@dataclasses.dataclass
class _Subscription:
    id: int
    start: str
    end: str
    on_batch: BatchCallback
    on_error: ErrorCallback | None

    def covers(self, day_id: str) -> bool:
        return self.start <= day_id <= self.end


class MemoryRecordStore:
    """Dict-backed RecordStore with live range subscriptions.

    Batches are delivered synchronously from the call that caused them,
    which keeps ordering deterministic for callers on one event loop.
    """

    def __init__(self, records: list[StoreRecord] | None = None):
        self._records: dict[str, StoreRecord] = {}
        self._subscriptions: dict[int, _Subscription] = {}
        self._ids = itertools.count(1)
        self.reads = 0
        self._read_failures: list[Exception] = []
        for record in records or []:
            self._records[validate_day_id(record.id)] = record

    # ── Reads ──────────────────────────────────────────────────────

    async def get_by_id(self, day_id: str) -> StoreRecord | None:
        validate_day_id(day_id)
        self._count_read()
        record = self._records.get(day_id)
        return dataclasses.replace(record) if record else None

    def fail_reads(self, exc: Exception, times: int = 1) -> None:
        """Make the next *times* point reads raise *exc*."""
        self._read_failures.extend([exc] * times)

    def _count_read(self) -> None:
        self.reads += 1
        if self._read_failures:
            raise self._read_failures.pop(0)

    def records_in_range(self, start: str, end: str) -> list[StoreRecord]:
        """Snapshot of records with ``start <= id <= end``, ordered by id."""
        return [dataclasses.replace(self._records[k]) for k in sorted(self._records) if start <= k <= end]

    def __len__(self) -> int:
        return len(self._records)

    # ── Subscriptions ──────────────────────────────────────────────

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def subscribe_range(
        self,
        start: str,
        end: str,
        on_batch: BatchCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        validate_day_id(start)
        validate_day_id(end)
        sub = _Subscription(next(self._ids), start, end, on_batch, on_error)
        self._subscriptions[sub.id] = sub
        logger.debug(f"Subscription {sub.id} opened for [{start} .. {end}]")

        initial = [Change(ChangeType.ADDED, r) for r in self.records_in_range(start, end)]
        sub.on_batch(initial)

        def unsubscribe() -> None:
            if self._subscriptions.pop(sub.id, None) is not None:
                logger.debug(f"Subscription {sub.id} closed")

        return unsubscribe

    def fail_subscriptions(self, exc: Exception) -> None:
        """Drop every live subscription, reporting *exc* to each."""
        dropped = list(self._subscriptions.values())
        self._subscriptions.clear()
        for sub in dropped:
            logger.debug(f"Subscription {sub.id} dropped: {exc}")
            if sub.on_error:
                sub.on_error(exc)

    def _notify(self, change: Change) -> None:
        for sub in list(self._subscriptions.values()):
            # A callback may unsubscribe others while we iterate.
            if sub.id in self._subscriptions and sub.covers(change.id):
                sub.on_batch([change])

    # ── Writes ─────────────────────────────────────────────────────

    def _merge(self, day_id: str, fields: dict[str, Any]) -> tuple[StoreRecord, ChangeType]:
        unknown = set(fields) - set(WRITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown record fields: {', '.join(sorted(unknown))}")

        existing = self._records.get(day_id)
        change_type = ChangeType.MODIFIED if existing else ChangeType.ADDED
        record = dataclasses.replace(existing) if existing else StoreRecord(id=day_id)
        for name, value in fields.items():
            setattr(record, name, list(value) if name == "photos" else value)
        record.updated_at = datetime.now(UTC)
        return record, change_type

    def _commit(self, record: StoreRecord, change_type: ChangeType) -> StoreRecord:
        self._records[record.id] = record
        self._notify(Change(change_type, dataclasses.replace(record)))
        return dataclasses.replace(record)

    async def upsert(self, day_id: str, fields: dict[str, Any]) -> StoreRecord:
        validate_day_id(day_id)
        record, change_type = self._merge(day_id, fields)
        return self._commit(record, change_type)

    def _remove(self, day_id: str) -> bool:
        record = self._records.pop(day_id, None)
        if record is None:
            return False
        self._notify(Change(ChangeType.REMOVED, record))
        return True

    async def delete(self, day_id: str) -> bool:
        validate_day_id(day_id)
        return self._remove(day_id)
