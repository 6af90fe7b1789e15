"""RecordStore protocol — the contract for day-record backends.

Any document store keyed by day id (a cloud document database, a local
directory of JSON files, an in-memory dict for tests) can implement this
protocol and back the feed engine.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


class ChangeType(enum.Enum):
    """Kind of change delivered in a subscription batch."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass
class StoreRecord:
    """A day record as held by the Record Store.

    Attributes:
        id: Day identifier (``YYYY-MM-DD``), also the document key.
        title: Optional title.
        cover_url: Full-resolution cover image reference.
        thumb_cover_url: Thumbnail cover reference, preferred in feeds.
        photos: Photo references, in display order.
        markdown_text: Body text.
        updated_at: Last write time (UTC).
    """

    id: str
    title: str | None = None
    cover_url: str | None = None
    thumb_cover_url: str | None = None
    photos: list[str] = field(default_factory=list)
    markdown_text: str = ""
    updated_at: datetime | None = None

    @property
    def feed_cover(self) -> str | None:
        """Cover for scrolling feeds: thumbnail first, to bound bandwidth."""
        return self.thumb_cover_url or self.cover_url

    @property
    def detail_cover(self) -> str | None:
        """Cover for a single-day detail view: full resolution first."""
        return self.cover_url or self.thumb_cover_url

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "coverUrl": self.cover_url,
            "thumbCoverUrl": self.thumb_cover_url,
            "photos": list(self.photos),
            "markdownText": self.markdown_text,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoreRecord:
        updated = data.get("updatedAt")
        return cls(
            id=data["id"],
            title=data.get("title"),
            cover_url=data.get("coverUrl"),
            thumb_cover_url=data.get("thumbCoverUrl"),
            photos=list(data.get("photos") or []),
            markdown_text=data.get("markdownText") or "",
            updated_at=datetime.fromisoformat(updated) if updated else None,
        )


# Field names accepted by ``RecordStore.upsert``.
WRITABLE_FIELDS = ("title", "cover_url", "thumb_cover_url", "photos", "markdown_text")


@dataclass(frozen=True)
class Change:
    """One document change inside a subscription batch."""

    type: ChangeType
    record: StoreRecord

    @property
    def id(self) -> str:
        return self.record.id


BatchCallback = Callable[[list[Change]], None]
"""Receives each batch of changes, in key order within the batch."""

ErrorCallback = Callable[[Exception], None]
"""Receives the error that ended a subscription."""

Unsubscribe = Callable[[], None]


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for the day-record document store."""

    async def get_by_id(self, day_id: str) -> StoreRecord | None:
        """Point read. Returns None when no record exists for *day_id*.

        Raises:
            RecordStoreError: On I/O failure.
        """
        ...

    def subscribe_range(
        self,
        start: str,
        end: str,
        on_batch: BatchCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        """Subscribe to records with ``start <= id <= end``.

        The first batch reports every existing record in range as ADDED;
        later batches report incremental changes. After the returned
        callable is invoked, no further callbacks are delivered.
        """
        ...

    async def upsert(self, day_id: str, fields: dict[str, Any]) -> StoreRecord:
        """Merge *fields* into the record for *day_id*, creating it if needed."""
        ...

    async def delete(self, day_id: str) -> bool:
        """Remove the record. Returns True if it existed."""
        ...
