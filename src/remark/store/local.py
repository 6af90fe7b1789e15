"""
Local filesystem Record Store.

One JSON document per day, named ``YYYY-MM-DD.json``, under a single
entries directory. Point reads go to disk; subscriptions are served from
the in-process index that ``open()`` builds and writes keep current.
"""

import json
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os
from loguru import logger

from remark.core.exceptions import RecordStoreError
from remark.feed.dayid import validate_day_id

from .base import StoreRecord
from .memory import MemoryRecordStore


class LocalRecordStore(MemoryRecordStore):
    """Directory-of-JSON-files RecordStore."""

    def __init__(self, entries_dir: str = "~/.remark-data/entries"):
        super().__init__()
        self.entries_dir = Path(entries_dir).expanduser().resolve()
        self.entries_dir.mkdir(parents=True, exist_ok=True)
        self._opened = False

    def _path(self, day_id: str) -> Path:
        return self.entries_dir / f"{validate_day_id(day_id)}.json"

    async def open(self) -> "LocalRecordStore":
        """Index every entry file on disk. Safe to call more than once."""
        if self._opened:
            return self
        count = 0
        for path in sorted(self.entries_dir.glob("*.json")):
            try:
                validate_day_id(path.stem)
            except ValueError:
                logger.warning(f"Skipping non-day file in entries dir: {path.name}")
                continue
            try:
                record = await self._read(path)
            except RecordStoreError as e:
                logger.warning(f"Skipping unreadable entry {path.name}: {e}")
                continue
            if record is not None:
                self._records[record.id] = record
                count += 1
        self._opened = True
        logger.info(f"Loaded {count} entries from {self.entries_dir}")
        return self

    async def _read(self, path: Path) -> StoreRecord | None:
        if not await aiofiles.os.path.exists(path):
            return None
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            raise RecordStoreError(f"Cannot read {path}: {e}") from e
        data.setdefault("id", path.stem)
        return StoreRecord.from_dict(data)

    async def _write(self, record: StoreRecord) -> None:
        path = self._path(record.id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            raise RecordStoreError(f"Cannot write {path}: {e}") from e

    async def get_by_id(self, day_id: str) -> StoreRecord | None:
        path = self._path(day_id)
        self._count_read()
        return await self._read(path)

    async def upsert(self, day_id: str, fields: dict[str, Any]) -> StoreRecord:
        await self.open()
        validate_day_id(day_id)
        record, change_type = self._merge(day_id, fields)
        await self._write(record)
        return self._commit(record, change_type)

    async def delete(self, day_id: str) -> bool:
        await self.open()
        path = self._path(day_id)
        if await aiofiles.os.path.exists(path):
            try:
                await aiofiles.os.remove(path)
            except OSError as e:
                raise RecordStoreError(f"Cannot delete {path}: {e}") from e
        return self._remove(day_id)
