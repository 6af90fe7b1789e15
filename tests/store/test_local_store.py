"""Tests for remark.store.local."""

import json
import os

import pytest

from remark.core.exceptions import RecordStoreError
from remark.store.base import ChangeType
from remark.store.local import LocalRecordStore


@pytest.fixture
def entries_dir(tmp_dir):
    return os.path.join(tmp_dir, "entries")


def _write_entry(entries_dir, day_id, **fields):
    os.makedirs(entries_dir, exist_ok=True)
    with open(os.path.join(entries_dir, f"{day_id}.json"), "w") as f:
        json.dump(fields, f)


class TestLocalRecordStore:
    async def test_creates_directory(self, entries_dir):
        LocalRecordStore(entries_dir)
        assert os.path.isdir(entries_dir)

    async def test_open_indexes_existing_entries(self, entries_dir):
        _write_entry(entries_dir, "2024-07-14", title="Beach", thumbCoverUrl="thumb.jpg")
        _write_entry(entries_dir, "2024-06-01", title="June")
        with open(os.path.join(entries_dir, "notes.json"), "w") as f:
            f.write("{}")

        store = await LocalRecordStore(entries_dir).open()

        assert len(store) == 2
        batches = []
        store.subscribe_range("2024-01-01", "2024-12-31", batches.append)
        assert [c.id for c in batches[0]] == ["2024-06-01", "2024-07-14"]
        assert batches[0][1].record.feed_cover == "thumb.jpg"

    async def test_upsert_writes_through(self, entries_dir):
        store = LocalRecordStore(entries_dir)
        await store.upsert("2024-07-14", {"title": "Beach", "photos": ["a.jpg"]})

        with open(os.path.join(entries_dir, "2024-07-14.json")) as f:
            data = json.load(f)
        assert data["id"] == "2024-07-14"
        assert data["title"] == "Beach"
        assert data["photos"] == ["a.jpg"]
        assert not os.path.exists(os.path.join(entries_dir, "2024-07-14.json.tmp"))

        reopened = await LocalRecordStore(entries_dir).open()
        found = await reopened.get_by_id("2024-07-14")
        assert found.title == "Beach"

    async def test_point_read_missing(self, entries_dir):
        store = await LocalRecordStore(entries_dir).open()
        assert await store.get_by_id("2024-07-13") is None
        assert store.reads == 1

    async def test_delete(self, entries_dir):
        _write_entry(entries_dir, "2024-07-14", title="Beach")
        store = await LocalRecordStore(entries_dir).open()
        batches = []
        store.subscribe_range("2024-07-01", "2024-07-31", batches.append)

        assert await store.delete("2024-07-14") is True
        assert not os.path.exists(os.path.join(entries_dir, "2024-07-14.json"))
        assert batches[-1][0].type is ChangeType.REMOVED
        assert await store.delete("2024-07-14") is False

    async def test_corrupt_entry_is_skipped_on_open(self, entries_dir):
        _write_entry(entries_dir, "2024-06-01", title="June")
        with open(os.path.join(entries_dir, "2024-07-14.json"), "w") as f:
            f.write("{not json")

        store = await LocalRecordStore(entries_dir).open()

        assert len(store) == 1
        assert (await store.get_by_id("2024-06-01")).title == "June"
        with pytest.raises(RecordStoreError):
            await store.get_by_id("2024-07-14")
