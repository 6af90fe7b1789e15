"""Shared test fixtures for remark."""

import asyncio
import os
import tempfile
from datetime import date

import pytest

from remark.store.base import StoreRecord
from remark.store.memory import MemoryRecordStore

TODAY = date(2024, 7, 15)


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file pointing at tmp_dir."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "entries_dir": os.path.join(tmp_dir, "data", "entries"),
        },
        "feed": {"page_size": 10, "days_window": 30},
        "calendar": {"initial_months": 2},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    """A settable clock for engines: ``clock.today = date(...)``."""

    class _Clock:
        def __init__(self):
            self.today = TODAY

        def __call__(self) -> date:
            return self.today

    return _Clock()


@pytest.fixture
def records():
    return [
        StoreRecord(id="2024-07-14", title="Beach", cover_url="full/0714.jpg", thumb_cover_url="thumb/0714.jpg"),
        StoreRecord(id="2024-06-01", title="June", cover_url="full/0601.jpg"),
        StoreRecord(id="2023-12-25", title="Christmas", thumb_cover_url="thumb/1225.jpg"),
    ]


@pytest.fixture
def store(records):
    return MemoryRecordStore(records)


class GatedStore(MemoryRecordStore):
    """Point reads block until ``release()``; used to hold fetches in flight."""

    def __init__(self, records=None):
        super().__init__(records)
        self.gate = asyncio.Event()
        self.started = 0

    def release(self) -> None:
        self.gate.set()

    async def get_by_id(self, day_id):
        self.started += 1
        await self.gate.wait()
        return await super().get_by_id(day_id)


@pytest.fixture
def gated_store(records):
    return GatedStore(records)


@pytest.fixture
def flaky_store(records):
    store = MemoryRecordStore(records)
    store.fail_reads(OSError("network unreachable"))
    return store
