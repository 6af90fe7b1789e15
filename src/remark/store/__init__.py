"""Record Store protocol and backends."""

from .base import (
    WRITABLE_FIELDS,
    BatchCallback,
    Change,
    ChangeType,
    ErrorCallback,
    RecordStore,
    StoreRecord,
    Unsubscribe,
)
from .local import LocalRecordStore
from .memory import MemoryRecordStore

__all__ = [
    "WRITABLE_FIELDS",
    "BatchCallback",
    "Change",
    "ChangeType",
    "ErrorCallback",
    "LocalRecordStore",
    "MemoryRecordStore",
    "RecordStore",
    "StoreRecord",
    "Unsubscribe",
]
