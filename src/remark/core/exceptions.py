"""
Remark exception hierarchy.

All remark exceptions inherit from RemarkError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
"""

from __future__ import annotations

from typing import Any


class RemarkError(Exception):
    """Base exception class for all remark errors."""


class ConfigurationError(RemarkError):
    """Raised for configuration errors (missing keys, invalid values)."""


class InvalidDayIdError(RemarkError, ValueError):
    """Raised when a string is not a valid ``YYYY-MM-DD`` day identifier."""


class RecordStoreError(RemarkError):
    """Raised for Record Store I/O failures (point reads, writes)."""


class SubscriptionError(RecordStoreError):
    """Raised when a live range subscription fails or is dropped.

    Attributes:
        window: The window the failed subscription covered, if known.
    """

    def __init__(self, message: str, window: Any = None):
        super().__init__(message)
        self.window = window


class EngineClosedError(RemarkError):
    """Raised when a feed engine is used after it has been unmounted."""
