"""Pydantic models for config validation.

Opt-in schema validation for ``Config.config_data``.  Call
``Config.validated()`` to obtain a typed, validated ``RemarkConfig``
instance.  Existing dict-based access continues to work unchanged.

Env var overrides arrive as strings; pydantic's lax mode coerces
``"60"`` to ``60`` and ``"true"`` to ``True``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PathsConfig(BaseModel):
    """File-system paths used by the application."""

    data_dir: Path
    entries_dir: Path | None = None
    log_dir: Path | None = None

    @field_validator("data_dir", "entries_dir", "log_dir", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class FeedConfig(BaseModel):
    """Date feed paging and live-window size."""

    page_size: int = Field(default=90, gt=0)
    days_window: int = Field(default=120, gt=0)
    real_only: bool = False


class CalendarConfig(BaseModel):
    """Calendar month pagination."""

    initial_months: int = Field(default=12, gt=0)
    batch_months: int = Field(default=6, gt=0)
    order: Literal["ascending", "descending"] = "ascending"


class GestureConfig(BaseModel):
    """Pinch gesture tuning."""

    threshold_px: float = Field(default=30.0, gt=0)


class ViewConfig(BaseModel):
    """Initial view settings."""

    initial_mode: Literal["calendar", "grid", "list"] = "grid"

    @field_validator("initial_mode", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class LoggingConfig(BaseModel):
    """Loguru sink settings."""

    level: str = "WARNING"
    file: str | None = None

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return level


class RemarkConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so consumers can bolt on custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig = PathsConfig(data_dir=Path("~/.remark-data"))
    feed: FeedConfig = FeedConfig()
    calendar: CalendarConfig = CalendarConfig()
    gesture: GestureConfig = GestureConfig()
    view: ViewConfig = ViewConfig()
    logging: LoggingConfig = LoggingConfig()
