"""Shared setup logic for CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from remark.core.config import Config
from remark.core.exceptions import ConfigurationError, InvalidDayIdError
from remark.core.utils.logging import setup_logging_from_config

REMARK_DIR = Path.home() / ".remark"
CONFIG_PATH = REMARK_DIR / "config.yaml"


def load_config(ctx: click.Context) -> Config:
    """Load config from ``--config`` or ~/.remark/config.yaml, and set up logging."""
    config_file = (ctx.obj or {}).get("config_file") or str(CONFIG_PATH)
    try:
        config = Config(config_file=config_file)
        config.validated()
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    setup_logging_from_config(config)
    return config


async def open_store(config: Config):
    """Open the local entries directory as a Record Store."""
    from remark.store.local import LocalRecordStore

    store = LocalRecordStore(config.get("paths.entries_dir"))
    return await store.open()


def day_argument(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    """Click callback validating a ``YYYY-MM-DD`` argument."""
    if value is None:
        return None
    from remark.feed.dayid import validate_day_id

    try:
        return validate_day_id(value)
    except InvalidDayIdError as e:
        raise click.BadParameter(str(e)) from e
