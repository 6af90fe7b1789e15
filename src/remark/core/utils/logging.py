"""
Loguru setup for the remark CLI and embedding apps.

Library modules only ever call ``logger.<level>(...)``; sinks are
configured once by whoever owns the process.
"""

import os
import sys

from loguru import logger

CONSOLE_FORMAT = "<level>{level: <8}</level> <cyan>{name}</cyan> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    rotation: str = "5 MB",
    retention: str = "14 days",
) -> None:
    """
    Replace loguru's sinks with a stderr sink and an optional rotating file.

    Args:
        level: Minimum level for both sinks.
        log_file: File to append to. Parent directories are created.
        rotation: Size at which the file is rotated.
        retention: How long rotated files are kept.
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        logger.add(log_file, level=level, format=FILE_FORMAT, rotation=rotation, retention=retention)


def setup_logging_from_config(config) -> None:
    """Configure sinks from the ``logging`` section of a :class:`Config`.

    A bare file name in ``logging.file`` is placed under ``paths.log_dir``.
    """
    log_file = config.get("logging.file") or None
    if log_file and not os.path.dirname(log_file):
        log_file = os.path.join(config.get("paths.log_dir", "."), log_file)
    setup_logging(level=str(config.get("logging.level", "WARNING")).upper(), log_file=log_file)
