"""Tests for remark.core.utils.logging."""

import os

import pytest
from loguru import logger

from remark.core.config import Config
from remark.core.utils.logging import setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def _restore_loguru():
    yield
    logger.remove()


def test_file_sink_receives_messages(tmp_dir):
    log_file = os.path.join(tmp_dir, "logs", "remark.log")
    setup_logging(level="INFO", log_file=log_file)

    logger.info("subscribed to window")
    logger.debug("hidden below INFO")
    logger.complete()

    with open(log_file) as f:
        content = f.read()
    assert "subscribed to window" in content
    assert "hidden below INFO" not in content


def test_bare_file_name_goes_to_log_dir(tmp_dir):
    config = Config(data_dir=tmp_dir, env_prefix="")
    config.set("logging.file", "remark.log")
    config.set("logging.level", "debug")
    setup_logging_from_config(config)

    logger.debug("resolver idle")
    logger.complete()

    path = os.path.join(tmp_dir, "logs", "remark.log")
    with open(path) as f:
        assert "resolver idle" in f.read()
