"""Tests for the queue-backed logging setup."""

import logging

import pytest

from voicepace.core.logging import (
    LOG_FILE_NAME,
    PACKAGE_LOGGER,
    configure_logging,
    get_logger,
    log_dir,
    setup_logging,
    shutdown_logging,
)


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    configure_logging("INFO", console=False, log_file=False)


def test_module_loggers_inherit_package_level():
    logger = setup_logging("voicepace.tests.inherit")
    configure_logging("DEBUG", console=False, log_file=False)
    assert logger.getEffectiveLevel() == logging.DEBUG

    configure_logging("WARNING", console=False, log_file=False)
    assert logger.getEffectiveLevel() == logging.WARNING
    assert get_logger("voicepace.tests.inherit") is logger


def test_reconfigure_keeps_one_handler():
    configure_logging("INFO", console=True, log_file=False)
    package_logger = configure_logging("INFO", console=True, log_file=False)
    assert len(package_logger.handlers) == 1
    assert package_logger.propagate is False


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("VOICEPACE_LOG_LEVEL", "warning")
    assert configure_logging(log_file=False).level == logging.WARNING


def test_unknown_level_defaults_to_info():
    assert configure_logging("LOUD", log_file=False).level == logging.INFO


def test_file_sink_receives_records():
    configure_logging("INFO", console=False, log_file=True)
    logger = get_logger("voicepace.tests.file")
    logger.debug("filtered out")
    logger.info("session closed: 3 packets sent")
    shutdown_logging()

    contents = (log_dir() / LOG_FILE_NAME).read_text(encoding="utf-8")
    assert "voicepace.tests.file - INFO - session closed: 3 packets sent" in contents
    assert "filtered out" not in contents
    assert logging.getLogger(PACKAGE_LOGGER).handlers
