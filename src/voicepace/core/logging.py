"""Logging for voicepace.

Every ``voicepace.*`` logger propagates to the package logger, which owns a
single ``QueueHandler``. A background ``QueueListener`` drains the queue into
the real sinks so that PortAudio callback threads never block on file I/O.

Library use configures itself lazily on the first ``setup_logging`` call
(file sink only, level from ``VOICEPACE_LOG_LEVEL``). The CLI calls
``configure_logging`` to change the level or add the console sink; loggers
created earlier follow the new level because they inherit it.
"""

import atexit
import logging
import os
import sys
import threading
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import SimpleQueue

PACKAGE_LOGGER = "voicepace"
LOG_FILE_NAME = "voicepace.log"
LOG_MAX_BYTES = 2 * 1024 * 1024
LOG_BACKUP_COUNT = 3

_FORMATTER = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

_lock = threading.Lock()
_queue: SimpleQueue = SimpleQueue()
_listener: QueueListener | None = None
_sinks: list[logging.Handler] = []
_configured = False


def log_dir() -> Path:
    """Directory of the rotating log file."""
    env_dir = os.environ.get("VOICEPACE_LOG_DIR")
    return Path(env_dir) if env_dir else Path.home() / ".voicepace" / "logs"


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    name = level or os.environ.get("VOICEPACE_LOG_LEVEL") or "INFO"
    resolved = logging.getLevelName(name.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_sinks(level: int, console: bool, log_file: bool) -> list[logging.Handler]:
    sinks: list[logging.Handler] = []
    if log_file:
        path = log_dir() / LOG_FILE_NAME
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            sinks.append(
                RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8")
            )
        except OSError:
            # Unwritable log dir: keep running without the file sink
            pass
    if console:
        sinks.append(logging.StreamHandler(sys.stderr))
    for sink in sinks:
        sink.setLevel(level)
        sink.setFormatter(_FORMATTER)
    return sinks


def _release_sinks() -> None:
    global _listener
    if _listener is not None:
        _listener.stop()
        _listener = None
    for sink in _sinks:
        sink.close()
    _sinks.clear()


def configure_logging(
    level: str | int | None = None,
    console: bool | None = None,
    log_file: bool = True,
) -> logging.Logger:
    """(Re)build the sinks behind the ``voicepace`` logger tree.

    Args:
        level: Level name or number; defaults to VOICEPACE_LOG_LEVEL, then INFO
        console: Also log to stderr; defaults to VOICEPACE_CONSOLE_LOGS
        log_file: Write the rotating file under ``log_dir()``

    Returns:
        The package logger

    """
    global _listener, _configured
    resolved = _resolve_level(level)
    if console is None:
        console = os.environ.get("VOICEPACE_CONSOLE_LOGS", "").strip().lower() in {"1", "true", "yes"}

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    with _lock:
        _release_sinks()
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)

        package_logger.setLevel(resolved)
        package_logger.propagate = False

        _sinks.extend(_build_sinks(resolved, console, log_file))
        if _sinks:
            _listener = QueueListener(_queue, *_sinks, respect_handler_level=True)
            _listener.start()
            package_logger.addHandler(QueueHandler(_queue))
        else:
            package_logger.addHandler(logging.NullHandler())

        if not _configured:
            atexit.register(shutdown_logging)
        _configured = True
    return package_logger


def shutdown_logging() -> None:
    """Flush queued records and close every sink."""
    with _lock:
        _release_sinks()
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
        package_logger.addHandler(logging.NullHandler())


def setup_logging(module_name: str) -> logging.Logger:
    """Logger for a voicepace module (usually ``__name__``)."""
    if not _configured:
        configure_logging()
    return logging.getLogger(module_name)


def get_logger(module_name: str) -> logging.Logger:
    return setup_logging(module_name)


__all__ = ["configure_logging", "get_logger", "log_dir", "setup_logging", "shutdown_logging"]
