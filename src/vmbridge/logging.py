"""Logging setup for the bridge and the emulator module it loads."""

from __future__ import annotations

import logging as py_logging
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
LOG_LEVEL_ENV = "VMBRIDGE_LOG_LEVEL"
ROOT_LOGGER = "vmbridge"
DEFAULT_LOG_PATH = Path("~/.config/vmbridge/logs/vmbridge.log")
_FALLBACK_LOG_PATH = Path(".vmbridge/logs/vmbridge.log")
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


def default_log_path() -> Path:
    try:
        resolved = DEFAULT_LOG_PATH.expanduser()
    except RuntimeError:
        resolved = (Path.cwd() / _FALLBACK_LOG_PATH).resolve()
    else:
        if not resolved.is_absolute():
            resolved = resolved.resolve()
    return resolved


def resolve_level(level: str | None) -> int:
    """Map a level name to a logging level.

    ``None`` reads ``VMBRIDGE_LOG_LEVEL``; unknown names fall back to INFO.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    return LOG_LEVELS.get(level.strip().upper(), py_logging.INFO)


def emulator_logger_name(factory_path: str) -> str:
    """Logger name of the module an emulator factory path points at."""
    module_name, _, _ = factory_path.strip().partition(":")
    return module_name.strip()


def configure_logging(
    level: str | None = None,
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
    emulator_loggers: Iterable[str] = (),
) -> py_logging.Logger:
    """Route ``vmbridge`` records, and any emulator module loggers, to shared handlers.

    Console output goes to ``stream`` (stderr by default) so it never mixes
    with the terminal session on stdout. The optional file handler always
    records DEBUG.
    """
    resolved = resolve_level(level)
    formatter = py_logging.Formatter(_FORMAT)

    handlers: list[py_logging.Handler] = []
    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(formatter)
    handlers.append(console)

    file_handler = _file_handler(log_file)
    if file_handler is not None:
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    names = [ROOT_LOGGER, *(name for name in emulator_loggers if name and name != ROOT_LOGGER)]
    for name in names:
        _install(py_logging.getLogger(name), resolved, handlers)
    return py_logging.getLogger(ROOT_LOGGER)


def _file_handler(log_file: str | Path | None) -> py_logging.Handler | None:
    if not log_file:
        return None
    try:
        log_path = Path(log_file).expanduser()
    except RuntimeError:
        log_path = Path(log_file)
    if not log_path.is_absolute():
        log_path = log_path.resolve()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = py_logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return None
    handler.setLevel(py_logging.DEBUG)
    return handler


def _install(logger: py_logging.Logger, level: int, handlers: list[py_logging.Handler]) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False
