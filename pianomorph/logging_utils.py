from __future__ import annotations

import logging
import os
import traceback
from datetime import datetime
from pathlib import Path

_LOGGER = logging.getLogger("pianomorph.logging")
_ROOT_LOGGER_NAME = "pianomorph"
_LOG_DIR_ENV = "PIANOMORPH_LOG_DIR"
_LOG_LEVEL_ENV = "PIANOMORPH_LOG_LEVEL"
_LOG_FILE = "pianomorph.log"


def configure_logging() -> None:
    """Attach a NullHandler to the library logger and apply the env log level."""
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    if not any(isinstance(handler, logging.NullHandler) for handler in logger.handlers):
        logger.addHandler(logging.NullHandler())
    level_name = os.environ.get(_LOG_LEVEL_ENV, "").strip().upper()
    if not level_name:
        return
    level = logging.getLevelName(level_name)
    if isinstance(level, int):
        logger.setLevel(level)
    else:
        _LOGGER.warning("Ignoring unknown %s=%r", _LOG_LEVEL_ENV, level_name)


def get_log_dir() -> Path:
    configured = os.environ.get(_LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "pianomorph" / "logs"


def get_log_path() -> Path:
    return get_log_dir() / _LOG_FILE


def log_exception(context: str, exc: BaseException) -> Path | None:
    try:
        log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        path = get_log_path()
        timestamp = datetime.now().isoformat()
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{timestamp}] {context} failed: {type(exc).__name__}: {exc}\n")
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=handle)
            handle.write("\n")
        return path
    except Exception as log_exc:
        _LOGGER.warning("Failed to write log file: %s", log_exc, exc_info=True)
        return None
