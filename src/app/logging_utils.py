from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

from .branding import APP_ENV_PREFIX, APP_NAME, APP_SLUG

LOG_DIR_ENV = f"{APP_ENV_PREFIX}_LOG_DIR"
UI_LOG_FILENAME = "textual-ui.log"
PREVIEW_FILENAME = "score-preview.html"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def default_log_dir() -> Path:
    """Per-user directory for UI logs and the HTML score preview."""
    override = os.environ.get(LOG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    if platform.system() == "Darwin":
        return Path.home() / "Library" / "Logs" / APP_NAME
    state_home = os.environ.get("XDG_STATE_HOME")
    if state_home:
        return Path(state_home).expanduser() / APP_SLUG / "logs"
    return Path.home() / f".{APP_SLUG}" / "logs"


def log_path(filename: str, base_dir: str | Path | None = None) -> Path:
    return (Path(base_dir) if base_dir else default_log_dir()) / filename


def setup_file_logger(
    name: str,
    filename: str,
    *,
    level: int = logging.INFO,
    base_dir: str | Path | None = None,
) -> Path:
    """Attach one UTF-8 file handler to ``name``; repeated calls are no-ops."""
    path = log_path(filename, base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    if any(isinstance(handler, logging.FileHandler) for handler in logger.handlers):
        return path
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    return path
