"""Minimal logging helpers for allotment.

The library itself only creates module loggers and never installs handlers.
Entry points (the CLI) call ``setup_logging`` once:

* ``setup_logging`` initialises a single file handler whose level comes from
  ``ALLOTMENT_LOG_LEVEL`` (default ERROR).
* ``current_run_dir`` / ``get_log_path`` expose the location used for logs.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional

__all__ = [
    "current_run_dir",
    "get_log_path",
    "setup_logging",
]

_configured = False
_run_dir: Optional[Path] = None
_log_path: Optional[Path] = None


def _platform_data_dir() -> Path:
    """Return a per-user writable application data directory."""
    app = "allotment"
    if os.name == "nt":
        base = Path(os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or (Path.home() / "AppData" / "Local"))
        return base / app
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app
    xdg_home = os.getenv("XDG_DATA_HOME")
    if xdg_home:
        return Path(xdg_home) / app
    return Path.home() / ".local" / "share" / app


def _default_logs_dir() -> Path:
    return _platform_data_dir() / "logs"


def current_run_dir() -> Optional[Path]:
    """Return the directory that currently holds log artefacts."""
    return _run_dir


def _resolve_log_path(file_env: str) -> Path:
    override = os.getenv(file_env)
    if override:
        path = Path(override).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
    logs_dir = _default_logs_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir / "allotment.log"


def setup_logging(
    *,
    level_env: str = "ALLOTMENT_LOG_LEVEL",
    file_env: str = "ALLOTMENT_LOG_FILE",
) -> Path:
    """
    Configure the ``allotment`` logger with a single file handler.

    Messages go to ``allotment.log`` in the platform data directory (or the
    path given by ``ALLOTMENT_LOG_FILE``). Idempotent: repeated calls return
    the previously configured log directory without reconfiguring.
    """
    global _configured, _run_dir, _log_path

    if _configured:
        return _run_dir if _run_dir is not None else _default_logs_dir()

    level_name = os.getenv(level_env, "ERROR").upper().strip()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.ERROR

    handler: logging.Handler
    try:
        log_path = _resolve_log_path(file_env)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        log_path = Path(tempfile.gettempdir()) / "allotment.log"
        handler = logging.FileHandler(log_path, encoding="utf-8")
    _log_path = log_path
    _run_dir = log_path.parent

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    pkg_logger = logging.getLogger("allotment")
    for existing in list(pkg_logger.handlers):
        pkg_logger.removeHandler(existing)
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level)

    _configured = True
    return _run_dir


def get_log_path() -> Optional[Path]:
    """Expose the resolved log file path for modules that need it."""
    return _log_path
