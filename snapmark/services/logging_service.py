"""
Logging setup for SnapMark.

The editor logs gesture and compositing detail at DEBUG, image and crop
changes at INFO, and config or capture problems at WARNING/ERROR. Records
go to the console and, when enabled, to one file per day under
~/.local/share/snapmark/logs/.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional


DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "snapmark" / "logs"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that emit one record per pointer segment
STROKE_LOGGERS = (
    "snapmark.editor.stroke_controller",
    "snapmark.editor.compositor",
)

_logging_initialized = False
_installed_handlers: List[logging.Handler] = []


def _install(root_logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(handler)
    _installed_handlers.append(handler)


def log_file_for(log_dir: Path, day: Optional[datetime] = None) -> Path:
    """Path of the log file SnapMark writes to on the given day."""
    day = day or datetime.now()
    return log_dir / f"snapmark_{day.strftime('%Y%m%d')}.log"


def setup_logging(
    log_level: int = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Route SnapMark's loggers to the console and the daily log file.

    Args:
        log_level: Level for the root logger and both handlers.
        log_to_file: Also write to log_file_for(log_dir).
        log_dir: Directory for log files. Defaults to DEFAULT_LOG_DIR.

    Only the first call has any effect until reset_logging() is called.
    Per-segment stroke records are only kept when log_level is DEBUG.
    """
    global _logging_initialized

    if _logging_initialized:
        return

    log_dir = log_dir or DEFAULT_LOG_DIR

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    _install(root_logger, console_handler, log_level)

    if log_to_file:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            _install(
                root_logger,
                logging.FileHandler(log_file_for(log_dir), encoding="utf-8"),
                log_level,
            )
        except OSError as e:
            console_handler.setLevel(logging.WARNING)
            root_logger.warning(f"Could not open log file in {log_dir}: {e}. Logging to console only.")

    stroke_level = logging.NOTSET if log_level <= logging.DEBUG else logging.INFO
    for name in STROKE_LOGGERS:
        logging.getLogger(name).setLevel(stroke_level)

    _logging_initialized = True


def reset_logging() -> None:
    """Remove and close the handlers installed by setup_logging()."""
    global _logging_initialized

    root_logger = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()
    _logging_initialized = False


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for a SnapMark module.

    Usage:
        from snapmark.services.logging_service import get_logger
        self._logger = get_logger(__name__)
        self._logger.debug(f"Freehand segment {p1} -> {p2}")
    """
    return logging.getLogger(name)
