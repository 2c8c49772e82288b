"""Logging configuration for ScriptCut."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, TextIO

from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _build_file_handler(log_dir: str, log_file: str, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    ensure_dir_exists(log_dir)
    return RotatingFileHandler(
        os.path.join(log_dir, log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )


def setup_logging(
    log_level: int = logging.INFO,
    log_dir: str = "logs",
    log_file: str = "scriptcut.log",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    stream: Optional[TextIO] = None
) -> None:
    """
    Routes every ScriptCut logger to the console and a rotating log file.

    Calling it again replaces the handlers installed by the previous call,
    so the CLI can configure logging before and after reading its config.

    Args:
        log_level: Minimum level for the root logger and the console.
        log_dir: Directory of the log file (created if missing).
        log_file: Log file name inside log_dir.
        log_format: Format string shared by both handlers.
        date_format: Timestamp format.
        max_bytes: Size at which the log file is rotated.
        backup_count: Rotated files to keep.
        stream: Console stream; stdout when None. The CLI passes stderr
                while stdout carries a JSON report.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(log_level)
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console = logging.StreamHandler(stream or sys.stdout)
    console.setFormatter(formatter)
    console.setLevel(log_level)
    root.addHandler(console)

    try:
        file_handler = _build_file_handler(log_dir, log_file, max_bytes, backup_count)
    except Exception as e:
        # The console handler is already in place, so report there and carry on
        root.error(f"Failed to set up file logging at {os.path.join(log_dir, log_file)}: {e}", exc_info=True)
        return
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    root.info(f"Logging initialized. Log file: {file_handler.baseFilename}")
