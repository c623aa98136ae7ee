"""
Logging configuration for Ups.
"""

# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
import os
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'      # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        log_color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset_color = self.COLORS['RESET']

        # Work on a copy so file handlers see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{log_color}{record.levelname}{reset_color}"

        return super().format(record)


FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s - %(name)s - %(message)s'

_global_config: Optional[Dict[str, Any]] = None
_log_file_path: Optional[str] = None
_logger_instances: Dict[str, logging.Logger] = {}
_global_state_lock = threading.RLock()

# Console is quiet by default; the CLI raises the level with --debug
_console_level = logging.WARNING


def _debug_enabled() -> bool:
    if not _global_config:
        return False
    return bool(_global_config.get('verbose_logging') or _global_config.get('debug_mode'))


def _make_file_handler(path: str, level: int) -> logging.Handler:
    file_handler = logging.FileHandler(path)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return file_handler


def set_console_level(level: int) -> None:
    """Set the level of console output for every Ups logger."""
    global _console_level
    with _global_state_lock:
        _console_level = level
        for logger in _logger_instances.values():
            for handler in logger.handlers:
                if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                    handler.setLevel(level)


def set_global_config(config: Dict[str, Any]) -> None:
    """
    Set global configuration for logging with thread safety.

    Args:
        config: Configuration dictionary
    """
    global _global_config, _log_file_path
    with _global_state_lock:
        _global_config = config

        if _debug_enabled() and _log_file_path is None:
            from ..constants import get_config_dir
            log_dir = get_config_dir() / 'logs'
            try:
                log_dir.mkdir(parents=True, exist_ok=True)
                os.chmod(log_dir, 0o700)
            except OSError:
                return

            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            _log_file_path = str(log_dir / f'ups_{timestamp}.log')

            latest_log = log_dir / 'latest.log'
            temp_symlink = log_dir / f'latest.log.tmp.{os.getpid()}'
            try:
                temp_symlink.symlink_to(Path(_log_file_path).name)
                temp_symlink.replace(latest_log)
            except OSError:
                try:
                    temp_symlink.unlink()
                except OSError:
                    pass

        _reconfigure_all_loggers()


def _reconfigure_all_loggers() -> None:
    """Reconfigure all existing loggers with new settings."""
    # Caller holds _global_state_lock
    level = logging.DEBUG if _debug_enabled() else logging.INFO

    for logger in _logger_instances.values():
        logger.setLevel(level)

        if _log_file_path and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
            try:
                logger.addHandler(_make_file_handler(_log_file_path, level))
            except OSError:
                pass


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger instance with thread safety.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    with _global_state_lock:
        if name in _logger_instances:
            return _logger_instances[name]

        level = logging.DEBUG if _debug_enabled() else logging.INFO

        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.handlers.clear()

        # Console handler (use stderr for logs)
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(_console_level)
        console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

        if _log_file_path:
            try:
                logger.addHandler(_make_file_handler(_log_file_path, level))
            except OSError:
                # Don't log this error to avoid recursion
                pass

        logger.propagate = False

        _logger_instances[name] = logger
        return logger
