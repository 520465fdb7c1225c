"""
Logging and Error Handling System

This module provides centralized logging configuration and error tracking
utilities for the css-assets plugin.
"""

import logging
import logging.handlers
import os
import sys
import threading
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional
import traceback
from pathlib import Path


class AssetsLogger:
    """
    Centralized logging setup for the css-assets plugin.

    Logs to the console and, when a log directory is given, to rotating
    log files (one for everything, one for errors only).
    """

    def __init__(self, log_dir: Optional[str] = None, app_name: str = "css_assets"):
        """
        Initialize the logging system.

        Args:
            log_dir: Directory to store log files (None for console only)
            app_name: Name of the root logger
        """
        self.log_dir = Path(log_dir) if log_dir else None
        self.app_name = app_name
        self.loggers: Dict[str, logging.Logger] = {}

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logger(self, level: int = logging.INFO) -> logging.Logger:
        """
        Set up the root plugin logger with console and file handlers.

        Args:
            level: Logging level (default: INFO)

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger(self.app_name)
        logger.setLevel(level)

        # Prevent duplicate handlers
        if logger.handlers:
            return logger

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

        if self.log_dir is not None:
            log_file = self.log_dir / f"{self.app_name}.log"
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=5*1024*1024,  # 5MB
                backupCount=3,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)

            error_file = self.log_dir / f"{self.app_name}_errors.log"
            error_handler = logging.handlers.RotatingFileHandler(
                error_file,
                maxBytes=1024*1024,  # 1MB
                backupCount=3,
                encoding='utf-8'
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(detailed_formatter)

            logger.addHandler(file_handler)
            logger.addHandler(error_handler)

        self.loggers['main'] = logger
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            name: Name of the component

        Returns:
            Logger instance for the component
        """
        full_name = f"{self.app_name}.{name}"

        if full_name not in self.loggers:
            self.loggers[full_name] = logging.getLogger(full_name)

        return self.loggers[full_name]

    def log_system_info(self):
        """Log environment information for debugging."""
        logger = self.get_logger('system')

        logger.debug(f"Python version: {sys.version}")
        logger.debug(f"Platform: {sys.platform}")
        logger.debug(f"Working directory: {os.getcwd()}")
        if self.log_dir is not None:
            logger.debug(f"Log directory: {self.log_dir.absolute()}")


class ErrorTracker:
    """
    Collects the failures and warnings of one plugin.

    Batch transforms keep going after a value fails; the tracker keeps what
    went wrong so the host can report it afterwards. Safe to share between
    worker threads.
    """

    RECENT = 5

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.errors: List[Dict[str, Any]] = []
        self.warnings: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def _record(self, bucket: List[Dict[str, Any]], prefix: str, entry: Dict[str, Any]) -> str:
        with self._lock:
            entry['id'] = f"{prefix}_{len(bucket) + 1:04d}"
            entry['timestamp'] = datetime.now()
            bucket.append(entry)
        return entry['id']

    @staticmethod
    def _where(value: Optional[str], source: Optional[str]) -> str:
        parts = []
        if value:
            parts.append(f"value {value!r}")
        if source:
            parts.append(f"in {source}")
        return f" ({', '.join(parts)})" if parts else ""

    def log_error(self, error: Exception, value: Optional[str] = None,
                  source: Optional[str] = None) -> str:
        """
        Record a failed transform.

        Args:
            error: The exception raised while transforming
            value: Property value that failed
            source: Stylesheet path, if known

        Returns:
            Identifier of the recorded error
        """
        entry = {
            'type': type(error).__name__,
            'message': str(error),
            'value': value,
            'source': source,
            'traceback': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
        }
        error_id = self._record(self.errors, 'ERR', entry)
        self.logger.error(f"[{error_id}] {entry['type']}: {entry['message']}{self._where(value, source)}")
        self.logger.debug(f"[{error_id}] Traceback:\n{entry['traceback']}")
        return error_id

    def log_warning(self, message: str, value: Optional[str] = None,
                    source: Optional[str] = None) -> str:
        """Record stylesheet content that was skipped; returns its identifier."""
        warning_id = self._record(self.warnings, 'WARN',
                                  {'message': message, 'value': value, 'source': source})
        self.logger.warning(f"[{warning_id}] {message}{self._where(value, source)}")
        return warning_id

    def get_error_summary(self) -> Dict[str, Any]:
        """Counts per error type plus the most recent errors and warnings."""
        with self._lock:
            return {
                'total_errors': len(self.errors),
                'total_warnings': len(self.warnings),
                'error_types': dict(Counter(e['type'] for e in self.errors)),
                'recent_errors': self.errors[-self.RECENT:],
                'recent_warnings': self.warnings[-self.RECENT:],
            }


# Global logger instance
_logger_instance: Optional[AssetsLogger] = None


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Name of the component (optional)

    Returns:
        Logger instance
    """
    global _logger_instance

    if _logger_instance is None:
        _logger_instance = AssetsLogger()

    if name:
        return _logger_instance.get_logger(name)
    return logging.getLogger(_logger_instance.app_name)


def initialize_logging(log_dir: Optional[str] = None, level: int = logging.INFO):
    """
    Initialize the global logging system.

    Args:
        log_dir: Directory for log files (None for console only)
        level: Logging level
    """
    global _logger_instance
    _logger_instance = AssetsLogger(log_dir)
    _logger_instance.setup_logger(level)
    _logger_instance.log_system_info()


def create_error_tracker(logger_name: str = None) -> ErrorTracker:
    """
    Create an error tracker instance.

    Args:
        logger_name: Name of the logger to use

    Returns:
        ErrorTracker instance
    """
    return ErrorTracker(get_logger(logger_name))
