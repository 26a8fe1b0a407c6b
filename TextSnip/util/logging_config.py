"""
TextSnip Logging Configuration

A centralized logging system using loguru. Provides a console sink, a rotating
file sink and a dedicated error log, with records tagged by the component that
emitted them (selection, OCR, capture, delivery, hotkeys, config).
"""

import inspect
import os
import sys
import time
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger as _logger

# Remove default handler
_logger.remove()

APP_NAME = "TextSnip"


class LoggerManager:
    """
    Manages the loguru sinks for the application and tags every record with
    the component it came from.
    """

    # Component to file patterns mapping for automatic context tagging
    COMPONENT_PATTERNS = {
        "SELECTION": ["selection/", "selection_overlay"],
        "OCR": ["ocr/"],
        "CAPTURE": ["capture/", "capture_manager.py"],
        "DELIVERY": ["delivery.py", "history.py"],
        "HOTKEY": ["hotkey.py"],
        "CONFIG": ["configuration.py"],
    }

    def __init__(self):
        self._initialized = False
        self._log_dir: Optional[Path] = None
        self._handlers = {}

    def _get_app_directory(self) -> Path:
        """Get the application config directory (platform-aware)."""
        if sys.platform == 'win32':
            appdata_dir = os.getenv('APPDATA')
        else:
            appdata_dir = os.path.expanduser('~/.config')

        config_dir = Path(appdata_dir) / APP_NAME
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    def _get_log_directory(self) -> Path:
        """Get or create the logs directory."""
        if self._log_dir is None:
            self._log_dir = self._get_app_directory() / 'logs'
            self._log_dir.mkdir(parents=True, exist_ok=True)
        return self._log_dir

    def _detect_component_tag(self, record) -> str:
        """
        Detect the component tag based on the file path in the log record.
        Returns fixed-width component tag for consistent formatting.
        """
        file_path = record.get("file", "")
        file_name = getattr(file_path, "path", None) or str(file_path)
        file_name = file_name.replace("\\", "/")

        for component, patterns in self.COMPONENT_PATTERNS.items():
            for pattern in patterns:
                if pattern in file_name:
                    return component.ljust(10)

        return "MAIN".ljust(10)

    def _add_console_handler(self, level: str = "INFO"):
        """Add a console handler with colour and component tags."""
        def format_with_component(record):
            record["extra"]["component_tag"] = self._detect_component_tag(record)
            return True

        handler_id = _logger.add(
            sys.stdout,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <dim>{extra[component_tag]}</dim> | <level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=False,
            diagnose=False,
            filter=format_with_component,
        )
        self._handlers["console"] = handler_id
        return handler_id

    def _add_file_handler(self, level: str = "DEBUG"):
        """Add a rotating file handler."""
        log_file = self._get_log_directory() / "textsnip.log"

        def format_with_component(record):
            record["extra"]["component_tag"] = self._detect_component_tag(record)
            # Skip DISPLAY level from file logs
            return record["level"].name != "DISPLAY"

        handler_id = _logger.add(
            str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component_tag]}{name}:{function}:{line} | {message}",
            level=level,
            rotation="5 MB",
            retention="7 days",
            compression="zip",
            encoding="utf-8",
            backtrace=True,
            diagnose=True,
            enqueue=True,  # Thread-safe logging
            filter=format_with_component,
        )
        self._handlers["file"] = handler_id
        return handler_id

    def _add_error_handler(self):
        """Add a dedicated error log file for ERROR and CRITICAL messages."""
        error_log = self._get_log_directory() / "error.log"

        def format_with_component(record):
            record["extra"]["component_tag"] = self._detect_component_tag(record)
            return record["level"].no >= 40

        handler_id = _logger.add(
            str(error_log),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component_tag]}{name}:{function}:{line} - {message}\n{exception}",
            level="ERROR",
            rotation="5 MB",
            retention="14 days",
            compression="zip",
            encoding="utf-8",
            backtrace=True,
            diagnose=True,
            enqueue=True,
            filter=format_with_component,
        )
        self._handlers["error_file"] = handler_id
        return handler_id

    def initialize(self, console_level: str = "INFO", file_level: str = "DEBUG"):
        """
        Install the console, file and error sinks.

        Args:
            console_level: Minimum level for console output (INFO, DEBUG, etc.)
            file_level: Minimum level for file output
        """
        if self._initialized:
            return

        self._add_console_handler(level=console_level)
        self._add_file_handler(level=file_level)
        self._add_error_handler()

        self._initialized = True
        _logger.debug(f"Logging initialized, log directory: {self._get_log_directory()}")

    def cleanup_old_logs(self, days: int = 7):
        """
        Clean up log files older than specified days.

        Args:
            days: Number of days to retain logs
        """
        log_dir = self._get_log_directory()
        cutoff = time.time() - (days * 86400)

        cleaned_count = 0
        for log_file in log_dir.iterdir():
            if log_file.is_file() and log_file.stat().st_mtime < cutoff:
                try:
                    log_file.unlink()
                    cleaned_count += 1
                except OSError as e:
                    _logger.warning(f"Error deleting log file {log_file}: {e}")

        if cleaned_count > 0:
            _logger.info(f"Cleaned up {cleaned_count} old log files")
        return cleaned_count

    def add_custom_level(self, name: str, severity: int, color: str = ""):
        """Add a custom log level."""
        _logger.level(name, no=severity, color=color)


# Global logger manager instance
_manager = LoggerManager()


def initialize_logging(console_level: str = "INFO", file_level: str = "DEBUG"):
    """Initialize the logging sinks (convenience function)."""
    _manager.initialize(console_level=console_level, file_level=file_level)


def cleanup_old_logs(days: int = 7):
    """Clean up old log files (convenience function)."""
    return _manager.cleanup_old_logs(days=days)


# Export the logger directly for convenience
logger = _logger

# DISPLAY sits between INFO and WARNING; used for user-facing messages that should not reach the log file
_manager.add_custom_level("DISPLAY", 25, "")


def display(message: str):
    """Log a user-facing message at DISPLAY level."""
    frame = inspect.currentframe().f_back
    logger.patch(lambda record: record.update(
        function=frame.f_code.co_name,
        line=frame.f_lineno,
    )).log("DISPLAY", message)


__all__ = [
    'logger',
    'initialize_logging',
    'cleanup_old_logs',
    'display',
    'LoggerManager',
]
