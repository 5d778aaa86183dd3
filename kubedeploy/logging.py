"""Logging utilities for kubedeploy with structured logging support."""

import json
import os
import sys
from datetime import datetime, UTC
from typing import Literal, Dict, Any, Optional
from enum import Enum

from kubedeploy.secrets import mask_string


class LogLevel(Enum):
    """Log levels for structured logging."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class StructuredLogger:
    """Structured logger writing masked lines to stdout/stderr."""

    _level_priority = {
        "DEBUG": 0,
        "INFO": 1,
        "WARNING": 2,
        "ERROR": 3,
    }

    def __init__(self, component: str = "kubedeploy"):
        """Initialize logger with component name."""
        self.component = component
        self.log_format = os.getenv("LOG_FORMAT", "text")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def _should_log(self, level: LogLevel) -> bool:
        level_priority = self._level_priority.get(level.name, 1)
        current_priority = self._level_priority.get(self.log_level, 1)
        return level_priority >= current_priority

    def _format_message(
        self,
        level: LogLevel,
        message: str,
        fields: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None
    ) -> str:
        """Format log message based on LOG_FORMAT."""
        timestamp = datetime.now(UTC).isoformat()

        if self.log_format == "json":
            log_entry = {
                "timestamp": timestamp,
                "level": level.value,
                "component": self.component,
                "message": message
            }

            if fields:
                log_entry["fields"] = fields

            if error:
                log_entry["error"] = {
                    "type": type(error).__name__,
                    "message": str(error)
                }

            return json.dumps(log_entry, default=str)

        fields_str = ""
        if fields:
            fields_str = " " + " ".join(f"{k}={v}" for k, v in fields.items())

        error_str = ""
        if error:
            error_str = f" error={type(error).__name__}: {error}"

        return f"{timestamp} [{level.name}] [{self.component}] {message}{fields_str}{error_str}"

    def _log(
        self,
        level: LogLevel,
        message: str,
        fields: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
    ):
        if not self._should_log(level):
            return

        output = mask_string(self._format_message(level, message, fields, error))
        print(output, file=sys.stderr)

    def debug(self, message: str, fields: Optional[Dict[str, Any]] = None):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, fields)

    def info(self, message: str, fields: Optional[Dict[str, Any]] = None):
        """Log info message."""
        self._log(LogLevel.INFO, message, fields)

    def warning(self, message: str, fields: Optional[Dict[str, Any]] = None):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, fields)

    def error(self, message: str, error: Optional[Exception] = None, fields: Optional[Dict[str, Any]] = None):
        """Log error message."""
        self._log(LogLevel.ERROR, message, fields, error)

    def with_component(self, component: str) -> "StructuredLogger":
        """Create a new logger with a different component name."""
        return StructuredLogger(component)


logger = StructuredLogger()


def log_line(message: str, stream: Literal["stdout", "stderr"] = "stdout"):
    """Log a masked line with formatting based on the LOG_FORMAT environment variable."""
    log_format = os.getenv("LOG_FORMAT", "text")
    timestamp = datetime.now(UTC).isoformat()
    message = mask_string(message)

    if log_format == "json":
        output = json.dumps({
            "timestamp": timestamp,
            "stream": stream,
            "message": message
        })
    else:
        output = f"{timestamp} {message}"

    if stream == "stderr":
        print(output, file=sys.stderr)
    else:
        print(output)


def log_stdout(message: str):
    """Log a message to stdout."""
    log_line(message, "stdout")


def log_stderr(message: str):
    """Log a message to stderr."""
    log_line(message, "stderr")
