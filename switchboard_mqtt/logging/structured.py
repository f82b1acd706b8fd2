"""
Structured JSON Logger
=====================

Bounded Context: Observability Infrastructure

One JSON object per record, on top of the standard logging module, so the
session and publisher can log from paho's network thread and the reconnect
timer alike.

Record layout:
    {
        "timestamp": "2026-10-19T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "connection",
        "event": "mqtt.connected",
        "message": "Connected to MQTT broker",
        "metadata": {"broker": "wss://broker.example.com"}
    }

"metadata" is present only when given; "exception" ({type, message}) only on
errors logged with exc_info.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from .events import LogEvent

Metadata = Optional[Dict[str, Any]]


class StructuredLogger:
    """
    Logger for one component (e.g., "connection", "publisher").

    Records go to the "switchboard_mqtt.<component>" logger; a JSON stream
    handler is attached the first time that logger is used.
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        self.component = component
        self.logger_name = logger_name or f"switchboard_mqtt.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def _entry(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Metadata,
        exc_info: Optional[BaseException],
    ) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': logging.getLevelName(level),
            'component': self.component,
            'event': event.value,
            'message': message,
        }
        if metadata:
            entry['metadata'] = metadata
        if exc_info is not None:
            entry['exception'] = {'type': type(exc_info).__name__, 'message': str(exc_info)}
        return entry

    def _log(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Metadata = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        entry = self._entry(level, event, message, metadata, exc_info)
        self.logger.log(level, json.dumps(entry, default=str), exc_info=exc_info)

    def debug(self, event: LogEvent, message: str, metadata: Metadata = None) -> None:
        self._log(logging.DEBUG, event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Metadata = None) -> None:
        self._log(logging.INFO, event, message, metadata)

    def warning(self, event: LogEvent, message: str, metadata: Metadata = None) -> None:
        self._log(logging.WARNING, event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Metadata = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """Log an error; exc_info adds the exception summary and traceback."""
        self._log(logging.ERROR, event, message, metadata, exc_info)

    def set_level(self, level: Union[int, str]) -> None:
        """Change the level at runtime ("DEBUG" or logging.DEBUG, ...)."""
        self.logger.setLevel(_resolve_level(level))


class JSONFormatter(logging.Formatter):
    """Passes through the JSON already built by StructuredLogger."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper())
    return level


def create_logger(
    component: str,
    level: Union[int, str] = logging.INFO
) -> StructuredLogger:
    """
    Build a StructuredLogger for component.

    Example:
        >>> logger = create_logger("connection", level="DEBUG")
    """
    return StructuredLogger(component=component, level=_resolve_level(level))
