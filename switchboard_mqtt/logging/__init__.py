"""
Structured Logging for Switchboard MQTT
=======================================

Bounded Context: Observability

This module provides JSON-structured logging for production observability.

Design:
- JSON output (parseable by ELK, CloudWatch, Loki)
- Typed events (enums prevent typos)
- Contextual metadata (topic, broker, state, etc.)
- Thread-safe

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from switchboard_mqtt.logging import StructuredLogger, LogEvent
    >>> logger = StructuredLogger(component="publisher")
    >>> logger.info(
    ...     event=LogEvent.MQTT_PUBLISH_SUCCESS,
    ...     message="Published message",
    ...     metadata={'topic': 'dev1/light/set'}
    ... )

Output:
    {
        "timestamp": "2026-10-19T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "publisher",
        "event": "mqtt.publish.success",
        "message": "Published message",
        "metadata": {"topic": "dev1/light/set"}
    }
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
