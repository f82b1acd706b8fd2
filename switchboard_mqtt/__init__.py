"""
Switchboard MQTT Communication Package
======================================

Bounded Context: Broker session and command publication

This package connects the dashboard to an MQTT broker and publishes the
commands operators issue against configured functions.

Architecture:
- connection.py: ConnectionManager (session lifecycle state machine)
- publishers/: CommandPublisher (topic + payload, fire-and-forget)
- schemas/: Immutable payload structures
- logging/: Structured JSON logging for observability

Design Philosophy:
- One session per application instance, one reason to change per module
- Failures become state transitions, never exceptions for the caller
- Immutability: frozen dataclasses for message DTOs
- Observability: Structured logs (JSON) for production queries

Public API
----------
Session:
    ConnectionManager, ConnectionState, SessionError

Publishers:
    CommandPublisher, build_topic

Schemas:
    CommandMessage

Logging:
    LogEvent, StructuredLogger, create_logger

Example:
    >>> from switchboard_config import BrokerConfig, SessionOptions
    >>> from switchboard_mqtt import ConnectionManager, CommandPublisher
    >>>
    >>> connection = ConnectionManager(options=SessionOptions())
    >>> connection.connect(BrokerConfig(scheme="wss://", host="broker.example.com"))
    >>> publisher = CommandPublisher(connection)
    >>>
    >>> # Once CONNECTED
    >>> publisher.publish(endpoint, function, "ON")
"""

# Version
__version__ = "1.0.0"

# Schemas
from .schemas import CommandMessage

# Session
from .connection import (
    ConnectionManager,
    ConnectionState,
    SessionError,
    create_paho_client,
)

# Publishers
from .publishers import CommandPublisher, build_topic

# Logging
from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    # Version
    '__version__',
    # Schemas
    'CommandMessage',
    # Session
    'ConnectionManager',
    'ConnectionState',
    'SessionError',
    'create_paho_client',
    # Publishers
    'CommandPublisher',
    'build_topic',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
