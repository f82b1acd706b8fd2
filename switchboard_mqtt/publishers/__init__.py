"""
MQTT Publishers
==============

Bounded Context: Message Production

This module provides the publisher that turns a configured function and a
value into a command message on the broker.

Design:
- CommandPublisher: topic + payload construction, fire-and-forget publish
- Connection lifecycle lives in ConnectionManager; publishers only borrow
  the active session

Public API
----------
    CommandPublisher: Command message publisher
    build_topic: "<endpoint identifier>/<topic suffix>"

Example:
    >>> from switchboard_mqtt import ConnectionManager, CommandPublisher
    >>> connection = ConnectionManager()
    >>> publisher = CommandPublisher(connection)
    >>> publisher.publish(endpoint, function, "ON")
"""

from .command import CommandPublisher, build_topic

__all__ = [
    'CommandPublisher',
    'build_topic',
]
