"""
Switchboard MQTT Schemas
=======================

Bounded Context: Data Structures

This module defines the immutable payload published for every command.

Public API
----------
    CommandMessage: {"data": value, "token": token}

Example:
    >>> from switchboard_mqtt.schemas import CommandMessage
    >>> CommandMessage(data="ON", token="abc").to_json()
    '{"data":"ON","token":"abc"}'
"""

from .command import CommandMessage

__all__ = [
    'CommandMessage',
]
