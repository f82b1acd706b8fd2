"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

This module defines typed event names for structured logging.

Design:
- Enum-based (prevents typos, enables autocomplete)
- Hierarchical naming (namespace.category.action)
- Searchable in log aggregators

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, error
    category: connect, publish
    action: success, failed, suppressed, ignored

Example Log Query:
    fields @timestamp, event, message, metadata.topic
    | filter event = "mqtt.publish.suppressed"
    | stats count() by bin(5m)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: Broker session and command publication
    - error.*: Error conditions
    """

    # ========== Session Events ==========
    MQTT_CONNECTING = "mqtt.connecting"
    """Session attempt started."""

    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection closed."""

    MQTT_RECONNECTING = "mqtt.reconnecting"
    """Reconnect scheduled after a failure or close."""

    MQTT_CONNECT_IGNORED = "mqtt.connect.ignored"
    """connect() called while a session already exists."""

    MQTT_STATE_CHANGED = "mqtt.state_changed"
    """Connection state machine transition."""

    # ========== Publish Events ==========
    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Command handed to the session."""

    MQTT_PUBLISH_SUPPRESSED = "mqtt.publish.suppressed"
    """Command dropped because no session is active (not an error)."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Session refused the command."""

    # ========== Error Events ==========
    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Transport failure; session terminated, reconnect follows."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Exception raised while publishing."""

    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize command payload."""

    LISTENER_ERROR = "error.listener"
    """A connection state listener raised."""

