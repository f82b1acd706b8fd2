"""
Command Publisher
================

Bounded Context: Command Message Production

This module publishes one command per operator activation.

Design:
- Topic: "<endpoint identifier>/<function topic suffix>", for every function
- Payload: CommandMessage {"data": value, "token": function auth token}
- QoS 0 (fire-and-forget), never retained, no retry, no ack wait
- Not connected → command dropped and counted, never queued

Message Flow:
    FunctionWidget → CommandPublisher → ConnectionManager.session → MQTT Broker

Responsibilities:
- Topic and payload construction
- Publishing on the active session
- Error handling and logging
- NOT responsible for: Connection lifecycle (ConnectionManager)
"""

import threading
from typing import Dict, Any, Optional
import paho.mqtt.client as mqtt

from switchboard_config.models import Endpoint, Function
from ..connection import ConnectionManager
from ..logging import StructuredLogger, LogEvent, create_logger
from ..schemas import CommandMessage


def build_topic(endpoint: Endpoint, function: Function) -> str:
    """
    Topic a function's commands are published under.

    Example:
        >>> build_topic(Endpoint(name="Relay", identifier="dev1"), light)
        'dev1/light/set'
    """
    return f"{endpoint.identifier}/{function.topic_suffix}"


class CommandPublisher:
    """
    Publisher for command messages.

    Attributes:
        connection: Session owner; asked for the active session on every call
        qos: Quality of Service (default: 0)
        logger: Structured logger instance

    Thread Safety:
        Counters are guarded by a lock; paho's publish() is thread-safe.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        logger: Optional[StructuredLogger] = None,
        qos: int = 0
    ):
        """
        Initialize command publisher.

        Args:
            connection: ConnectionManager owning the broker session
            logger: Structured logger (default: component "publisher")
            qos: Quality of Service (0=fire-and-forget)
        """
        self.connection = connection
        self.logger = logger or create_logger("publisher")
        self.qos = qos

        self._published_count = 0
        self._suppressed_count = 0
        self._failed_count = 0
        self._stats_lock = threading.Lock()

    def format_message(self, function: Function, value: str) -> CommandMessage:
        """Build the payload for value on function."""
        return CommandMessage(data=value, token=function.auth_token)

    def publish(self, endpoint: Endpoint, function: Function, value: str) -> bool:
        """
        Publish value to function of endpoint.

        Args:
            endpoint: Owning endpoint (supplies the topic prefix)
            function: Target function (supplies topic suffix and token)
            value: Value to send

        Returns:
            True if handed to the session, False if dropped or refused

        Design Note:
            While not connected the command is dropped silently: nothing is
            emitted and nothing is queued for later.
        """
        topic = build_topic(endpoint, function)

        session = self.connection.session
        if session is None:
            with self._stats_lock:
                self._suppressed_count += 1
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_SUPPRESSED,
                message="Command dropped: not connected to broker",
                metadata={'topic': topic, 'state': self.connection.state.value}
            )
            return False

        try:
            payload = self.format_message(function, value).to_json()
        except (TypeError, ValueError) as e:
            with self._stats_lock:
                self._failed_count += 1
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Cannot serialize command",
                exc_info=e,
                metadata={'topic': topic}
            )
            return False

        try:
            result = session.publish(
                topic=topic,
                payload=payload,
                qos=self.qos,
                retain=False
            )
        except Exception as e:
            with self._stats_lock:
                self._failed_count += 1
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message="Error publishing command",
                exc_info=e,
                metadata={'topic': topic}
            )
            return False

        if result.rc == mqtt.MQTT_ERR_SUCCESS:
            with self._stats_lock:
                self._published_count += 1
                count = self._published_count

            self.logger.info(
                event=LogEvent.MQTT_PUBLISH_SUCCESS,
                message="Published command",
                metadata={
                    'topic': topic,
                    'function': function.name,
                    'message_count': count,
                    'qos': self.qos
                }
            )
            return True

        with self._stats_lock:
            self._failed_count += 1
        self.logger.warning(
            event=LogEvent.MQTT_PUBLISH_FAILED,
            message=f"Publish failed (rc={result.rc})",
            metadata={'topic': topic}
        )
        return False

    def get_stats(self) -> Dict[str, Any]:
        """
        Get publisher statistics.

        Returns:
            Dictionary with published / suppressed / failed counts

        Example:
            >>> stats = publisher.get_stats()
            >>> print(f"Published {stats['message_count']} commands")
        """
        with self._stats_lock:
            return {
                'message_count': self._published_count,
                'suppressed_count': self._suppressed_count,
                'failed_count': self._failed_count,
                'connected': self.connection.is_publish_ready(),
            }
