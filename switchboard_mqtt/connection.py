"""
ConnectionManager - Broker session lifecycle

Bounded Context: MQTT connection management
Responsibilities:
  - One broker session per application instance
  - Explicit state machine with observers
  - Fixed-interval reconnect with a fresh clean session every attempt
  - Containing every transport failure (never raised to the caller)

State Machine:
    DISCONNECTED → CONNECTING → CONNECTED
    CONNECTING   → FAILED → DISCONNECTED → CONNECTING   (after reconnect period)
    CONNECTED    → DISCONNECTED → CONNECTING            (after reconnect period)

Threading:
  - paho-mqtt runs its network loop in a background thread (loop_start)
  - Callbacks (_on_connect, _on_disconnect, _on_connect_fail) run in that thread
  - Reconnect timer runs in its own thread (threading.Timer)
  - State is guarded by an RLock; paho clients are stopped and listeners are
    notified after the lock is released

Each attempt uses a new paho client, so paho's internal reconnect never runs
and stale callbacks from a terminated client are recognized and ignored.
"""

import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import paho.mqtt.client as mqtt

from switchboard_config.settings import BrokerConfig, SessionOptions
from .logging import StructuredLogger, LogEvent, create_logger


class ConnectionState(str, Enum):
    """Broker session state."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class SessionError(ConnectionError):
    """Transport-level failure of a broker session."""
    pass


StateListener = Callable[[ConnectionState, ConnectionState], None]
ClientFactory = Callable[[BrokerConfig, SessionOptions], Any]
Scheduler = Callable[[float, Callable[[], None]], Any]


def create_paho_client(broker: BrokerConfig, options: SessionOptions) -> mqtt.Client:
    """
    Build an unconnected paho client for broker.

    Transport and TLS follow the URL scheme (ws/wss → websockets,
    mqtts/wss → TLS with system CAs).
    """
    client = mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=options.client_id,
        clean_session=options.clean_session,
        protocol=mqtt.MQTTv311,
        transport=broker.transport,
    )
    if broker.transport == "websockets":
        client.ws_set_options(path=options.ws_path)
    if broker.uses_tls:
        client.tls_set()
    if broker.username:
        client.username_pw_set(broker.username, broker.password)
    return client


def timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Run callback once after delay seconds in a daemon thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


def _is_failure(reason_code: Any) -> bool:
    # paho ReasonCode (MQTT 5 style) or a plain MQTT 3.1.1 return code
    if hasattr(reason_code, "is_failure"):
        return bool(reason_code.is_failure)
    return reason_code != 0


class _Effects:
    """Work collected under the lock and performed after releasing it."""

    def __init__(self):
        self.changes: List[Tuple[ConnectionState, ConnectionState]] = []
        self.stale_clients: List[Any] = []


class ConnectionManager:
    """
    Owner of the single broker session.

    Features:
      - connect() only from DISCONNECTED; re-entrant calls are ignored
      - Publish readiness exposed via is_publish_ready() / session
      - Observers notified once per transition: listener(old, new)
      - Transport errors → FAILED, session terminated, reconnect scheduled

    Example:
        connection = ConnectionManager(options=SessionOptions())
        connection.add_listener(lambda old, new: print(old, "→", new))
        connection.connect(BrokerConfig(scheme="wss://", host="broker.example.com"))

        if connection.wait_for_connection(timeout=5.0):
            print("Connected to MQTT broker")

        # Later
        connection.disconnect()
    """

    def __init__(
        self,
        options: Optional[SessionOptions] = None,
        logger: Optional[StructuredLogger] = None,
        client_factory: ClientFactory = create_paho_client,
        scheduler: Scheduler = timer_scheduler,
    ):
        """
        Initialize connection manager.

        Args:
            options: Session options (reconnect period, clean session, ...)
            logger: Structured logger (default: component "connection")
            client_factory: Builds an unconnected paho-compatible client
            scheduler: Runs a callback once after a delay; returns an object
                with cancel()
        """
        self.options = options or SessionOptions()
        self.logger = logger or create_logger("connection")
        self._client_factory = client_factory
        self._scheduler = scheduler

        self._lock = threading.RLock()
        self._state = ConnectionState.DISCONNECTED
        self._connected = threading.Event()
        self._broker: Optional[BrokerConfig] = None
        self._client: Any = None
        self._reconnect_timer: Any = None
        self._closing = False

        self._listeners: List[StateListener] = []
        self._attempts = 0
        self._last_error: Optional[BaseException] = None

    # ===== Public API =====

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def broker(self) -> Optional[BrokerConfig]:
        return self._broker

    @property
    def attempts(self) -> int:
        """Number of session attempts since construction."""
        return self._attempts

    @property
    def last_error(self) -> Optional[BaseException]:
        return self._last_error

    @property
    def session(self) -> Any:
        """Active paho client, or None when publishing is not possible."""
        with self._lock:
            return self._client if self._state is ConnectionState.CONNECTED else None

    def is_publish_ready(self) -> bool:
        """True only while CONNECTED with a live session."""
        return self.session is not None

    def add_listener(self, listener: StateListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def connect(self, broker: BrokerConfig) -> bool:
        """
        Start a session with broker.

        Only accepted while DISCONNECTED. Returns immediately in CONNECTING;
        CONNECTED follows asynchronously on the broker's acknowledgment.

        Args:
            broker: Broker address and credentials

        Returns:
            True if a session attempt was started, False if the call was
            ignored or the attempt failed immediately (a retry is scheduled)
        """
        fx = _Effects()
        with self._lock:
            if self._state is not ConnectionState.DISCONNECTED:
                self.logger.warning(
                    event=LogEvent.MQTT_CONNECT_IGNORED,
                    message="connect() ignored: session already exists",
                    metadata={'state': self._state.value, 'broker': broker.url}
                )
                return False

            self._broker = broker
            self._closing = False
            self._open_session(fx)
            started = self._client is not None
        self._apply(fx)
        return started

    def disconnect(self) -> None:
        """
        Tear the session down and stop reconnecting.

        Safe to call in any state and multiple times.
        """
        fx = _Effects()
        with self._lock:
            self._closing = True
            if self._reconnect_timer is not None:
                self._reconnect_timer.cancel()
                self._reconnect_timer = None
            had_session = self._detach_client(fx)
            self._transition(ConnectionState.DISCONNECTED, fx)
            if had_session:
                self.logger.info(
                    event=LogEvent.MQTT_DISCONNECTED,
                    message="Disconnected from broker",
                    metadata={'broker': self._broker_url()}
                )
        self._apply(fx)

    def wait_for_connection(self, timeout: Optional[float] = None) -> bool:
        """Block until CONNECTED or timeout; True if connected."""
        return self._connected.wait(timeout=timeout)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get connection statistics.

        Returns:
            Dictionary with state, attempts and last error
        """
        with self._lock:
            return {
                'state': self._state.value,
                'broker': self._broker_url(),
                'attempts': self._attempts,
                'last_error': str(self._last_error) if self._last_error else None,
                'reconnect_pending': self._reconnect_timer is not None,
            }

    # ===== State machine (lock held) =====

    def _broker_url(self) -> Optional[str]:
        return self._broker.url if self._broker else None

    def _transition(self, new_state: ConnectionState, fx: _Effects) -> None:
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        if new_state is ConnectionState.CONNECTED:
            self._connected.set()
        else:
            self._connected.clear()
        fx.changes.append((old_state, new_state))
        self.logger.debug(
            event=LogEvent.MQTT_STATE_CHANGED,
            message=f"{old_state.value} → {new_state.value}",
            metadata={'from': old_state.value, 'to': new_state.value}
        )

    def _open_session(self, fx: _Effects) -> None:
        broker = self._broker
        self._transition(ConnectionState.CONNECTING, fx)
        self._attempts += 1
        self.logger.info(
            event=LogEvent.MQTT_CONNECTING,
            message=f"Connecting to {broker.url}",
            metadata={'broker': broker.url, 'attempt': self._attempts}
        )

        try:
            client = self._client_factory(broker, self.options)
            client.on_connect = self._on_connect
            client.on_disconnect = self._on_disconnect
            client.on_connect_fail = self._on_connect_fail
            self._client = client
            client.connect_async(
                broker.host,
                broker.effective_port,
                keepalive=self.options.keepalive,
            )
            client.loop_start()
        except Exception as e:
            self._fail(e, fx)

    def _fail(self, error: BaseException, fx: _Effects) -> None:
        self._last_error = error
        self._transition(ConnectionState.FAILED, fx)
        self.logger.error(
            event=LogEvent.MQTT_CONNECTION_ERROR,
            message="Connection error",
            metadata={'broker': self._broker_url(), 'attempt': self._attempts},
            exc_info=error
        )
        self._detach_client(fx)
        self._schedule_reconnect()

    def _detach_client(self, fx: _Effects) -> bool:
        client, self._client = self._client, None
        if client is None:
            return False
        fx.stale_clients.append(client)
        return True

    def _schedule_reconnect(self) -> None:
        if self._closing or self._broker is None or self._reconnect_timer is not None:
            return
        self.logger.info(
            event=LogEvent.MQTT_RECONNECTING,
            message=f"Reconnecting in {self.options.reconnect_period_ms} ms",
            metadata={'broker': self._broker_url(), 'attempt': self._attempts + 1}
        )
        self._reconnect_timer = self._scheduler(self.options.reconnect_period, self._reconnect)

    def _reconnect(self) -> None:
        fx = _Effects()
        with self._lock:
            self._reconnect_timer = None
            if self._closing or self._state not in (ConnectionState.FAILED, ConnectionState.DISCONNECTED):
                return
            self._transition(ConnectionState.DISCONNECTED, fx)
            self._open_session(fx)
        self._apply(fx)

    # ===== Effects (lock released) =====

    def _apply(self, fx: _Effects) -> None:
        for client in fx.stale_clients:
            self._close_client(client)
        for old_state, new_state in fx.changes:
            self._notify(old_state, new_state)

    def _close_client(self, client: Any) -> None:
        try:
            client.loop_stop()
            client.disconnect()
        except Exception as e:
            self.logger.warning(
                event=LogEvent.MQTT_DISCONNECTED,
                message="Error while terminating session",
                metadata={'error': str(e)}
            )

    def _notify(self, old_state: ConnectionState, new_state: ConnectionState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(old_state, new_state)
            except Exception as e:
                self.logger.error(
                    event=LogEvent.LISTENER_ERROR,
                    message="Connection state listener failed",
                    metadata={'from': old_state.value, 'to': new_state.value},
                    exc_info=e
                )

    # ===== paho callbacks (run in paho thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        fx = _Effects()
        with self._lock:
            if client is not self._client:
                return
            if _is_failure(reason_code):
                self._fail(SessionError(f"Broker refused connection (rc={reason_code})"), fx)
            elif self._state is ConnectionState.CONNECTING:
                self._transition(ConnectionState.CONNECTED, fx)
                self.logger.info(
                    event=LogEvent.MQTT_CONNECTED,
                    message="Connected to MQTT broker",
                    metadata={'broker': self._broker_url(), 'attempt': self._attempts}
                )
        self._apply(fx)

    def _on_connect_fail(self, client, userdata) -> None:
        fx = _Effects()
        with self._lock:
            if client is not self._client:
                return
            self._fail(SessionError("Could not reach broker"), fx)
        self._apply(fx)

    def _on_disconnect(self, client, userdata, disconnect_flags=None, reason_code=0, properties=None) -> None:
        fx = _Effects()
        with self._lock:
            if client is not self._client:
                return
            if self._state is ConnectionState.CONNECTING:
                self._fail(SessionError(f"Connection closed during handshake (rc={reason_code})"), fx)
            elif self._state is ConnectionState.CONNECTED:
                self.logger.warning(
                    event=LogEvent.MQTT_DISCONNECTED,
                    message="Connection to broker lost",
                    metadata={'broker': self._broker_url(), 'reason_code': str(reason_code)}
                )
                self._detach_client(fx)
                self._transition(ConnectionState.DISCONNECTED, fx)
                self._schedule_reconnect()
        self._apply(fx)
