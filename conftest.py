"""
Shared test fixtures.

The broker is simulated: FakeClient stands in for paho's Client (same method
names and callback signatures) and RecordingScheduler captures reconnect
timers so tests can fire them explicitly.
"""

import pytest

from switchboard_config import (
    BrokerConfig,
    ConfigStore,
    FunctionDraft,
    SessionOptions,
)
from switchboard_mqtt import CommandPublisher, ConnectionManager, create_logger


class FakePublishResult:
    def __init__(self, rc=0):
        self.rc = rc


class FakeClient:
    """In-memory paho client."""

    def __init__(self, broker, options):
        self.broker = broker
        self.options = options
        self.connect_args = None
        self.loop_started = False
        self.loop_stopped = False
        self.disconnected = False
        self.published = []
        self.publish_rc = 0
        self.on_connect = None
        self.on_disconnect = None
        self.on_connect_fail = None

    def connect_async(self, host, port, keepalive=60):
        self.connect_args = (host, port, keepalive)

    def loop_start(self):
        self.loop_started = True

    def loop_stop(self):
        self.loop_stopped = True

    def disconnect(self):
        self.disconnected = True

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        return FakePublishResult(self.publish_rc)

    # Broker simulation

    def ack(self, rc=0):
        self.on_connect(self, None, {}, rc, None)

    def drop(self, rc=7):
        self.on_disconnect(self, None, None, rc, None)

    def unreachable(self):
        self.on_connect_fail(self, None)


class FakeClientFactory:
    def __init__(self):
        self.clients = []
        self.error = None

    def __call__(self, broker, options):
        if self.error is not None:
            raise self.error
        client = FakeClient(broker, options)
        self.clients.append(client)
        return client

    @property
    def latest(self):
        return self.clients[-1]


class PendingCall:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class RecordingScheduler:
    def __init__(self):
        self.calls = []

    def __call__(self, delay, callback):
        call = PendingCall(delay, callback)
        self.calls.append(call)
        return call

    @property
    def pending(self):
        return [c for c in self.calls if not (c.cancelled or c.fired)]

    def fire(self):
        """Run the most recent scheduled callback, as the timer would."""
        call = self.calls[-1]
        assert not call.cancelled
        call.fired = True
        call.callback()


@pytest.fixture
def logger():
    return create_logger("test")


@pytest.fixture
def broker():
    return BrokerConfig(scheme="wss://", host="broker.example.com")


@pytest.fixture
def client_factory():
    return FakeClientFactory()


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def connection(client_factory, scheduler, logger):
    return ConnectionManager(
        options=SessionOptions(),
        logger=logger,
        client_factory=client_factory,
        scheduler=scheduler,
    )


@pytest.fixture
def connected(connection, client_factory, broker):
    """A ConnectionManager already in CONNECTED."""
    connection.connect(broker)
    client_factory.latest.ack()
    return connection


@pytest.fixture
def publisher(connection, logger):
    return CommandPublisher(connection, logger=logger)


@pytest.fixture
def store(tmp_path):
    store = ConfigStore(tmp_path / "switchboard.json")
    store.load()
    return store


@pytest.fixture
def populated_store(store):
    """Kitchen / Relay board (dev1) with one function of every kind."""
    store.add_location("Kitchen")
    store.add_endpoint(0, "Relay board", "dev1")
    store.add_function(0, 0, FunctionDraft(
        name="Fan", topic_suffix="fan", kind="push", auth_token="t-fan", value="PULSE"))
    store.add_function(0, 0, FunctionDraft(
        name="Light", topic_suffix="light/set", kind="toggle", auth_token="t-light",
        on_value="1", off_value="0"))
    store.add_function(0, 0, FunctionDraft(
        name="Display", topic_suffix="display", kind="input", auth_token="t-display"))
    store.add_function(0, 0, FunctionDraft(
        name="Alarm", topic_suffix="alarm", kind="time", auth_token="t-alarm"))
    return store
