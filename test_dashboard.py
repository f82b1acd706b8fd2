"""
Dashboard tests: widgets follow the configuration tree, activation reaches
the session, and start/stop drive the connection.
"""

import json

import pytest

from switchboard_config import (
    BrokerConfig,
    ConfigStore,
    EntityNotFoundError,
    FunctionDraft,
    LoadStatus,
    SwitchboardConfig,
)
from switchboard_control import Dashboard, InputWidget, PushWidget, TimeWidget, ToggleState, ToggleWidget
from switchboard_mqtt import ConnectionState


@pytest.fixture
def dashboard(populated_store, connection, publisher, broker):
    store = ConfigStore(populated_store.path)
    return Dashboard(store=store, connection=connection, publisher=publisher, broker=broker)


def test_start_loads_builds_widgets_and_connects(dashboard, client_factory):
    assert dashboard.start() is LoadStatus.LOADED

    assert dashboard.connection.state is ConnectionState.CONNECTING
    assert [type(w) for w in dashboard.widgets.values()] == [
        PushWidget, ToggleWidget, InputWidget, TimeWidget
    ]
    assert list(dashboard.widgets) == [(0, 0, 0), (0, 0, 1), (0, 0, 2), (0, 0, 3)]


def test_start_requires_a_broker(populated_store, connection, publisher):
    dashboard = Dashboard(store=populated_store, connection=connection, publisher=publisher)
    with pytest.raises(ValueError):
        dashboard.start()


def test_start_with_corrupt_document(tmp_path, connection, publisher, broker):
    path = tmp_path / "switchboard.json"
    path.write_text("not json", encoding="utf-8")
    dashboard = Dashboard(ConfigStore(path), connection, publisher, broker=broker)

    assert dashboard.start() is LoadStatus.CORRUPT
    assert dashboard.widgets == {}
    assert dashboard.connection.state is ConnectionState.CONNECTING


def test_activate_publishes_on_the_session(dashboard, client_factory):
    dashboard.start()
    client_factory.latest.ack()

    assert dashboard.activate(0, 0, 1) is True
    assert dashboard.activate(0, 0, 1) is True
    dashboard.widget(0, 0, 2).set_value("hello")
    dashboard.activate(0, 0, 2)

    assert [(topic, json.loads(payload)) for topic, payload, _, _ in client_factory.latest.published] == [
        ("dev1/light/set", {"data": "1", "token": "t-light"}),
        ("dev1/light/set", {"data": "0", "token": "t-light"}),
        ("dev1/display", {"data": "hello", "token": "t-display"}),
    ]


def test_activate_while_connecting_is_dropped(dashboard, client_factory):
    dashboard.start()
    assert dashboard.activate(0, 0, 0) is False
    assert client_factory.latest.published == []


def test_unknown_widget_index(dashboard):
    dashboard.start()
    with pytest.raises(EntityNotFoundError):
        dashboard.widget(0, 0, 9)
    with pytest.raises(EntityNotFoundError):
        dashboard.activate(0, -1, 0)


def test_widget_state_survives_unrelated_edits(dashboard):
    dashboard.start()
    toggle = dashboard.widget(0, 0, 1)
    toggle.activate()

    dashboard.add_function(0, 0, FunctionDraft(
        name="Bell", topic_suffix="bell", kind="push", auth_token="", value="RING"))
    dashboard.add_location("Hall")

    assert dashboard.widget(0, 0, 1) is toggle
    assert toggle.state is ToggleState.ON
    assert isinstance(dashboard.widget(0, 0, 4), PushWidget)


def test_widgets_follow_deletes(dashboard):
    dashboard.start()
    display = dashboard.widget(0, 0, 2)
    display.set_value("kept")

    dashboard.delete_function(0, 0, 0)

    assert len(dashboard.widgets) == 3
    assert isinstance(dashboard.widget(0, 0, 0), ToggleWidget)
    assert dashboard.widget(0, 0, 1) is display
    assert display.value == "kept"

    dashboard.delete_endpoint(0, 0)
    assert dashboard.widgets == {}
    dashboard.delete_location(0)
    assert dashboard.tree.locations == ()


def test_reload_resets_widget_state(dashboard):
    dashboard.start()
    dashboard.widget(0, 0, 1).activate()

    dashboard.reload()

    assert dashboard.widget(0, 0, 1).state is ToggleState.OFF


def test_edits_are_persisted(dashboard):
    dashboard.start()
    dashboard.add_endpoint(0, "Dimmer", "dev2")
    assert ConfigStore(dashboard.store.path).load().endpoint(0, 1).identifier == "dev2"


def test_import_legacy(dashboard):
    dashboard.start()
    dashboard.import_legacy([{"name": "Hall", "devices": [
        {"name": "Lamp", "id": "lamp1", "loads": [
            {"name": "Power", "topic": "power", "type": "toggle", "token": "x",
             "config": {"onValue": "ON", "offValue": "OFF"}}
        ]}
    ]}])
    assert list(dashboard.widgets) == [(0, 0, 0)]
    assert dashboard.widget(0, 0, 0).endpoint.identifier == "lamp1"


def test_stop_disconnects(dashboard, client_factory):
    dashboard.start()
    client_factory.latest.ack()
    dashboard.stop()
    assert dashboard.connection.state is ConnectionState.DISCONNECTED
    assert client_factory.latest.disconnected


def test_from_config(tmp_path):
    config = SwitchboardConfig(
        broker=BrokerConfig(scheme="mqtt://", host="localhost"),
        store_path=tmp_path / "switchboard.json",
    )
    dashboard = Dashboard.from_config(config)

    assert dashboard.broker is config.broker
    assert dashboard.store.path == config.store_path
    assert dashboard.publisher.connection is dashboard.connection
    assert dashboard.connection.options is config.session


def _toggle(name="Light"):
    return FunctionDraft(name=name, topic_suffix="light/set", kind="toggle",
                         auth_token="t", on_value="1", off_value="0")


def test_deleted_widget_state_does_not_pass_to_identical_sibling(tmp_path, connection, publisher, broker):
    store = ConfigStore(tmp_path / "switchboard.json")
    dashboard = Dashboard(store, connection, publisher, broker=broker)
    dashboard.start()
    dashboard.add_location("Kitchen")
    dashboard.add_endpoint(0, "Relay board", "dev1")
    dashboard.add_function(0, 0, _toggle())
    dashboard.add_function(0, 0, _toggle())

    dashboard.activate(0, 0, 0)
    survivor = dashboard.widget(0, 0, 1)
    dashboard.delete_function(0, 0, 0)

    assert dashboard.widget(0, 0, 0) is survivor
    assert survivor.state is ToggleState.OFF
    assert survivor.next_value() == "1"


def test_deleted_subtree_state_does_not_pass_to_identical_subtree(tmp_path, connection, publisher, broker):
    store = ConfigStore(tmp_path / "switchboard.json")
    dashboard = Dashboard(store, connection, publisher, broker=broker)
    dashboard.start()
    for _ in range(2):
        dashboard.add_location("Kitchen")
    for location_index in (0, 1):
        for _ in range(2):
            dashboard.add_endpoint(location_index, "Relay board", "dev1")
        for endpoint_index in (0, 1):
            dashboard.add_function(location_index, endpoint_index, _toggle())

    dashboard.activate(0, 0, 0)
    dashboard.activate(1, 1, 0)
    dashboard.delete_endpoint(0, 0)
    assert dashboard.widget(0, 0, 0).state is ToggleState.OFF
    assert dashboard.widget(1, 1, 0).state is ToggleState.ON

    dashboard.activate(0, 0, 0)
    dashboard.delete_location(0)
    assert dashboard.widget(0, 0, 0).state is ToggleState.OFF
    assert dashboard.widget(0, 1, 0).state is ToggleState.ON
