"""
Settings loading and broker URL composition.
"""

from pathlib import Path

import pytest

from switchboard_config import (
    BrokerConfig,
    ConfigValidationError,
    SessionOptions,
    SwitchboardConfig,
)


def test_url_omits_blank_port():
    broker = BrokerConfig(scheme="wss://", host="broker.example.com")
    assert broker.url == "wss://broker.example.com"
    assert broker.effective_port == 443


def test_url_includes_port():
    broker = BrokerConfig(scheme="wss://", host="broker.example.com", port=8884)
    assert broker.url == "wss://broker.example.com:8884"
    assert broker.effective_port == 8884


@pytest.mark.parametrize("scheme,transport,tls,port", [
    ("mqtt://", "tcp", False, 1883),
    ("tcp://", "tcp", False, 1883),
    ("mqtts://", "tcp", True, 8883),
    ("ssl://", "tcp", True, 8883),
    ("ws://", "websockets", False, 80),
    ("wss://", "websockets", True, 443),
])
def test_scheme_selects_transport(scheme, transport, tls, port):
    broker = BrokerConfig(scheme=scheme, host="localhost")
    assert broker.transport == transport
    assert broker.uses_tls is tls
    assert broker.effective_port == port


@pytest.mark.parametrize("kwargs", [
    {"host": ""},
    {"host": "localhost", "scheme": "http://"},
    {"host": "localhost", "port": 0},
    {"host": "localhost", "port": 70000},
])
def test_invalid_broker(kwargs):
    with pytest.raises(ConfigValidationError):
        BrokerConfig(**kwargs)


@pytest.mark.parametrize("raw,expected", [("", None), (None, None), ("8884", 8884), (1883, 1883)])
def test_broker_from_dict_port(raw, expected):
    broker = BrokerConfig.from_dict({"host": "localhost", "scheme": "mqtt://", "port": raw})
    assert broker.port == expected


def test_broker_from_dict_rejects_bad_port():
    with pytest.raises(ConfigValidationError):
        BrokerConfig.from_dict({"host": "localhost", "port": "eighty"})


def test_session_defaults():
    options = SessionOptions()
    assert options.reconnect_period_ms == 1000
    assert options.reconnect_period == 1.0
    assert options.clean_session is True
    assert options.qos == 0


@pytest.mark.parametrize("kwargs", [
    {"reconnect_period_ms": 0},
    {"keepalive": 0},
    {"qos": 3},
])
def test_invalid_session_options(kwargs):
    with pytest.raises(ConfigValidationError):
        SessionOptions(**kwargs)


def test_from_yaml(tmp_path):
    path = tmp_path / "switchboard.yaml"
    path.write_text(
        "broker:\n"
        "  scheme: \"mqtts://\"\n"
        "  host: \"broker.example.com\"\n"
        "  port: \"\"\n"
        "  username: \"operator\"\n"
        "  password: \"secret\"\n"
        "session:\n"
        "  reconnect_period_ms: 2000\n"
        "store_path: \"./data/switchboard.json\"\n"
        "log_level: debug\n",
        encoding="utf-8",
    )

    config = SwitchboardConfig.from_yaml(path)

    assert config.broker.url == "mqtts://broker.example.com"
    assert config.broker.username == "operator"
    assert config.session.reconnect_period_ms == 2000
    assert config.session.clean_session is True
    assert config.store_path == Path("./data/switchboard.json")
    assert config.log_level == "DEBUG"


def test_from_yaml_requires_broker(tmp_path):
    path = tmp_path / "switchboard.yaml"
    path.write_text("log_level: INFO\n", encoding="utf-8")
    with pytest.raises(ConfigValidationError):
        SwitchboardConfig.from_yaml(path)


def test_example_config_loads():
    config = SwitchboardConfig.from_yaml(
        Path(__file__).parent / "config" / "switchboard.example.yaml"
    )
    assert config.broker.host
