"""
Configuration schema for the Switchboard dashboard.

This module defines the application settings: which broker to connect to,
the session options used for every (re)connect, where the configuration tree
is persisted, and the log level. Settings are loaded from YAML and validated
at construction.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml

from .errors import ConfigValidationError


# scheme -> (paho transport, TLS, default port)
SCHEMES = {
    "mqtt": ("tcp", False, 1883),
    "tcp": ("tcp", False, 1883),
    "mqtts": ("tcp", True, 8883),
    "ssl": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}


def _parse_port(value: Any) -> Optional[int]:
    """Blank means "leave the port out of the URL"."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ConfigValidationError(f"Invalid broker port: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"Invalid broker port: {value!r}")


@dataclass(frozen=True)
class BrokerConfig:
    """
    Broker address and credentials.

    The connection URL is {scheme}{host}[:{port}]; the port is left out when
    not configured and the scheme's default port is used to connect.

    Example:
        >>> BrokerConfig(scheme="wss://", host="broker.example.com").url
        'wss://broker.example.com'
        >>> BrokerConfig(scheme="wss://", host="broker.example.com", port=8884).url
        'wss://broker.example.com:8884'
    """

    host: str
    scheme: str = "wss://"
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        """Validate broker configuration."""
        if not self.host or not isinstance(self.host, str):
            raise ConfigValidationError("Broker host cannot be empty")

        if self.scheme_name not in SCHEMES:
            raise ConfigValidationError(
                f"Invalid broker scheme: {self.scheme}. "
                f"Must be one of {sorted(s + '://' for s in SCHEMES)}"
            )

        if self.port is not None and not 1 <= self.port <= 65535:
            raise ConfigValidationError(
                f"Broker port must be in [1, 65535], got {self.port}"
            )

    @property
    def scheme_name(self) -> str:
        """Scheme without the "://" separator (e.g., "wss")."""
        return self.scheme.split(":", 1)[0].lower()

    @property
    def url(self) -> str:
        base = f"{self.scheme}{self.host}"
        return f"{base}:{self.port}" if self.port is not None else base

    @property
    def transport(self) -> str:
        return SCHEMES[self.scheme_name][0]

    @property
    def uses_tls(self) -> bool:
        return SCHEMES[self.scheme_name][1]

    @property
    def effective_port(self) -> int:
        """Port to connect to: the configured one or the scheme default."""
        return self.port if self.port is not None else SCHEMES[self.scheme_name][2]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrokerConfig":
        if not isinstance(data, dict):
            raise ConfigValidationError("broker section must be a mapping")
        return cls(
            host=data.get("host", ""),
            scheme=data.get("scheme", "wss://"),
            port=_parse_port(data.get("port")),
            username=data.get("username") or None,
            password=data.get("password") or None,
        )


@dataclass(frozen=True)
class SessionOptions:
    """
    Options applied to every broker session.

    reconnect_period_ms is a fixed delay between a failure and the next
    attempt; there is no backoff and no attempt cap.
    """

    reconnect_period_ms: int = 1000
    clean_session: bool = True
    keepalive: int = 60
    client_id: str = ""  # empty: broker assigns one
    ws_path: str = "/mqtt"
    qos: int = 0  # commands are fire-and-forget

    def __post_init__(self):
        """Validate session options."""
        if self.reconnect_period_ms <= 0:
            raise ConfigValidationError(
                f"reconnect_period_ms must be > 0, got {self.reconnect_period_ms}"
            )

        if self.keepalive <= 0:
            raise ConfigValidationError(
                f"keepalive must be > 0, got {self.keepalive}"
            )

        if self.qos not in {0, 1, 2}:
            raise ConfigValidationError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

    @property
    def reconnect_period(self) -> float:
        """Reconnect delay in seconds."""
        return self.reconnect_period_ms / 1000.0


@dataclass(frozen=True)
class SwitchboardConfig:
    """
    Main configuration for the Switchboard dashboard.

    This configuration is loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    broker: BrokerConfig
    session: SessionOptions = field(default_factory=SessionOptions)
    store_path: Path = Path("./switchboard.json")
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate application configuration."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if self.log_level not in valid_levels:
            raise ConfigValidationError(
                f"Invalid log_level: {self.log_level}. Must be one of {sorted(valid_levels)}"
            )

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "SwitchboardConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            broker:
              scheme: "wss://"
              host: "broker.example.com"
              port: ""          # blank: omitted from the URL
              username: "operator"
              password: "secret"

            session:
              reconnect_period_ms: 1000
              clean_session: true

            store_path: "./switchboard.json"
            log_level: "INFO"
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        if "broker" not in data:
            raise ConfigValidationError(f"Missing 'broker' section in {yaml_path}")

        session_data = data.get("session") or {}
        session = SessionOptions(**session_data)

        return cls(
            broker=BrokerConfig.from_dict(data["broker"]),
            session=session,
            store_path=Path(data.get("store_path", "./switchboard.json")),
            log_level=str(data.get("log_level", "INFO")).upper(),
        )
