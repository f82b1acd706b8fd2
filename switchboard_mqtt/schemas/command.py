"""
Command Message Schema
=====================

Bounded Context: Command Data Structures

This module defines the payload published to an endpoint for every command.

Design:
- CommandMessage: opaque value + opaque per-function token
- Immutable (frozen dataclass)
- Deterministic serialization: compact JSON, sorted keys
- No schema version, message id or timestamp on the wire

Message Flow:
    FunctionWidget → value → CommandPublisher → CommandMessage → MQTT → Endpoint

Wire Format:
    {"data":"<value>","token":"<token>"}
"""

import json
from dataclasses import dataclass
from typing import Dict, Any


@dataclass(frozen=True)
class CommandMessage:
    """
    Payload of a single command.

    Attributes:
        data: Value to apply (e.g., "ON", "1", "07:30")
        token: Per-function authorization token, forwarded verbatim

    Invariants:
        - data and token are strings (either may be empty)

    Example:
        >>> CommandMessage(data="1", token="abc").to_json()
        '{"data":"1","token":"abc"}'
    """
    data: str
    token: str

    def __post_init__(self):
        """Validate invariants."""
        if not isinstance(self.data, str):
            raise ValueError(f"Command data must be a string, got {type(self.data).__name__}")
        if not isinstance(self.token, str):
            raise ValueError(f"Command token must be a string, got {type(self.token).__name__}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {'data': self.data, 'token': self.token}

    def to_json(self) -> str:
        """Serialize to the wire format."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(',', ':'), ensure_ascii=False)

