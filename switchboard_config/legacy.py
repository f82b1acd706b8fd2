"""
Legacy Document Import
=====================

Bounded Context: Configuration migration

Converts documents written by the original browser dashboard into the
canonical ConfigTree.

Legacy layout (rooms → devices → loads):
    [{"name": "Kitchen",
      "devices": [{"name": "Relay", "id": "dev1",
                   "loads": [{"name": "Light", "topic": "light/set",
                              "type": "toggle", "token": "abc",
                              "config": {"onValue": "1", "offValue": "0"}}]}]}]

Two legacy variants exist. The identifier-bearing one ("id" on every device)
maps one-to-one onto the canonical model. The reduced one has no device "id"
and published on the bare load topic; its topics cannot be expressed with
identifier addressing, so it is rejected instead of guessed.
"""

from typing import Any, Dict, List

from .errors import SchemaMismatchError
from .models import ConfigTree, Endpoint, Function, FunctionKind, Location, config_from_dict


def is_legacy_document(data: Any) -> bool:
    """True if data looks like a document written by the browser dashboard."""
    return isinstance(data, list) and any(
        isinstance(loc, dict) and "devices" in loc for loc in data
    )


def _legacy_list(data: Dict[str, Any], key: str, entity: str) -> List[Any]:
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, list):
        raise SchemaMismatchError(f"Legacy {entity} has no '{key}' list")
    return value


def _convert_load(load: Dict[str, Any]) -> Function:
    if not isinstance(load, dict):
        raise SchemaMismatchError(f"Legacy load must be a JSON object, got {type(load).__name__}")
    kind = FunctionKind.parse(load.get("type"))
    token = load.get("token")
    return Function(
        name=load.get("name"),
        topic_suffix=load.get("topic"),
        kind=kind,
        auth_token="" if token is None else token,
        config=config_from_dict(kind, load.get("config") or {}),
    )


def _convert_device(device: Dict[str, Any]) -> Endpoint:
    if not isinstance(device, dict):
        raise SchemaMismatchError(f"Legacy device must be a JSON object, got {type(device).__name__}")
    if not device.get("id"):
        raise SchemaMismatchError(
            f"Legacy device {device.get('name')!r} has no 'id'; documents from the "
            "identifier-less variant cannot be addressed and are not imported"
        )
    return Endpoint(
        name=device.get("name"),
        identifier=device["id"],
        functions=tuple(_convert_load(load) for load in _legacy_list(device, "loads", "device")),
    )


def convert_legacy_document(data: Any) -> ConfigTree:
    """
    Convert a browser dashboard document to a ConfigTree.

    Args:
        data: Decoded JSON document

    Returns:
        Equivalent canonical tree, order preserved

    Raises:
        SchemaMismatchError: If the document is not in the identifier-bearing
            legacy layout
        ConfigValidationError: If an entity holds invalid values
    """
    if not isinstance(data, list):
        raise SchemaMismatchError(
            f"Legacy document must be a JSON array, got {type(data).__name__}"
        )
    locations = []
    for room in data:
        if not isinstance(room, dict):
            raise SchemaMismatchError(f"Legacy room must be a JSON object, got {type(room).__name__}")
        locations.append(Location(
            name=room.get("name"),
            endpoints=tuple(_convert_device(dev) for dev in _legacy_list(room, "devices", "room")),
        ))
    return ConfigTree(locations=tuple(locations))
