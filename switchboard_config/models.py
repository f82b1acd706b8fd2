"""
Configuration Model
==================

Bounded Context: Location → Endpoint → Function hierarchy

This module defines the immutable configuration tree the operator builds and
the dashboard drives.

Design:
- Frozen dataclasses (immutability); children held in tuples
- Constructor validates invariants (empty names, wildcard topics, kind/config mismatch)
- to_dict()/from_dict() for the persisted JSON document
- Mutations return a new ConfigTree, the old one is never touched

Tree:
    ConfigTree
        └── Location (name)
              └── Endpoint (name, identifier)
                    └── Function (name, topic_suffix, kind, auth_token, config)

Example:
    >>> fn = Function(
    ...     name="Light",
    ...     topic_suffix="light/set",
    ...     kind=FunctionKind.TOGGLE,
    ...     auth_token="abc",
    ...     config=ToggleConfig(on_value="1", off_value="0"),
    ... )
    >>> tree = ConfigTree().with_location(Location(name="Kitchen"))
    >>> tree = tree.with_endpoint(0, Endpoint(name="Relay", identifier="dev1"))
    >>> tree = tree.with_function(0, 0, fn)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .errors import ConfigValidationError, EntityNotFoundError, SchemaMismatchError


TOPIC_WILDCARDS = ("+", "#")


def _require_text(value: Any, field_name: str) -> None:
    if not isinstance(value, str) or not value:
        raise ConfigValidationError(f"{field_name} must be a non-empty string, got {value!r}")


def _require_topic_segment(value: Any, field_name: str) -> None:
    _require_text(value, field_name)
    for wildcard in TOPIC_WILDCARDS:
        if wildcard in value:
            raise ConfigValidationError(
                f"{field_name} must not contain MQTT wildcard '{wildcard}', got {value!r}"
            )


def _require_key(data: Dict[str, Any], key: str, entity: str) -> Any:
    if not isinstance(data, dict):
        raise SchemaMismatchError(f"{entity} must be a JSON object, got {type(data).__name__}")
    if key not in data:
        raise SchemaMismatchError(f"Missing required {entity} field: {key}")
    return data[key]


def _require_list(value: Any, key: str, entity: str) -> List[Any]:
    if not isinstance(value, list):
        raise SchemaMismatchError(f"{entity} field '{key}' must be a list, got {type(value).__name__}")
    return value


def _check_index(items: Sequence[Any], index: int, entity: str) -> None:
    if isinstance(index, bool) or not isinstance(index, int):
        raise EntityNotFoundError(f"{entity} index must be an integer, got {index!r}")
    if not 0 <= index < len(items):
        raise EntityNotFoundError(
            f"{entity} index {index} out of range (have {len(items)})"
        )


class FunctionKind(str, Enum):
    """Interaction kind of a function."""

    PUSH = "push"
    TOGGLE = "toggle"
    INPUT = "input"
    TIME = "time"

    @classmethod
    def parse(cls, value: Union[str, "FunctionKind"]) -> "FunctionKind":
        """
        Parse a kind from its serialized name.

        Raises:
            ConfigValidationError: If value is not a known kind
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(kind.value for kind in cls)
            raise ConfigValidationError(
                f"Invalid function kind: {value!r}. Must be one of {valid}"
            )


@dataclass(frozen=True)
class PushConfig:
    """Fixed value sent on every activation."""
    value: str

    def __post_init__(self):
        _require_text(self.value, "PUSH config value")

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value}


@dataclass(frozen=True)
class ToggleConfig:
    """Values sent when switching on and off."""
    on_value: str
    off_value: str

    def __post_init__(self):
        _require_text(self.on_value, "TOGGLE config onValue")
        _require_text(self.off_value, "TOGGLE config offValue")

    def to_dict(self) -> Dict[str, str]:
        return {"onValue": self.on_value, "offValue": self.off_value}


@dataclass(frozen=True)
class EmptyConfig:
    """INPUT and TIME take their value at publish time."""

    def to_dict(self) -> Dict[str, str]:
        return {}


KindConfig = Union[PushConfig, ToggleConfig, EmptyConfig]

CONFIG_TYPES = {
    FunctionKind.PUSH: PushConfig,
    FunctionKind.TOGGLE: ToggleConfig,
    FunctionKind.INPUT: EmptyConfig,
    FunctionKind.TIME: EmptyConfig,
}


def config_from_dict(kind: FunctionKind, data: Any) -> KindConfig:
    """
    Build the config matching kind from its serialized form.

    Raises:
        SchemaMismatchError: If data is not an object or a key is missing
        ConfigValidationError: If a value is invalid
    """
    if not isinstance(data, dict):
        raise SchemaMismatchError(f"Function config must be a JSON object, got {type(data).__name__}")
    if kind is FunctionKind.PUSH:
        return PushConfig(value=_require_key(data, "value", "PUSH config"))
    if kind is FunctionKind.TOGGLE:
        return ToggleConfig(
            on_value=_require_key(data, "onValue", "TOGGLE config"),
            off_value=_require_key(data, "offValue", "TOGGLE config"),
        )
    if data:
        raise ConfigValidationError(
            f"{kind.value.upper()} functions take no config, got keys {sorted(data)}"
        )
    return EmptyConfig()


@dataclass(frozen=True)
class Function:
    """
    One controllable capability of an endpoint.

    Attributes:
        name: Display name (e.g., "Light")
        topic_suffix: Topic below the endpoint identifier (e.g., "light/set")
        kind: Interaction kind
        auth_token: Opaque token forwarded in every payload (may be empty)
        config: Kind-specific configuration

    Invariants:
        - name, topic_suffix non-empty
        - topic_suffix has no MQTT wildcards
        - type(config) is CONFIG_TYPES[kind]
    """
    name: str
    topic_suffix: str
    kind: FunctionKind
    auth_token: str
    config: KindConfig

    def __post_init__(self):
        _require_text(self.name, "Function name")
        _require_topic_segment(self.topic_suffix, "Function topic")
        if not isinstance(self.kind, FunctionKind):
            raise ConfigValidationError(f"Function kind must be a FunctionKind, got {self.kind!r}")
        if not isinstance(self.auth_token, str):
            raise ConfigValidationError(f"Function token must be a string, got {self.auth_token!r}")
        expected = CONFIG_TYPES[self.kind]
        if type(self.config) is not expected:
            raise ConfigValidationError(
                f"{self.kind.value.upper()} function requires {expected.__name__}, "
                f"got {type(self.config).__name__}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "name": self.name,
            "topicSuffix": self.topic_suffix,
            "kind": self.kind.value,
            "authToken": self.auth_token,
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Function":
        """Deserialize from dict.

        Raises:
            SchemaMismatchError: If required keys are missing
            ConfigValidationError: If values are invalid
        """
        kind = FunctionKind.parse(_require_key(data, "kind", "Function"))
        return cls(
            name=_require_key(data, "name", "Function"),
            topic_suffix=_require_key(data, "topicSuffix", "Function"),
            kind=kind,
            auth_token=_require_key(data, "authToken", "Function"),
            config=config_from_dict(kind, _require_key(data, "config", "Function")),
        )


@dataclass(frozen=True)
class Endpoint:
    """
    A controllable device, addressed on the broker by its identifier.

    Attributes:
        name: Display name
        identifier: First topic segment for all of its functions
        functions: Ordered functions owned by this endpoint
    """
    name: str
    identifier: str
    functions: Tuple[Function, ...] = ()

    def __post_init__(self):
        _require_text(self.name, "Endpoint name")
        _require_topic_segment(self.identifier, "Endpoint identifier")
        object.__setattr__(self, "functions", tuple(self.functions))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "identifier": self.identifier,
            "functions": [fn.to_dict() for fn in self.functions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Endpoint":
        functions = _require_list(_require_key(data, "functions", "Endpoint"), "functions", "Endpoint")
        return cls(
            name=_require_key(data, "name", "Endpoint"),
            identifier=_require_key(data, "identifier", "Endpoint"),
            functions=tuple(Function.from_dict(fn) for fn in functions),
        )


@dataclass(frozen=True)
class Location:
    """A physical location (room) owning an ordered list of endpoints."""
    name: str
    endpoints: Tuple[Endpoint, ...] = ()

    def __post_init__(self):
        _require_text(self.name, "Location name")
        object.__setattr__(self, "endpoints", tuple(self.endpoints))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "endpoints": [ep.to_dict() for ep in self.endpoints],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        if isinstance(data, dict) and "devices" in data:
            raise SchemaMismatchError(
                "Location uses the legacy 'devices' layout; import it with ConfigStore.import_legacy()"
            )
        endpoints = _require_list(_require_key(data, "endpoints", "Location"), "endpoints", "Location")
        return cls(
            name=_require_key(data, "name", "Location"),
            endpoints=tuple(Endpoint.from_dict(ep) for ep in endpoints),
        )


@dataclass(frozen=True)
class ConfigTree:
    """
    The whole configuration document.

    Every mutator validates its indices and returns a new tree.
    """
    locations: Tuple[Location, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "locations", tuple(self.locations))

    def to_list(self) -> List[Dict[str, Any]]:
        """Serialize to the persisted document (ordered array of locations)."""
        return [loc.to_dict() for loc in self.locations]

    @classmethod
    def from_list(cls, data: Any) -> "ConfigTree":
        """Deserialize from the persisted document.

        Raises:
            SchemaMismatchError: If the document does not have the canonical shape
            ConfigValidationError: If an entity holds invalid values
        """
        if not isinstance(data, list):
            raise SchemaMismatchError(
                f"Configuration document must be a JSON array, got {type(data).__name__}"
            )
        return cls(locations=tuple(Location.from_dict(loc) for loc in data))

    def location(self, location_index: int) -> Location:
        _check_index(self.locations, location_index, "Location")
        return self.locations[location_index]

    def endpoint(self, location_index: int, endpoint_index: int) -> Endpoint:
        endpoints = self.location(location_index).endpoints
        _check_index(endpoints, endpoint_index, "Endpoint")
        return endpoints[endpoint_index]

    def function(self, location_index: int, endpoint_index: int, function_index: int) -> Function:
        functions = self.endpoint(location_index, endpoint_index).functions
        _check_index(functions, function_index, "Function")
        return functions[function_index]

    def iter_functions(self):
        """Yield ((loc, ep, fn) indices, endpoint, function) in document order."""
        for li, loc in enumerate(self.locations):
            for ei, ep in enumerate(loc.endpoints):
                for fi, fn in enumerate(ep.functions):
                    yield (li, ei, fi), ep, fn

    def _replace_location(self, location_index: int, location: Location) -> "ConfigTree":
        locations = list(self.locations)
        locations[location_index] = location
        return replace(self, locations=tuple(locations))

    def _replace_endpoint(self, location_index: int, endpoint_index: int, endpoint: Endpoint) -> "ConfigTree":
        loc = self.location(location_index)
        endpoints = list(loc.endpoints)
        endpoints[endpoint_index] = endpoint
        return self._replace_location(location_index, replace(loc, endpoints=tuple(endpoints)))

    def with_location(self, location: Location) -> "ConfigTree":
        return replace(self, locations=self.locations + (location,))

    def with_endpoint(self, location_index: int, endpoint: Endpoint) -> "ConfigTree":
        loc = self.location(location_index)
        return self._replace_location(
            location_index, replace(loc, endpoints=loc.endpoints + (endpoint,))
        )

    def with_function(self, location_index: int, endpoint_index: int, function: Function) -> "ConfigTree":
        ep = self.endpoint(location_index, endpoint_index)
        return self._replace_endpoint(
            location_index, endpoint_index, replace(ep, functions=ep.functions + (function,))
        )

    def without_location(self, location_index: int) -> "ConfigTree":
        _check_index(self.locations, location_index, "Location")
        locations = self.locations[:location_index] + self.locations[location_index + 1:]
        return replace(self, locations=locations)

    def without_endpoint(self, location_index: int, endpoint_index: int) -> "ConfigTree":
        loc = self.location(location_index)
        _check_index(loc.endpoints, endpoint_index, "Endpoint")
        endpoints = loc.endpoints[:endpoint_index] + loc.endpoints[endpoint_index + 1:]
        return self._replace_location(location_index, replace(loc, endpoints=endpoints))

    def without_function(self, location_index: int, endpoint_index: int, function_index: int) -> "ConfigTree":
        ep = self.endpoint(location_index, endpoint_index)
        _check_index(ep.functions, function_index, "Function")
        functions = ep.functions[:function_index] + ep.functions[function_index + 1:]
        return self._replace_endpoint(location_index, endpoint_index, replace(ep, functions=functions))


@dataclass
class FunctionDraft:
    """
    Mutable builder for a Function.

    Collected field by field by whatever UI the host prefers, then submitted
    atomically to ConfigStore.add_function(). Only the config fields matching
    kind are used.

    Example:
        >>> draft = FunctionDraft(name="Fan", topic_suffix="fan", kind="push")
        >>> draft.value = "ON"
        >>> draft.build().config
        PushConfig(value='ON')
    """
    name: str = ""
    topic_suffix: str = ""
    kind: Union[str, FunctionKind] = ""
    auth_token: str = ""
    value: Optional[str] = None
    on_value: Optional[str] = None
    off_value: Optional[str] = None

    def build(self) -> Function:
        """
        Validate and build the Function.

        Raises:
            ConfigValidationError: If any required field is missing or invalid
        """
        kind = FunctionKind.parse(self.kind)
        if kind is FunctionKind.PUSH:
            config: KindConfig = PushConfig(value=self.value)
        elif kind is FunctionKind.TOGGLE:
            config = ToggleConfig(on_value=self.on_value, off_value=self.off_value)
        else:
            config = EmptyConfig()
        return Function(
            name=self.name,
            topic_suffix=self.topic_suffix,
            kind=kind,
            auth_token=self.auth_token if self.auth_token is not None else "",
            config=config,
        )

