"""
switchboard_config - Configuration model and persistence

Bounded Context: What the operator has configured
Responsibilities:
  - Location → Endpoint → Function tree (immutable, validated)
  - Durable write-through persistence (ConfigStore)
  - Import of documents written by the browser dashboard
  - Application settings (broker, session options) from YAML

No network knowledge: the MQTT side only reads these types.
"""

from .errors import (
    ConfigError,
    ConfigValidationError,
    EntityNotFoundError,
    SchemaMismatchError,
    PersistenceParseError,
    StoreUnreadableError,
)
from .models import (
    FunctionKind,
    PushConfig,
    ToggleConfig,
    EmptyConfig,
    Function,
    Endpoint,
    Location,
    ConfigTree,
    FunctionDraft,
)
from .store import ConfigStore, LoadStatus
from .legacy import convert_legacy_document, is_legacy_document
from .settings import BrokerConfig, SessionOptions, SwitchboardConfig

__all__ = [
    # Errors
    "ConfigError",
    "ConfigValidationError",
    "EntityNotFoundError",
    "SchemaMismatchError",
    "PersistenceParseError",
    "StoreUnreadableError",
    # Model
    "FunctionKind",
    "PushConfig",
    "ToggleConfig",
    "EmptyConfig",
    "Function",
    "Endpoint",
    "Location",
    "ConfigTree",
    "FunctionDraft",
    # Persistence
    "ConfigStore",
    "LoadStatus",
    "convert_legacy_document",
    "is_legacy_document",
    # Settings
    "BrokerConfig",
    "SessionOptions",
    "SwitchboardConfig",
]
