"""
Configuration Errors
===================

Bounded Context: Configuration Error Taxonomy

Errors raised by the configuration model, the persistent store and the
application settings loader.

Hierarchy:
    ConfigError
    ├── ConfigValidationError   (also a ValueError)
    ├── EntityNotFoundError     (also an IndexError)
    ├── SchemaMismatchError
    ├── PersistenceParseError
    └── StoreUnreadableError

Propagation:
    ConfigValidationError and EntityNotFoundError are raised synchronously to
    the caller before any mutation or persist. SchemaMismatchError and
    PersistenceParseError are contained by ConfigStore.load(), which degrades
    to an empty tree and reports a distinct LoadStatus instead. StoreUnreadableError
    is raised by every mutation after a load that could not read the document,
    so an empty tree is never written over it.
"""


class ConfigError(Exception):
    """Base class for configuration errors."""
    pass


class ConfigValidationError(ConfigError, ValueError):
    """A required field is missing or holds an invalid value."""
    pass


class EntityNotFoundError(ConfigError, IndexError):
    """A location, endpoint or function index does not exist."""
    pass


class SchemaMismatchError(ConfigError):
    """A stored document does not have the canonical shape."""
    pass


class PersistenceParseError(ConfigError):
    """A stored document could not be read or decoded as JSON."""
    pass


class StoreUnreadableError(ConfigError):
    """The stored document exists but could not be read; edits are refused."""
    pass
