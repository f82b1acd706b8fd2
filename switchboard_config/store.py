"""
ConfigStore - Durable configuration tree

Bounded Context: Configuration persistence
Responsibilities:
  - Own the in-memory ConfigTree
  - Validate every mutation before it happens
  - Persist the full tree after every mutation (write-through)
  - Load the persisted document, degrading to an empty tree

Persistence:
  - One JSON document, full-snapshot overwrite
  - Atomic: temp file in the same directory + fsync + os.replace
  - Undecodable or foreign documents are moved aside to <path>.corrupt
    (<path>.corrupt.N when that exists) before anything can overwrite them
  - A document that exists but cannot be read stays in place; edits are
    refused until a later load() succeeds

Threading: Mutations are serialized by a lock; reads return the current
immutable tree and need no lock.
"""

import json
import logging
import os
import tempfile
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .errors import (
    ConfigValidationError,
    PersistenceParseError,
    SchemaMismatchError,
    StoreUnreadableError,
)
from .legacy import convert_legacy_document, is_legacy_document
from .models import ConfigTree, Endpoint, Function, FunctionDraft, Location

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    """Outcome of the last ConfigStore.load()."""

    MISSING = "missing"
    LOADED = "loaded"
    CORRUPT = "corrupt"
    SCHEMA_MISMATCH = "schema_mismatch"
    UNREADABLE = "unreadable"


class ConfigStore:
    """
    Owner of the Location → Endpoint → Function tree.

    Every add/delete method validates first, persists the complete new tree,
    then swaps it in and returns it. A failed validation or write leaves both
    the file and the in-memory tree untouched.

    Example:
        store = ConfigStore(Path("switchboard.json"))
        store.load()
        store.add_location("Kitchen")
        store.add_endpoint(0, "Relay board", "dev1")
        store.add_function(0, 0, FunctionDraft(name="Fan", topic_suffix="fan",
                                               kind="push", value="ON"))
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._tree = ConfigTree()
        self._lock = threading.Lock()
        self.load_status: Optional[LoadStatus] = None
        self.corrupt_path: Optional[Path] = None

    @property
    def tree(self) -> ConfigTree:
        """Current tree (immutable snapshot)."""
        return self._tree

    # ===== Loading =====

    def load(self) -> ConfigTree:
        """
        Load the persisted document.

        Returns:
            The loaded tree, or an empty tree when there is no usable document.
            load_status tells the cases apart.
        """
        with self._lock:
            try:
                data = self._read_document()
            except FileNotFoundError:
                logger.info(f"No configuration at {self.path}, starting empty")
                return self._reset(LoadStatus.MISSING)
            except OSError as e:
                logger.error(f"❌ Cannot read configuration, leaving it in place: {e}")
                return self._reset(LoadStatus.UNREADABLE)
            except PersistenceParseError as e:
                logger.error(f"❌ Corrupt configuration: {e}")
                return self._set_aside(LoadStatus.CORRUPT)

            try:
                tree = ConfigTree.from_list(data)
            except SchemaMismatchError as e:
                if is_legacy_document(data):
                    logger.error(
                        f"❌ {self.path} is a legacy dashboard document; "
                        f"import it with import_legacy() ({e})"
                    )
                else:
                    logger.error(f"❌ Unrecognized configuration layout: {e}")
                return self._set_aside(LoadStatus.SCHEMA_MISMATCH)
            except ConfigValidationError as e:
                logger.error(f"❌ Invalid configuration entry: {e}")
                return self._set_aside(LoadStatus.CORRUPT)

            self._tree = tree
            self.load_status = LoadStatus.LOADED
            logger.info(
                f"✅ Loaded {len(tree.locations)} locations from {self.path}"
            )
            return tree

    def _read_document(self) -> Any:
        try:
            text = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise PersistenceParseError(f"Cannot decode {self.path}: {e}") from e
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise PersistenceParseError(f"Invalid JSON in {self.path}: {e}") from e

    def _reset(self, status: LoadStatus) -> ConfigTree:
        self._tree = ConfigTree()
        self.load_status = status
        return self._tree

    def _quarantine_target(self) -> Path:
        # Earlier quarantined documents are never overwritten
        target = self.path.with_name(self.path.name + ".corrupt")
        n = 1
        while target.exists():
            target = self.path.with_name(f"{self.path.name}.corrupt.{n}")
            n += 1
        return target

    def _set_aside(self, status: LoadStatus) -> ConfigTree:
        target = self._quarantine_target()
        try:
            os.replace(self.path, target)
        except OSError as e:
            # Still at the live path: refuse edits rather than overwrite it
            logger.error(f"❌ Could not move {self.path} aside: {e}")
            return self._reset(LoadStatus.UNREADABLE)
        self.corrupt_path = target
        logger.warning(f"⚠️ Moved unusable configuration to {target}")
        return self._reset(status)

    # ===== Persistence =====

    def _write(self, tree: ConfigTree) -> None:
        """Atomically replace the document with tree."""
        payload = json.dumps(tree.to_list(), indent=2, ensure_ascii=False)
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error(f"❌ Failed to persist configuration to {self.path}: {e}")
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _commit(self, mutate: Callable[[ConfigTree], ConfigTree]) -> ConfigTree:
        with self._lock:
            if self.load_status is LoadStatus.UNREADABLE:
                raise StoreUnreadableError(
                    f"{self.path} could not be read; call load() again before editing"
                )
            new_tree = mutate(self._tree)
            self._write(new_tree)
            self._tree = new_tree
            return new_tree

    # ===== Mutations =====

    def add_location(self, name: str) -> ConfigTree:
        """
        Append a location.

        Raises:
            ConfigValidationError: If name is empty
        """
        location = Location(name=name)
        tree = self._commit(lambda t: t.with_location(location))
        logger.info(f"➕ Location added: {name}")
        return tree

    def add_endpoint(self, location_index: int, name: str, identifier: str) -> ConfigTree:
        """
        Append an endpoint to a location.

        Raises:
            ConfigValidationError: If name or identifier is empty/invalid
            EntityNotFoundError: If location_index does not exist
        """
        endpoint = Endpoint(name=name, identifier=identifier)
        tree = self._commit(lambda t: t.with_endpoint(location_index, endpoint))
        logger.info(f"➕ Endpoint added: {name} ({identifier})")
        return tree

    def add_function(
        self,
        location_index: int,
        endpoint_index: int,
        definition: Union[FunctionDraft, Function],
    ) -> ConfigTree:
        """
        Append a function to an endpoint.

        Args:
            location_index: Owning location
            endpoint_index: Owning endpoint within the location
            definition: A FunctionDraft (validated here) or a built Function

        Raises:
            ConfigValidationError: If the definition is incomplete or inconsistent
            EntityNotFoundError: If an index does not exist
        """
        function = definition.build() if isinstance(definition, FunctionDraft) else definition
        if not isinstance(function, Function):
            raise ConfigValidationError(
                f"Expected FunctionDraft or Function, got {type(definition).__name__}"
            )
        tree = self._commit(lambda t: t.with_function(location_index, endpoint_index, function))
        logger.info(f"➕ Function added: {function.name} ({function.kind.value})")
        return tree

    def delete_location(self, location_index: int) -> ConfigTree:
        """Remove a location with all its endpoints and functions."""
        tree = self._commit(lambda t: t.without_location(location_index))
        logger.info(f"🗑️ Location {location_index} deleted")
        return tree

    def delete_endpoint(self, location_index: int, endpoint_index: int) -> ConfigTree:
        """Remove an endpoint with all its functions."""
        tree = self._commit(lambda t: t.without_endpoint(location_index, endpoint_index))
        logger.info(f"🗑️ Endpoint {location_index}/{endpoint_index} deleted")
        return tree

    def delete_function(
        self, location_index: int, endpoint_index: int, function_index: int
    ) -> ConfigTree:
        """Remove one function; siblings keep their relative order."""
        tree = self._commit(
            lambda t: t.without_function(location_index, endpoint_index, function_index)
        )
        logger.info(f"🗑️ Function {location_index}/{endpoint_index}/{function_index} deleted")
        return tree

    def import_legacy(self, document: Union[str, Path, list]) -> ConfigTree:
        """
        Replace the tree with a document written by the browser dashboard.

        Args:
            document: Decoded JSON array, or a path to a JSON file
                (e.g., the .corrupt file left behind by load())

        Raises:
            SchemaMismatchError: If the document is not identifier-bearing legacy
            ConfigValidationError: If an entity holds invalid values
            PersistenceParseError: If the file cannot be read as JSON
        """
        if isinstance(document, (str, Path)):
            path = Path(document)
            try:
                document = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                raise PersistenceParseError(f"Cannot read legacy document {path}: {e}") from e

        imported = convert_legacy_document(document)
        tree = self._commit(lambda t: imported)
        self.load_status = LoadStatus.LOADED
        logger.info(f"✅ Imported {len(imported.locations)} legacy locations")
        return tree
