"""
Dashboard - Composition root for the switchboard

Bounded Context: Wiring configuration, session and widgets together
Responsibilities:
  - Load the configuration before anything can be published
  - Own the broker session lifecycle (start/stop)
  - Keep one widget per configured function, in document order
  - Route operator mutations through ConfigStore

Lifecycle:
    1. Load configuration (ConfigStore.load)
    2. Build widgets (toggles OFF, inputs empty)
    3. Connect to broker (non-blocking)
    4. Operator activates widgets / edits the tree
    5. stop() tears the session down

Widgets survive tree edits as long as their position and definition are
unchanged; reload() always starts from fresh widgets.
"""

import logging
from typing import Dict, Optional, Tuple, Union

from switchboard_config import (
    BrokerConfig,
    ConfigStore,
    ConfigTree,
    Function,
    FunctionDraft,
    LoadStatus,
    SwitchboardConfig,
)
from switchboard_mqtt import CommandPublisher, ConnectionManager, create_logger

from .registry import WidgetRegistry, default_registry
from .widgets import FunctionWidget

logger = logging.getLogger(__name__)

WidgetKey = Tuple[int, int, int]


def _shifted(key: WidgetKey, removed: Tuple[int, ...]) -> Optional[WidgetKey]:
    """Position of key after the entity at removed is deleted; None if it went with it."""
    depth = len(removed) - 1
    if key[:depth] != removed[:depth]:
        return key
    if key[depth] == removed[depth]:
        return None
    if key[depth] > removed[depth]:
        return key[:depth] + (key[depth] - 1,) + key[depth + 1:]
    return key


class Dashboard:
    """
    The running dashboard.

    Example:
        config = SwitchboardConfig.from_yaml("config/switchboard.yaml")
        dashboard = Dashboard.from_config(config)
        dashboard.start()

        dashboard.add_location("Kitchen")
        dashboard.add_endpoint(0, "Relay board", "dev1")
        dashboard.add_function(0, 0, FunctionDraft(
            name="Light", topic_suffix="light/set", kind="toggle",
            auth_token="abc", on_value="1", off_value="0"))

        dashboard.activate(0, 0, 0)   # publishes "1" to dev1/light/set

        dashboard.stop()
    """

    def __init__(
        self,
        store: ConfigStore,
        connection: ConnectionManager,
        publisher: CommandPublisher,
        registry: Optional[WidgetRegistry] = None,
        broker: Optional[BrokerConfig] = None,
    ):
        """
        Initialize dashboard.

        Args:
            store: Configuration store (loaded by start())
            connection: Broker session owner
            publisher: Publisher bound to connection
            registry: Kind → widget registry (default: all four built-ins)
            broker: Broker used by start() when none is passed
        """
        self.store = store
        self.connection = connection
        self.publisher = publisher
        self.registry = registry or default_registry()
        self.broker = broker
        self._widgets: Dict[WidgetKey, FunctionWidget] = {}

    @classmethod
    def from_config(cls, config: SwitchboardConfig) -> "Dashboard":
        """Build a dashboard and its collaborators from application settings."""
        connection = ConnectionManager(
            options=config.session,
            logger=create_logger("connection", config.log_level),
        )
        publisher = CommandPublisher(
            connection,
            logger=create_logger("publisher", config.log_level),
            qos=config.session.qos,
        )
        return cls(
            store=ConfigStore(config.store_path),
            connection=connection,
            publisher=publisher,
            broker=config.broker,
        )

    # ===== Lifecycle =====

    def start(self, broker: Optional[BrokerConfig] = None) -> LoadStatus:
        """
        Load the configuration, build widgets and connect.

        Returns:
            Outcome of loading the configuration
        """
        broker = broker or self.broker
        if broker is None:
            raise ValueError("No broker configured")

        self.store.load()
        self._sync(fresh=True)
        if self.store.load_status is LoadStatus.UNREADABLE:
            logger.warning(
                f"⚠️ Configuration at {self.store.path} could not be read; "
                f"edits are refused until reload() succeeds"
            )
        elif self.store.load_status in (LoadStatus.CORRUPT, LoadStatus.SCHEMA_MISMATCH):
            logger.warning(
                f"⚠️ Starting with an empty configuration ({self.store.load_status.value}); "
                f"previous document kept at {self.store.corrupt_path}"
            )

        self.connection.connect(broker)
        return self.store.load_status

    def stop(self) -> None:
        self.connection.disconnect()

    def reload(self) -> ConfigTree:
        """Reload the stored configuration; every widget starts fresh."""
        tree = self.store.load()
        self._sync(fresh=True)
        return tree

    # ===== Widgets =====

    @property
    def tree(self) -> ConfigTree:
        return self.store.tree

    @property
    def widgets(self) -> Dict[WidgetKey, FunctionWidget]:
        """(location, endpoint, function) indices → widget, in document order."""
        return dict(self._widgets)

    def widget(self, location_index: int, endpoint_index: int, function_index: int) -> FunctionWidget:
        """
        Widget for one function.

        Raises:
            EntityNotFoundError: If an index does not exist
        """
        self.tree.function(location_index, endpoint_index, function_index)
        return self._widgets[(location_index, endpoint_index, function_index)]

    def activate(self, location_index: int, endpoint_index: int, function_index: int) -> bool:
        """Activate one widget; True if the command reached the session."""
        return self.widget(location_index, endpoint_index, function_index).activate()

    def _sync(self, fresh: bool = False, removed: Optional[Tuple[int, ...]] = None) -> None:
        previous: Dict[WidgetKey, FunctionWidget] = {}
        if not fresh:
            for key, widget in self._widgets.items():
                new_key = key if removed is None else _shifted(key, removed)
                if new_key is not None:
                    previous[new_key] = widget

        widgets: Dict[WidgetKey, FunctionWidget] = {}
        for key, endpoint, function in self.tree.iter_functions():
            current = previous.get(key)
            if (
                current is not None
                and current.function == function
                and current.endpoint.identifier == endpoint.identifier
            ):
                current.endpoint = endpoint
                widgets[key] = current
            else:
                widgets[key] = self.registry.create(endpoint, function, self.publisher)
        self._widgets = widgets

    # ===== Configuration edits =====

    def add_location(self, name: str) -> ConfigTree:
        tree = self.store.add_location(name)
        self._sync()
        return tree

    def add_endpoint(self, location_index: int, name: str, identifier: str) -> ConfigTree:
        tree = self.store.add_endpoint(location_index, name, identifier)
        self._sync()
        return tree

    def add_function(
        self,
        location_index: int,
        endpoint_index: int,
        definition: Union[FunctionDraft, Function],
    ) -> ConfigTree:
        tree = self.store.add_function(location_index, endpoint_index, definition)
        self._sync()
        return tree

    def delete_location(self, location_index: int) -> ConfigTree:
        tree = self.store.delete_location(location_index)
        self._sync(removed=(location_index,))
        return tree

    def delete_endpoint(self, location_index: int, endpoint_index: int) -> ConfigTree:
        tree = self.store.delete_endpoint(location_index, endpoint_index)
        self._sync(removed=(location_index, endpoint_index))
        return tree

    def delete_function(self, location_index: int, endpoint_index: int, function_index: int) -> ConfigTree:
        tree = self.store.delete_function(location_index, endpoint_index, function_index)
        self._sync(removed=(location_index, endpoint_index, function_index))
        return tree

    def import_legacy(self, document) -> ConfigTree:
        tree = self.store.import_legacy(document)
        self._sync(fresh=True)
        return tree
