"""
WidgetRegistry - Explicit widget registration pattern

Bounded Context: Which widget drives which function kind
Responsibilities:
  - Register a widget class per function kind
  - Validate kind availability before building
  - Provide introspection (available_kinds, get_help)

Design Motivation:
  Problem: An if/elif chain over kinds hides which kinds are supported
  Solution: Explicit registration, fail-fast on unknown kinds

Threading: Thread-safe (uses lock for write operations)
"""

from typing import Callable, Dict, Set
import threading

from switchboard_config.models import Endpoint, Function, FunctionKind
from .widgets import FunctionWidget, InputWidget, PushWidget, TimeWidget, ToggleWidget


WidgetFactory = Callable[[Endpoint, Function, object], FunctionWidget]


class WidgetNotAvailableError(Exception):
    """Raised when building a widget for an unregistered kind"""
    pass


class WidgetRegistry:
    """
    Registry mapping function kinds to widget factories.

    Example:
        registry = WidgetRegistry()
        registry.register(FunctionKind.PUSH, PushWidget, "Sends a fixed value")

        try:
            widget = registry.create(endpoint, function, publisher)
        except WidgetNotAvailableError as e:
            print(f"Kind not supported: {e}")
    """

    def __init__(self):
        self._factories: Dict[FunctionKind, WidgetFactory] = {}
        self._descriptions: Dict[FunctionKind, str] = {}
        self._lock = threading.Lock()

    def register(self, kind: FunctionKind, factory: WidgetFactory, description: str) -> None:
        """
        Register a widget factory for a kind.

        Raises:
            ValueError: If kind already registered (double registration)
        """
        with self._lock:
            if kind in self._factories:
                raise ValueError(f"Widget for '{kind.value}' already registered")

            self._factories[kind] = factory
            self._descriptions[kind] = description

    def create(self, endpoint: Endpoint, function: Function, publisher) -> FunctionWidget:
        """
        Build the widget for function.

        Raises:
            WidgetNotAvailableError: If no widget is registered for its kind
        """
        if function.kind not in self._factories:
            raise WidgetNotAvailableError(
                f"No widget for kind '{function.kind.value}'. "
                f"Available kinds: {', '.join(sorted(k.value for k in self.available_kinds))}"
            )

        return self._factories[function.kind](endpoint, function, publisher)

    def is_available(self, kind: FunctionKind) -> bool:
        return kind in self._factories

    @property
    def available_kinds(self) -> Set[FunctionKind]:
        """Snapshot of registered kinds."""
        return set(self._factories.keys())

    def get_help(self) -> Dict[str, str]:
        """Kind name → description (snapshot)."""
        return {kind.value: text for kind, text in self._descriptions.items()}


def default_registry() -> WidgetRegistry:
    """Registry with the four built-in widgets."""
    registry = WidgetRegistry()
    registry.register(FunctionKind.PUSH, PushWidget, "Sends its fixed value on every press")
    registry.register(FunctionKind.TOGGLE, ToggleWidget, "Alternates between the ON and OFF values")
    registry.register(FunctionKind.INPUT, InputWidget, "Sends the text entered by the operator")
    registry.register(FunctionKind.TIME, TimeWidget, "Sends the time of day entered by the operator")
    return registry
