"""
switchboard_control - Operator-facing control logic

Bounded Context: Turning operator actions into commands
Responsibilities:
  - Per-function interaction state machines (push, toggle, input, time)
  - Widget registration per function kind
  - Dashboard composition root (store + session + publisher + widgets)

Architecture:
  - WidgetRegistry: Explicit registration pattern (kind → widget class)
  - FunctionWidget subclasses: decide what value to publish and when
  - Dashboard: loads configuration, connects, routes edits

Design Philosophy:
  - Explicit registration (fail-fast, no runtime surprises)
  - View-local state only (toggles reset on reload)
  - Rendering left to the host UI
"""

from .widgets import (
    FunctionWidget,
    PushWidget,
    ToggleWidget,
    ToggleState,
    InputWidget,
    TimeWidget,
)
from .registry import WidgetRegistry, WidgetNotAvailableError, default_registry
from .dashboard import Dashboard

__all__ = [
    "FunctionWidget",
    "PushWidget",
    "ToggleWidget",
    "ToggleState",
    "InputWidget",
    "TimeWidget",
    "WidgetRegistry",
    "WidgetNotAvailableError",
    "default_registry",
    "Dashboard",
]
