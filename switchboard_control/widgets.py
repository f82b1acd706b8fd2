"""
Function widgets - per-function interaction state machines

Bounded Context: Deciding what value to publish and when
Responsibilities:
  - PUSH: publish the configured fixed value
  - TOGGLE: ON/OFF state, publish the value of the target state
  - INPUT: publish an operator-entered string
  - TIME: publish an operator-entered time of day

State is view-local: nothing here is persisted, and a rebuilt widget starts
from its initial state (toggles OFF, inputs empty). Rendering is left to the
host UI; widgets only expose state and activate().
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import time
from enum import Enum
from typing import Union

from switchboard_config.models import Endpoint, Function, FunctionKind

logger = logging.getLogger(__name__)

TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


class FunctionWidget(ABC):
    """
    Base class for function widgets.

    Subclasses declare their kind and implement next_value().
    """

    kind: FunctionKind

    def __init__(self, endpoint: Endpoint, function: Function, publisher):
        if function.kind is not self.kind:
            raise ValueError(
                f"{type(self).__name__} drives {self.kind.value} functions, "
                f"got {function.kind.value}"
            )
        self.endpoint = endpoint
        self.function = function
        self.publisher = publisher

    @abstractmethod
    def next_value(self) -> str:
        """Value the next activation publishes."""
        raise NotImplementedError("Subclasses must implement next_value()")

    def activate(self) -> bool:
        """
        Publish the current value.

        Returns:
            True if the command was handed to the broker session
        """
        value = self.next_value()
        logger.debug(f"🎯 {self.function.name}: sending {value!r}")
        return self.publisher.publish(self.endpoint, self.function, value)


class PushWidget(FunctionWidget):
    """Stateless button sending the configured value."""

    kind = FunctionKind.PUSH

    def next_value(self) -> str:
        return self.function.config.value


class ToggleState(str, Enum):
    OFF = "off"
    ON = "on"


class ToggleWidget(FunctionWidget):
    """
    Two-state switch, initially OFF.

    Each activation publishes the value for the state being switched to and
    then flips. The local state flips even when the command is dropped; it is
    not synchronized with the device.
    """

    kind = FunctionKind.TOGGLE

    def __init__(self, endpoint: Endpoint, function: Function, publisher):
        super().__init__(endpoint, function, publisher)
        self.state = ToggleState.OFF

    @property
    def target_state(self) -> ToggleState:
        return ToggleState.ON if self.state is ToggleState.OFF else ToggleState.OFF

    def next_value(self) -> str:
        config = self.function.config
        return config.on_value if self.target_state is ToggleState.ON else config.off_value

    def activate(self) -> bool:
        value = self.next_value()
        self.state = self.target_state
        logger.debug(f"🎯 {self.function.name}: {self.state.value.upper()} ({value!r})")
        return self.publisher.publish(self.endpoint, self.function, value)


class InputWidget(FunctionWidget):
    """Free-text field; activation sends the held text verbatim."""

    kind = FunctionKind.INPUT

    def __init__(self, endpoint: Endpoint, function: Function, publisher):
        super().__init__(endpoint, function, publisher)
        self._value = ""

    @property
    def value(self) -> str:
        return self._value

    def set_value(self, value: str) -> None:
        if not isinstance(value, str):
            raise ValueError(f"Input value must be a string, got {type(value).__name__}")
        self._value = value

    def next_value(self) -> str:
        return self._value


class TimeWidget(InputWidget):
    """
    Time-of-day field; like InputWidget but only holds HH:MM or HH:MM:SS.

    A datetime.time is accepted and formatted as HH:MM (HH:MM:SS when it
    carries seconds).
    """

    kind = FunctionKind.TIME

    def set_value(self, value: Union[str, time]) -> None:
        if isinstance(value, time):
            value = value.strftime("%H:%M:%S" if value.second else "%H:%M")
        if not isinstance(value, str) or not TIME_OF_DAY.match(value):
            raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM or HH:MM:SS)")
        self._value = value
