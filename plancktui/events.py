"""Mouse input events delivered to the interface components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MouseButton(Enum):
    """The mouse button involved in an event."""

    NONE = "none"
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"
    WHEEL_UP = "wheel_up"
    WHEEL_DOWN = "wheel_down"
    WHEEL_LEFT = "wheel_left"
    WHEEL_RIGHT = "wheel_right"


_WHEEL_BUTTONS = frozenset(
    {
        MouseButton.WHEEL_UP,
        MouseButton.WHEEL_DOWN,
        MouseButton.WHEEL_LEFT,
        MouseButton.WHEEL_RIGHT,
    }
)


class MouseAction(Enum):
    """What happened to the button."""

    PRESS = "press"
    RELEASE = "release"
    MOTION = "motion"


@dataclass(frozen=True)
class MouseEvent:
    """A mouse event at screen cell (x, y)."""

    x: int
    y: int
    button: MouseButton = MouseButton.NONE
    action: MouseAction = MouseAction.PRESS
    shift: bool = False
    alt: bool = False
    ctrl: bool = False

    def is_wheel(self) -> bool:
        """Return True if the event comes from a scroll wheel."""
        return self.button in _WHEEL_BUTTONS