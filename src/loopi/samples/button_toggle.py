"""
Button toggle - Flips an LED every time a button is pressed.

The button is expected to pull its input LOW when pressed, so a press is
seen as a falling edge.
"""

from typing import TYPE_CHECKING

from loopi.hal.sysfs_gpio import Level

if TYPE_CHECKING:
    from loopi.core.loop_engine import LoopEngine

DEFAULT_CONFIG = {
    "input": {
        "button": 27,
    },
    "output": {
        "led": 17,
    },
    "timing": {
        "loop_interval": 0.02,
    },
}


class ButtonToggle:
    """Toggles the `led` output on each falling edge of `button`."""

    def __init__(self, engine: "LoopEngine"):
        self._engine = engine
        self.led = Level.LOW
        self.presses = 0

    def tick(self) -> None:
        if not self._engine.falling_edge("button"):
            return

        self.presses += 1
        self.led = Level.LOW if self.led is Level.HIGH else Level.HIGH
        self._engine.set("led", self.led)
