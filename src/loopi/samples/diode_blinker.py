"""
Diode blinker - Cycles two LEDs through a fixed pattern.
"""

import time
from typing import TYPE_CHECKING

from loopi.hal.sysfs_gpio import Level

if TYPE_CHECKING:
    from loopi.core.loop_engine import LoopEngine

DEFAULT_CONFIG = {
    "output": {
        "red": 14,
        "yellow": 4,
    },
}

# (red, yellow) per step
PATTERN = (
    (Level.LOW, Level.LOW),
    (Level.HIGH, Level.LOW),
    (Level.LOW, Level.HIGH),
    (Level.HIGH, Level.HIGH),
    (Level.HIGH, Level.LOW),
)


class DiodeBlinker:
    """Steps through PATTERN, one step per tick."""

    def __init__(self, engine: "LoopEngine", interval: float = 1.0):
        self._engine = engine
        self._interval = interval
        self.step = 0

    def tick(self) -> None:
        red, yellow = PATTERN[self.step]
        self._engine.set("red", red)
        self._engine.set("yellow", yellow)

        self.step = (self.step + 1) % len(PATTERN)

        if self._interval > 0:
            time.sleep(self._interval)
