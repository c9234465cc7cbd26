"""
loopi - Polling control loops over Linux sysfs GPIO pins.

Registers named input and output pins, buffers reads and writes per loop
iteration, and releases the pins when the loop ends.
"""

__version__ = "1.0.0"

from loopi.core.loop_engine import EngineState, LoopEngine
from loopi.hal.sysfs_gpio import Direction, Level

__all__ = ["Direction", "EngineState", "Level", "LoopEngine", "__version__"]
