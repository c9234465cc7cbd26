"""
Mock sysfs - Simulated GPIO tree for running without hardware.

Plays the kernel's part under an arbitrary directory: exporting a pin
creates its gpio<N> directory with direction and value files. Every
operation is recorded so runs can be inspected afterwards.
"""

import logging
from pathlib import Path
from typing import Union

from loopi.hal.sysfs_gpio import Direction, Level, SysfsGPIO

logger = logging.getLogger(__name__)


class MockSysfsGPIO(SysfsGPIO):
    """
    Simulated sysfs GPIO tree.

    Per-pin files are kept after unexport so the last written values can
    still be read back once a run has terminated.
    """

    def __init__(self, root: Union[str, Path]):
        super().__init__(root)
        self.operations: list[tuple] = []
        self._root.mkdir(parents=True, exist_ok=True)
        for path in (self.export_path, self.unexport_path):
            if not path.exists():
                path.write_text("")

    def export(self, number: int) -> None:
        self.operations.append(("export", number))
        super().export(number)
        pin_dir = self.pin_dir(number)
        pin_dir.mkdir(exist_ok=True)
        if not self.direction_path(number).exists():
            self.direction_path(number).write_text(Direction.IN.value)
        if not self.value_path(number).exists():
            self.value_path(number).write_text(Level.LOW.value)
        logger.info(f"MockSysfs: Exported GPIO {number} (simulated)")

    def unexport(self, number: int) -> None:
        self.operations.append(("unexport", number))
        super().unexport(number)
        logger.info(f"MockSysfs: Unexported GPIO {number} (simulated)")

    def set_direction(self, number: int, direction: Direction) -> None:
        self.operations.append(("direction", number, direction.value))
        super().set_direction(number, direction)

    def read_value(self, number: int) -> Level:
        self.operations.append(("read", number))
        return super().read_value(number)

    def write_value(self, number: int, level: Level) -> None:
        self.operations.append(("write", number, level.value))
        super().write_value(number, level)
        logger.debug(f"MockSysfs: Write GPIO {number} = {level.name}")

    def set_input(self, number: int, level: Level) -> None:
        """Drive a simulated pin from outside, as a button or sensor would."""
        self.value_path(number).write_text(level.value)

    def get_pin_value(self, number: int) -> Level:
        """Current content of a pin's value file, without recording a read."""
        return Level(self.value_path(number).read_text().strip())
