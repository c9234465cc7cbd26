"""
Linux sysfs GPIO class access.

Pins are exported by writing their number to the shared ``export`` control
file, after which the kernel creates a ``gpio<N>`` directory holding the
per-pin ``direction`` and ``value`` files. Every operation here is a single
blocking file read or write.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Union

from loopi.exceptions import GpioIOError, InvalidValueError

logger = logging.getLogger(__name__)

GPIO_ROOT = Path("/sys/class/gpio")
GPIO_PREFIX = "gpio"

GPIO_FILE_EXPORT = "export"
GPIO_FILE_UNEXPORT = "unexport"

GPIO_PIN_FILE_DIRECTION = "direction"
GPIO_PIN_FILE_VALUE = "value"


class Direction(Enum):
    """Pin directions, valued with the text the kernel expects."""

    IN = "in"
    OUT = "out"


class Level(Enum):
    """Digital levels, valued with their sysfs textual form."""

    HIGH = "1"
    LOW = "0"

    @classmethod
    def coerce(cls, value: object) -> "Level":
        """
        Convert a user supplied value to a Level.

        Accepts a Level, the texts "1"/"0", a bool, or the integers 1/0.

        Raises:
            InvalidValueError: For anything else
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value in ("1", "0"):
            return cls(value)
        if isinstance(value, int) and value in (0, 1):
            return cls.HIGH if value else cls.LOW
        raise InvalidValueError(value)


class SysfsGPIO:
    """
    Thin wrapper around the sysfs GPIO control surface.

    The root defaults to /sys/class/gpio but may point anywhere, which is
    how tests and the simulated tree work.
    """

    def __init__(self, root: Union[str, Path] = GPIO_ROOT):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Directory holding the export/unexport control files."""
        return self._root

    @property
    def export_path(self) -> Path:
        return self._root / GPIO_FILE_EXPORT

    @property
    def unexport_path(self) -> Path:
        return self._root / GPIO_FILE_UNEXPORT

    def pin_dir(self, number: int) -> Path:
        """Directory the kernel creates for an exported pin."""
        return self._root / f"{GPIO_PREFIX}{number}"

    def direction_path(self, number: int) -> Path:
        return self.pin_dir(number) / GPIO_PIN_FILE_DIRECTION

    def value_path(self, number: int) -> Path:
        return self.pin_dir(number) / GPIO_PIN_FILE_VALUE

    def export(self, number: int) -> None:
        """
        Ask the kernel to export a pin.

        Raises:
            GpioIOError: If the export control file cannot be written
        """
        self._write(self.export_path, str(number), number, "export")

    def unexport(self, number: int) -> None:
        """
        Ask the kernel to release a pin.

        Raises:
            GpioIOError: If the unexport control file cannot be written
        """
        self._write(self.unexport_path, str(number), number, "unexport")

    def set_direction(self, number: int, direction: Direction) -> None:
        """
        Write the direction of an exported pin.

        Raises:
            GpioIOError: If the pin's direction file cannot be written
        """
        self._write(self.direction_path(number), direction.value, number, "set direction of")

    def read_value(self, number: int) -> Level:
        """
        Read the current level of a pin.

        Returns:
            The level read from the pin's value file

        Raises:
            GpioIOError: If the value file is missing, unreadable or holds
                something other than "0" or "1"
        """
        path = self.value_path(number)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise GpioIOError(f"Cannot read input GPIO {number}: {path} is not readable", pin=number)

        try:
            text = path.read_text().strip()
        except OSError as e:
            raise GpioIOError(f"Cannot read input GPIO {number}: {e}", pin=number) from e

        try:
            return Level(text)
        except ValueError:
            raise GpioIOError(f"Unexpected value {text!r} read from GPIO {number}", pin=number)

    def write_value(self, number: int, level: Level) -> None:
        """
        Write a level to a pin.

        Raises:
            GpioIOError: If the value file is missing or cannot be written
        """
        path = self.value_path(number)
        if not path.is_file():
            raise GpioIOError(f"Cannot write output GPIO {number}: {path} does not exist", pin=number)
        self._write(path, level.value, number, "write")

    def _write(self, path: Path, content: str, number: int, action: str) -> None:
        try:
            with open(path, "w") as f:
                f.write(content)
        except OSError as e:
            raise GpioIOError(f"Could not {action} GPIO {number}: {e}", pin=number) from e
        logger.debug(f"Wrote {content!r} to {path}")
