"""
IO Buffer - Buffered reads and writes of registered pins.

Inputs are sampled once per loop iteration and served from a cache, and
output writes requested during an iteration are staged and committed at
the next iteration boundary. Immediate reads and writes bypass the
buffers.
"""

import logging
from typing import Optional

from loopi.exceptions import GpioIOError, UnregisteredNameError
from loopi.hal.pin_registry import PinRegistry
from loopi.hal.sysfs_gpio import Direction, Level, SysfsGPIO


class IOBuffer:
    """
    Input caches and pending output writes for one run.

    previous_inputs is a snapshot of current_inputs taken right before each
    refresh, which is what falling_edge() compares against.
    """

    def __init__(
        self,
        registry: PinRegistry,
        sysfs: SysfsGPIO,
        logger: Optional[logging.Logger] = None,
    ):
        self._registry = registry
        self._sysfs = sysfs
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._current_inputs: dict[str, Level] = {}
        self._previous_inputs: dict[str, Level] = {}
        self._current_outputs: dict[str, Level] = {}
        self._pending_outputs: dict[str, Level] = {}

    @property
    def current_inputs(self) -> dict[str, Level]:
        return self._current_inputs.copy()

    @property
    def previous_inputs(self) -> dict[str, Level]:
        return self._previous_inputs.copy()

    @property
    def current_outputs(self) -> dict[str, Level]:
        """Last value actually written to each output."""
        return self._current_outputs.copy()

    @property
    def pending_outputs(self) -> dict[str, Level]:
        """Writes staged for the next flush."""
        return self._pending_outputs.copy()

    def _input_number(self, name: str) -> int:
        number = self._registry.number_of(name, Direction.IN)
        if number is None:
            raise UnregisteredNameError(name, "input")
        return number

    def _output_number(self, name: str) -> int:
        number = self._registry.number_of(name, Direction.OUT)
        if number is None:
            raise UnregisteredNameError(name, "output")
        return number

    def get(self, name: str, delayed: bool = True) -> Optional[Level]:
        """
        Get an input level by name.

        Args:
            name: Registered input name
            delayed: Serve the value sampled at the start of the iteration;
                if False read the pin now and update the cache

        Returns:
            The input level, or None if a delayed read is made before the
            input was ever sampled

        Raises:
            UnregisteredNameError: If name is not a registered input
            GpioIOError: If an immediate read fails
        """
        if not delayed:
            self._read_input(name)
            return self._current_inputs[name]

        self._input_number(name)
        return self._current_inputs.get(name)

    def set(self, name: str, value: object, delayed: bool = True) -> None:
        """
        Set an output level by name.

        Args:
            name: Registered output name
            value: Level.HIGH or Level.LOW (see Level.coerce)
            delayed: Stage the write for the next flush, overriding any
                value staged earlier; if False write the pin now

        Raises:
            InvalidValueError: If value is not HIGH or LOW
            UnregisteredNameError: If name is not a registered output
            GpioIOError: If an immediate write fails
        """
        level = Level.coerce(value)
        self._output_number(name)

        if not delayed:
            self._write_output(name, level)
            return

        self._pending_outputs[name] = level

    def flush_delayed_outputs(self) -> None:
        """Commit every staged write, then clear the staging buffer."""
        for name, level in self._pending_outputs.items():
            self._write_output(name, level)
        self._pending_outputs.clear()

    def refresh_inputs(self) -> None:
        """Snapshot the input cache, then sample every registered input."""
        self._previous_inputs = self._current_inputs.copy()

        for name in self._registry.inputs:
            self._read_input(name)

    def falling_edge(self, name: str) -> bool:
        """
        Check whether an input went from HIGH to LOW between the last two
        samples.

        Raises:
            UnregisteredNameError: If name is not a registered input
        """
        self._input_number(name)
        return (
            self._previous_inputs.get(name) is Level.HIGH
            and self._current_inputs.get(name) is Level.LOW
        )

    def reset_outputs(self) -> None:
        """
        Immediately drive every registered output LOW.

        Best effort: a pin that cannot be written is logged and skipped.
        """
        for name in self._registry.outputs:
            try:
                self._write_output(name, Level.LOW)
            except GpioIOError as e:
                self._logger.warning(f"Could not reset output `{name}`: {e}")

    def _read_input(self, name: str) -> None:
        number = self._input_number(name)
        self._current_inputs[name] = self._sysfs.read_value(number)

    def _write_output(self, name: str, level: Level) -> None:
        number = self._output_number(name)
        self._sysfs.write_value(number, level)
        self._current_outputs[name] = level
