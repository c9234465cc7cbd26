"""
Pin Registry for binding named pins to the sysfs GPIO interface.

Handles export, direction assignment and unexport of pins, and keeps the
name to pin bindings for inputs and outputs. Registration failures are
collected and reported through a callback rather than raised.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Union

from loopi.exceptions import ConfigError, GpioIOError, PinConflictError
from loopi.hal.sysfs_gpio import Direction, SysfsGPIO

DEFAULT_SETTLE_DELAY = 1.0


@dataclass(frozen=True)
class PinBinding:
    """A named pin registered with the kernel."""

    name: str
    number: int
    direction: Direction


@dataclass(frozen=True)
class RegistrationFailure:
    """Why a pin could not be registered."""

    name: str
    number: int
    stage: str  # "conflict", "export" or "direction"
    reason: str


class PinRegistry:
    """
    Owns the input and output pin bindings.

    A name appears in at most one of the two maps and a pin number is bound
    to at most one name. Every pin exported through the registry is
    unexported again by unregister_all(), bound or not.
    """

    def __init__(
        self,
        sysfs: SysfsGPIO,
        logger: Optional[logging.Logger] = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        on_failure: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize the registry.

        Args:
            sysfs: GPIO interface the pins are registered against
            logger: Logger for registration outcomes, module logger if None
            settle_delay: Seconds to wait after export before the per-pin
                files are used
            on_failure: Called once per batch that failed to register
        """
        self._sysfs = sysfs
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._settle_delay = settle_delay
        self._on_failure = on_failure
        self._inputs: dict[str, PinBinding] = {}
        self._outputs: dict[str, PinBinding] = {}
        self._exported: dict[int, str] = {}
        self._failures: list[RegistrationFailure] = []

    @property
    def sysfs(self) -> SysfsGPIO:
        return self._sysfs

    @property
    def inputs(self) -> dict[str, PinBinding]:
        """Input bindings by name."""
        return self._inputs.copy()

    @property
    def outputs(self) -> dict[str, PinBinding]:
        """Output bindings by name."""
        return self._outputs.copy()

    @property
    def failures(self) -> list[RegistrationFailure]:
        """Failures collected by every register() call so far."""
        return list(self._failures)

    @property
    def exported_pins(self) -> set[int]:
        """Pin numbers exported by this registry and not yet released."""
        return set(self._exported)

    def get_binding(self, name: str) -> Optional[PinBinding]:
        """Get the binding for a name in either direction, if any."""
        return self._inputs.get(name) or self._outputs.get(name)

    def number_of(self, name: str, direction: Direction) -> Optional[int]:
        """Pin number bound to a name in the given direction, or None."""
        bindings = self._inputs if direction is Direction.IN else self._outputs
        binding = bindings.get(name)
        return binding.number if binding is not None else None

    def _owner_of(self, number: int) -> Optional[str]:
        for binding in list(self._inputs.values()) + list(self._outputs.values()):
            if binding.number == number:
                return f"`{binding.name}` ({binding.direction.value})"
        if number in self._exported:
            return f"`{self._exported[number]}`"
        return None

    def _check_conflict(self, name: str, number: int, batch: Mapping[int, str]) -> None:
        """
        Validate that neither the name nor the pin number is already taken.

        Raises:
            PinConflictError: If the name or number is bound elsewhere
        """
        existing = self.get_binding(name)
        if existing is not None:
            raise PinConflictError(number, name, f"`{name}` (GPIO {existing.number})")

        owner = self._owner_of(number)
        if owner is None and number in batch:
            owner = f"`{batch[number]}`"
        if owner is not None:
            raise PinConflictError(number, name, owner)

    def _record_failure(self, name: str, number: int, stage: str, reason: str) -> None:
        self._failures.append(RegistrationFailure(name, number, stage, reason))

    def _fail(self, message: str) -> bool:
        self._logger.error(message)
        if self._on_failure is not None:
            self._on_failure()
        return False

    def register(self, direction: Union[Direction, str], pins: Mapping[str, int]) -> bool:
        """
        Export a batch of pins and assign them a direction.

        Each pin is unexported first in case a previous run did not shut
        down cleanly. If any export fails the batch stops before the
        direction step; if any direction assignment fails only the pins
        that succeeded are bound. Either way the failure callback is
        invoked and False is returned.

        Args:
            direction: Direction.IN or Direction.OUT (or "in"/"out")
            pins: Pin numbers by logical name

        Returns:
            True if every pin of the batch was registered

        Raises:
            ConfigError: If the direction is not valid
        """
        try:
            direction = Direction(direction)
        except ValueError:
            raise ConfigError(
                f"Invalid direction: {direction!r}. Please use Direction.IN or Direction.OUT."
            )

        if not pins:
            return True

        success = True
        batch: dict[int, str] = {}
        for name, number in pins.items():
            try:
                self._check_conflict(name, number, batch)
            except PinConflictError as e:
                success = False
                self._record_failure(name, number, "conflict", str(e))
                self._logger.warning(str(e), extra={"pin": number, "pin_name": name})
                continue
            batch[number] = name

        for number in batch:
            try:
                self._sysfs.unexport(number)
            except GpioIOError as e:
                self._logger.debug(f"GPIO {number} was not exported: {e}")

        for number, name in batch.items():
            try:
                self._sysfs.export(number)
            except GpioIOError as e:
                success = False
                self._record_failure(name, number, "export", str(e))
                self._logger.warning(
                    f"Required GPIO {number} could not be exported (got permissions?).",
                    extra={"pin": number, "pin_name": name},
                )
                continue
            self._exported[number] = name
            self._logger.info(f"Exported GPIO {number}.", extra={"pin": number, "pin_name": name})

        if not success:
            return self._fail("Could not properly export GPIOs.")

        self._logger.info(f"Waiting {self._settle_delay:g} second(s) for GPIO settings to settle.")
        time.sleep(self._settle_delay)

        bindings = self._inputs if direction is Direction.IN else self._outputs
        for number, name in batch.items():
            context = {"pin": number, "pin_name": name, "direction": direction.value}
            try:
                self._sysfs.set_direction(number, direction)
            except GpioIOError as e:
                success = False
                self._record_failure(name, number, "direction", str(e))
                self._logger.warning(
                    f"Required `{direction.value}` GPIO {number} direction could not be set.",
                    extra=context,
                )
                continue
            bindings[name] = PinBinding(name, number, direction)
            self._logger.info(
                f"Registered `{direction.value}` GPIO {number} as `{name}`.", extra=context
            )

        if not success:
            return self._fail("Could not properly register GPIOs.")

        return True

    def unregister_all(self) -> None:
        """
        Unexport every pin this registry exported.

        Best effort: failures are logged and never raised. Bindings and
        the record of exported pins are cleared afterwards.
        """
        for number, name in list(self._exported.items()):
            binding = self.get_binding(name)
            try:
                self._sysfs.unexport(number)
            except GpioIOError as e:
                self._logger.warning(f"Could not unexport GPIO {number} (`{name}`): {e}")
                continue
            if binding is not None and binding.number == number:
                self._logger.info(
                    f"Unregistered `{binding.direction.value}` GPIO {number} as `{name}`.",
                    extra={"pin": number, "pin_name": name},
                )
            else:
                self._logger.info(
                    f"Unexported unbound GPIO {number} (`{name}`).",
                    extra={"pin": number, "pin_name": name},
                )

        self._inputs.clear()
        self._outputs.clear()
        self._exported.clear()
