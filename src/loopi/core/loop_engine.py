"""
Loop Engine - Drives a polling control loop over sysfs GPIO pins.

Registers the configured pins, then repeatedly commits staged outputs,
samples inputs and calls the user's tick until quit() is requested, and
finally unexports everything it registered.
"""

import logging
import time
from enum import Enum, auto
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Union

from loopi.core.config import LoopiConfig, load_config
from loopi.core.io_buffer import IOBuffer
from loopi.exceptions import ConfigError, UnregisteredNameError
from loopi.hal.pin_registry import PinRegistry
from loopi.hal.sysfs_gpio import Direction, Level, SysfsGPIO

ConfigSource = Optional[Union[LoopiConfig, Mapping[str, Any], str, Path]]


class EngineState(Enum):
    """Lifecycle of one run."""
    UNINITIALIZED = auto()
    INITIALIZING = auto()
    RUNNING = auto()
    CLOSING = auto()
    TERMINATED = auto()


class LoopEngine:
    """
    Runs a tick callback in a synchronous, single-threaded loop.

    Within an iteration all staged output writes are committed before any
    input is sampled, and all inputs are sampled before the tick runs, so
    the tick sees fresh inputs and the outputs committed at the end of the
    previous iteration. quit() is only observed once the tick returns.
    """

    def __init__(
        self,
        tick: Optional[Callable[[], None]] = None,
        logger: Optional[logging.Logger] = None,
        sysfs: Optional[SysfsGPIO] = None,
    ):
        """
        Initialize the engine.

        Args:
            tick: Called once per iteration with no arguments
            logger: Logger capability, the module logger if None
            sysfs: GPIO interface to use; if None one is built from the
                configured root at each run
        """
        self._tick = tick
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._sysfs = sysfs
        self._state = EngineState.UNINITIALIZED
        self._running = False
        self._config: Optional[LoopiConfig] = None
        self._registry: Optional[PinRegistry] = None
        self._buffer: Optional[IOBuffer] = None
        self._state_callbacks: List[Callable[[EngineState], None]] = []

    @property
    def state(self) -> EngineState:
        """Current lifecycle state."""
        return self._state

    @state.setter
    def state(self, value: EngineState) -> None:
        if value != self._state:
            old_state = self._state
            self._state = value
            self._logger.debug(f"Engine state changed: {old_state.name} -> {value.name}")
            for callback in self._state_callbacks:
                callback(value)

    @property
    def is_running(self) -> bool:
        """Whether the loop will run another iteration."""
        return self._running

    @property
    def config(self) -> Optional[LoopiConfig]:
        """Configuration of the current or last run."""
        return self._config

    @property
    def registry(self) -> Optional[PinRegistry]:
        """Pin registry of the current run, None outside a run."""
        return self._registry

    def on_tick(self, callback: Callable[[], None]) -> None:
        """Set the callback invoked once per iteration."""
        self._tick = callback

    def on_state_change(self, callback: Callable[[EngineState], None]) -> None:
        """Register callback for state changes."""
        self._state_callbacks.append(callback)

    def quit(self) -> None:
        """Stop the loop once the current iteration's tick returns."""
        self._running = False

    def get(self, name: str, delayed: bool = True) -> Optional[Level]:
        """Get an input level by name. See IOBuffer.get."""
        return self._require_buffer(name, "input").get(name, delayed)

    def set(self, name: str, value: object, delayed: bool = True) -> None:
        """Set an output level by name. See IOBuffer.set."""
        Level.coerce(value)
        self._require_buffer(name, "output").set(name, value, delayed)

    def falling_edge(self, name: str) -> bool:
        """Whether an input went HIGH to LOW between the last two samples."""
        return self._require_buffer(name, "input").falling_edge(name)

    def _require_buffer(self, name: str, role: str) -> IOBuffer:
        if self._buffer is None:
            raise UnregisteredNameError(name, role)
        return self._buffer

    def run(self, config: ConfigSource = None) -> "LoopEngine":
        """
        Register pins, run the loop until quit() and tear down.

        If registration fails the tick is never called but the pins that
        were exported are still released. An exception raised while priming
        the buffers or from the tick propagates; pins are only released in
        that case when shutdown.teardown_on_error is set.

        Args:
            config: LoopiConfig, mapping, JSON file path, or None

        Returns:
            self

        Raises:
            ConfigError: If the configuration is invalid or no tick is set
        """
        if self._tick is None:
            raise ConfigError("No tick callback registered. Use on_tick() before run().")

        self.state = EngineState.INITIALIZING
        self._config = load_config(config)
        sysfs = self._sysfs if self._sysfs is not None else SysfsGPIO(self._config.gpio.root)
        self._registry = PinRegistry(
            sysfs,
            logger=self._logger,
            settle_delay=self._config.timing.settle_delay,
            on_failure=self.quit,
        )
        self._buffer = IOBuffer(self._registry, sysfs, logger=self._logger)
        self._running = True

        try:
            self._initialize()
            if self._running:
                self._loop()
        except BaseException as e:
            self._running = False
            if not self._config.shutdown.teardown_on_error:
                raise
            self._logger.error(f"Loop aborted ({e.__class__.__name__}: {e}), releasing GPIOs.")
            self._close()
            raise

        self._close()
        return self

    def _initialize(self) -> None:
        self._registry.register(Direction.IN, self._config.inputs)
        self._registry.register(Direction.OUT, self._config.outputs)

    def _loop(self) -> None:
        self.state = EngineState.RUNNING

        # Apply writes staged before the loop and take the first samples
        self._buffer.flush_delayed_outputs()
        self._buffer.refresh_inputs()

        interval = self._config.timing.loop_interval
        while self._running:
            self._buffer.flush_delayed_outputs()
            self._buffer.refresh_inputs()
            self._tick()
            if self._running and interval > 0:
                time.sleep(interval)

        # Writes staged by the last tick are committed at its iteration boundary
        self._buffer.flush_delayed_outputs()

    def _close(self) -> None:
        self._running = False
        self.state = EngineState.CLOSING
        if self._config.shutdown.reset_outputs:
            self._buffer.reset_outputs()
        self._registry.unregister_all()
        self._logger.info("Fin.")

        self._registry = None
        self._buffer = None
        self.state = EngineState.TERMINATED
