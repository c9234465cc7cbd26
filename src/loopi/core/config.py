"""
Configuration for a loopi run.

Pins are described by name in an ``input`` and an ``output`` mapping, as
in ``{"output": {"led": 17}}``. Optional sections tune the sysfs root,
timing and shutdown behaviour. Configuration files are plain JSON.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from loopi.exceptions import ConfigError
from loopi.hal.pin_registry import DEFAULT_SETTLE_DELAY
from loopi.hal.sysfs_gpio import GPIO_ROOT

logger = logging.getLogger(__name__)


@dataclass
class GPIOConfig:
    """Where the sysfs GPIO class lives."""

    root: Path = GPIO_ROOT


@dataclass
class TimingConfig:
    """Timing-related configuration values (seconds)."""

    # Pause after export so the kernel can create the per-pin files
    settle_delay: float = DEFAULT_SETTLE_DELAY

    # Pause after every tick, 0 to poll as fast as the tick allows
    loop_interval: float = 0.0


@dataclass
class ShutdownConfig:
    """What happens when the loop ends."""

    # Drive every output LOW before unexporting
    reset_outputs: bool = False

    # Unexport pins even when the loop is aborted by an exception
    teardown_on_error: bool = False


@dataclass
class LoopiConfig:
    """Main configuration container for a run."""

    inputs: dict[str, int] = field(default_factory=dict)
    outputs: dict[str, int] = field(default_factory=dict)
    gpio: GPIOConfig = field(default_factory=GPIOConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "input": dict(self.inputs),
            "output": dict(self.outputs),
            "gpio": {"root": str(self.gpio.root)},
            "timing": {
                "settle_delay": self.timing.settle_delay,
                "loop_interval": self.timing.loop_interval,
            },
            "shutdown": {
                "reset_outputs": self.shutdown.reset_outputs,
                "teardown_on_error": self.shutdown.teardown_on_error,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LoopiConfig":
        """
        Create configuration from dictionary.

        Raises:
            ConfigError: If a section is malformed or a pin number is not
                an integer
        """
        if not isinstance(data, Mapping):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        config = cls(
            inputs=_parse_pins(data.get("input"), "input"),
            outputs=_parse_pins(data.get("output"), "output"),
        )

        gpio_data = _section(data, "gpio")
        if "root" in gpio_data:
            root = gpio_data["root"]
            if not isinstance(root, (str, Path)):
                raise ConfigError(f"gpio.root must be a path, got {root!r}")
            config.gpio.root = Path(root)

        for key, value in _section(data, "timing").items():
            if hasattr(config.timing, key):
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                    raise ConfigError(f"timing.{key} must be a non-negative number, got {value!r}")
                setattr(config.timing, key, float(value))

        for key, value in _section(data, "shutdown").items():
            if hasattr(config.shutdown, key):
                if not isinstance(value, bool):
                    raise ConfigError(f"shutdown.{key} must be true or false, got {value!r}")
                setattr(config.shutdown, key, value)

        return config

    def save(self, path: Path) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "LoopiConfig":
        """
        Load configuration from a JSON file.

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigError(f"Config file not readable: {path} ({e})") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e

        config = cls.from_dict(data)
        logger.info(f"Configuration loaded from {path}")
        return config


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"`{key}` section must be a mapping")
    return value


def _parse_pins(value: Any, key: str) -> dict[str, int]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"`{key}` must map pin names to pin numbers")

    pins = {}
    for name, number in value.items():
        if isinstance(number, bool) or not isinstance(number, int) or number < 0:
            raise ConfigError(f"`{key}.{name}` must be a non-negative integer, got {number!r}")
        pins[str(name)] = number
    return pins


def load_config(source: Optional[Union[LoopiConfig, Mapping[str, Any], str, Path]]) -> LoopiConfig:
    """
    Resolve whatever a run was given into a LoopiConfig.

    Args:
        source: None for an empty configuration, a LoopiConfig, a mapping
            in the serialized form, or the path of a JSON file

    Raises:
        ConfigError: If the source cannot be turned into a configuration
    """
    if source is None:
        return LoopiConfig()
    if isinstance(source, LoopiConfig):
        return source
    if isinstance(source, Mapping):
        return LoopiConfig.from_dict(source)
    if isinstance(source, (str, Path)):
        return LoopiConfig.load(source)
    raise ConfigError(f"Unsupported configuration source: {type(source).__name__}")
