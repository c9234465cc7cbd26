"""
loopi Hardware Abstraction Layer (HAL)

Access to the Linux sysfs GPIO class and the registry of named pins
exported through it.
"""

from loopi.hal.mock_sysfs import MockSysfsGPIO
from loopi.hal.pin_registry import PinBinding, PinRegistry, RegistrationFailure
from loopi.hal.sysfs_gpio import GPIO_ROOT, Direction, Level, SysfsGPIO

__all__ = [
    "GPIO_ROOT",
    "Direction",
    "Level",
    "MockSysfsGPIO",
    "PinBinding",
    "PinRegistry",
    "RegistrationFailure",
    "SysfsGPIO",
]
