"""
Exceptions raised by loopi.

Registration problems are not part of this hierarchy: the pin registry
collects them as RegistrationFailure records and asks the engine to quit.
"""

from typing import Optional


class LoopiError(Exception):
    """Base exception for loopi errors."""
    pass


class ConfigError(LoopiError):
    """Raised for invalid configuration or an invalid pin direction."""
    pass


class UnregisteredNameError(LoopiError, KeyError):
    """Raised when an operation references a name not bound to any pin."""

    def __init__(self, name: str, role: str = "pin"):
        self.name = name
        self.role = role
        super().__init__(name)

    def __str__(self) -> str:
        return f"{self.role.capitalize()} `{self.name}` is not registered."


class InvalidValueError(LoopiError, ValueError):
    """Raised when a requested output value is neither HIGH nor LOW."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid value for output: {value!r}. Please use Level.HIGH or Level.LOW."
        )


class GpioIOError(LoopiError, OSError):
    """Raised when a sysfs GPIO file cannot be read or written."""

    def __init__(self, message: str, pin: Optional[int] = None):
        self.pin = pin
        super().__init__(message)


class PinConflictError(LoopiError):
    """Raised when a name or pin number is already bound."""

    def __init__(self, pin: int, name: str, existing: str):
        self.pin = pin
        self.name = name
        self.existing = existing
        super().__init__(
            f"GPIO {pin} cannot be registered as `{name}`, already claimed by {existing}"
        )
