"""
loopi Test Configuration and Fixtures.

Provides shared fixtures for unit and integration tests.
"""

import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from loopi.exceptions import GpioIOError
from loopi.hal.mock_sysfs import MockSysfsGPIO

# =============================================================================
# Temporary Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_file(temp_dir):
    """Provide a factory for creating temporary files."""
    def _create_file(name: str, content: str = "") -> Path:
        path = temp_dir / name
        path.write_text(content)
        return path

    return _create_file


# =============================================================================
# Simulated GPIO Fixtures
# =============================================================================

class FaultySysfsGPIO(MockSysfsGPIO):
    """
    Simulated tree with injectable failures.

    fail_export: pins whose export is refused (e.g. permission denied)
    fail_direction: pins whose direction file cannot be written
    missing_value: pins whose value file never appears after export
    fail_unexport: pins whose unexport is refused
    """

    def __init__(self, root, fail_export=(), fail_direction=(), missing_value=(), fail_unexport=()):
        super().__init__(root)
        self.fail_export = set(fail_export)
        self.fail_direction = set(fail_direction)
        self.missing_value = set(missing_value)
        self.fail_unexport = set(fail_unexport)

    def export(self, number):
        if number in self.fail_export:
            self.operations.append(("export", number))
            raise GpioIOError(f"Could not export GPIO {number}: Permission denied", pin=number)
        super().export(number)
        if number in self.missing_value:
            self.value_path(number).unlink()

    def unexport(self, number):
        if number in self.fail_unexport:
            self.operations.append(("unexport", number))
            raise GpioIOError(f"Could not unexport GPIO {number}: Invalid argument", pin=number)
        super().unexport(number)

    def set_direction(self, number, direction):
        if number in self.fail_direction:
            self.operations.append(("direction", number, direction.value))
            raise GpioIOError(f"Could not set direction of GPIO {number}", pin=number)
        super().set_direction(number, direction)


@pytest.fixture
def mock_sysfs(temp_dir):
    """Provide a simulated sysfs GPIO tree."""
    return MockSysfsGPIO(temp_dir / "gpio")


@pytest.fixture
def faulty_sysfs_factory(temp_dir):
    """Provide a factory for simulated trees with injected failures."""
    def _create(**failures) -> FaultySysfsGPIO:
        return FaultySysfsGPIO(temp_dir / "gpio", **failures)

    return _create


@pytest.fixture
def no_sleep():
    """Replace time.sleep so settle delays and loop pauses return at once."""
    with patch("loopi.hal.pin_registry.time.sleep") as sleep:
        yield sleep


@pytest.fixture
def test_logger():
    """Provide a logger whose records reach caplog."""
    return logging.getLogger("loopi.tests")


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_config() -> dict:
    """Provide a sample configuration in its serialized form."""
    return {
        "input": {"button": 27},
        "output": {"red": 14, "yellow": 4},
        "timing": {"settle_delay": 0.5},
        "shutdown": {"reset_outputs": True},
    }

