"""
Tests for loopi.hal.pin_registry module.

Tests export ordering, failure aggregation, conflicts and teardown.
"""

import logging
from unittest.mock import MagicMock

import pytest

from loopi.exceptions import ConfigError, PinConflictError
from loopi.hal.pin_registry import PinBinding, PinRegistry, RegistrationFailure
from loopi.hal.sysfs_gpio import Direction


class TestPinBinding:
    """Tests for PinBinding dataclass."""

    def test_creation(self):
        """Test PinBinding creation."""
        binding = PinBinding(name="led", number=17, direction=Direction.OUT)

        assert binding.name == "led"
        assert binding.number == 17
        assert binding.direction is Direction.OUT


class TestPinConflictError:
    """Tests for PinConflictError exception."""

    def test_error_message(self):
        """Test PinConflictError message format."""
        error = PinConflictError(pin=17, name="lamp", existing="`led` (out)")

        assert "17" in str(error)
        assert "lamp" in str(error)
        assert "led" in str(error)


class TestPinRegistry:
    """Tests for PinRegistry class."""

    @pytest.fixture
    def on_failure(self):
        return MagicMock()

    @pytest.fixture
    def registry(self, mock_sysfs, on_failure, no_sleep, test_logger):
        """Provide a registry over a simulated tree."""
        return PinRegistry(mock_sysfs, logger=test_logger, settle_delay=1.0, on_failure=on_failure)

    def test_init(self, registry):
        """Test PinRegistry initialization."""
        assert registry.inputs == {}
        assert registry.outputs == {}
        assert registry.failures == []
        assert registry.exported_pins == set()

    def test_register_outputs(self, registry, mock_sysfs, no_sleep, on_failure):
        """Test the full registration sequence for one pin."""
        assert registry.register(Direction.OUT, {"led": 17}) is True

        assert mock_sysfs.operations == [
            ("unexport", 17),
            ("export", 17),
            ("direction", 17, "out"),
        ]
        no_sleep.assert_called_once_with(1.0)
        assert registry.outputs == {"led": PinBinding("led", 17, Direction.OUT)}
        assert registry.inputs == {}
        on_failure.assert_not_called()

    def test_register_accepts_direction_text(self, registry):
        """Test that "in"/"out" are accepted for the direction."""
        registry.register("in", {"button": 27})

        assert registry.number_of("button", Direction.IN) == 27

    def test_unexport_all_before_any_export(self, registry, mock_sysfs):
        """Test that every pin is unexported before the first export."""
        registry.register(Direction.IN, {"a": 5, "b": 6})

        kinds = [op[:2] for op in mock_sysfs.operations]
        assert kinds[:4] == [("unexport", 5), ("unexport", 6), ("export", 5), ("export", 6)]

    def test_invalid_direction_raises(self, registry, mock_sysfs, on_failure):
        """Test that a bad direction fails fast without touching sysfs."""
        with pytest.raises(ConfigError):
            registry.register("sideways", {"led": 17})

        assert mock_sysfs.operations == []
        on_failure.assert_not_called()

    def test_empty_batch_is_noop(self, registry, mock_sysfs, no_sleep):
        """Test that an empty mapping succeeds without any I/O or delay."""
        assert registry.register(Direction.OUT, {}) is True

        assert mock_sysfs.operations == []
        no_sleep.assert_not_called()

    def test_unexport_failure_is_ignored(self, faulty_sysfs_factory, no_sleep, on_failure):
        """Test that a refused pre-export unexport does not fail registration."""
        sysfs = faulty_sysfs_factory(fail_unexport={17})
        registry = PinRegistry(sysfs, on_failure=on_failure)

        assert registry.register(Direction.OUT, {"led": 17}) is True
        on_failure.assert_not_called()

    def test_export_failure_stops_batch(self, faulty_sysfs_factory, no_sleep, on_failure, caplog):
        """Test that a failed export skips the settle delay and direction step."""
        sysfs = faulty_sysfs_factory(fail_export={5})
        registry = PinRegistry(sysfs, on_failure=on_failure)

        with caplog.at_level(logging.INFO):
            assert registry.register(Direction.OUT, {"a": 4, "b": 5}) is False

        assert not any(op[0] == "direction" for op in sysfs.operations)
        no_sleep.assert_not_called()
        on_failure.assert_called_once()
        assert registry.outputs == {}
        assert registry.exported_pins == {4}
        assert registry.failures == [
            RegistrationFailure("b", 5, "export", "Could not export GPIO 5: Permission denied")
        ]
        assert "Required GPIO 5 could not be exported (got permissions?)." in caplog.text
        assert "Could not properly export GPIOs." in caplog.text

    def test_direction_failure_binds_the_rest(self, faulty_sysfs_factory, no_sleep, on_failure, caplog):
        """Test that pins whose direction was set are still bound."""
        sysfs = faulty_sysfs_factory(fail_direction={6})
        registry = PinRegistry(sysfs, on_failure=on_failure)

        with caplog.at_level(logging.WARNING):
            assert registry.register(Direction.IN, {"a": 5, "b": 6}) is False

        assert list(registry.inputs) == ["a"]
        assert registry.exported_pins == {5, 6}
        assert registry.failures[0].stage == "direction"
        on_failure.assert_called_once()
        assert "Could not properly register GPIOs." in caplog.text

    def test_name_conflict_across_directions(self, registry, mock_sysfs, on_failure):
        """Test that a name bound as input cannot also be an output."""
        registry.register(Direction.IN, {"x": 5})
        assert registry.register(Direction.OUT, {"x": 6}) is False

        assert registry.failures[0].stage == "conflict"
        assert ("export", 6) not in mock_sysfs.operations
        on_failure.assert_called_once()

    def test_number_conflict_is_not_unexported(self, registry, mock_sysfs, on_failure):
        """Test that a pin bound under another name is left untouched."""
        registry.register(Direction.OUT, {"led": 17})
        mock_sysfs.operations.clear()

        assert registry.register(Direction.OUT, {"lamp": 17}) is False

        assert mock_sysfs.operations == []
        assert registry.outputs == {"led": PinBinding("led", 17, Direction.OUT)}
        on_failure.assert_called_once()

    def test_number_conflict_within_batch(self, registry, on_failure):
        """Test that one batch cannot bind a number twice."""
        assert registry.register(Direction.OUT, {"a": 4, "b": 4}) is False

        assert registry.failures[0].name == "b"
        assert registry.outputs == {}

    def test_get_binding(self, registry):
        """Test looking up bindings by name in either map."""
        registry.register(Direction.IN, {"button": 27})
        registry.register(Direction.OUT, {"led": 17})

        assert registry.get_binding("button").direction is Direction.IN
        assert registry.get_binding("led").number == 17
        assert registry.get_binding("nothing") is None
        assert registry.number_of("led", Direction.IN) is None

    def test_views_are_copies(self, registry):
        """Test that the returned maps cannot mutate the registry."""
        registry.register(Direction.OUT, {"led": 17})
        registry.outputs.clear()

        assert "led" in registry.outputs

    def test_unregister_all(self, registry, mock_sysfs, caplog):
        """Test that every bound pin is unexported and state is cleared."""
        registry.register(Direction.IN, {"button": 27})
        registry.register(Direction.OUT, {"led": 17})
        mock_sysfs.operations.clear()

        with caplog.at_level(logging.INFO):
            registry.unregister_all()

        assert mock_sysfs.operations == [("unexport", 27), ("unexport", 17)]
        assert registry.inputs == {}
        assert registry.outputs == {}
        assert registry.exported_pins == set()
        assert "Unregistered `in` GPIO 27 as `button`." in caplog.text
        assert "Unregistered `out` GPIO 17 as `led`." in caplog.text

    def test_unregister_all_releases_unbound_exports(self, faulty_sysfs_factory, no_sleep):
        """Test that pins exported by a failed batch are released too."""
        sysfs = faulty_sysfs_factory(fail_export={5})
        registry = PinRegistry(sysfs)
        registry.register(Direction.OUT, {"a": 4, "b": 5})
        sysfs.operations.clear()

        registry.unregister_all()

        assert sysfs.operations == [("unexport", 4)]

    def test_unregister_all_never_raises(self, faulty_sysfs_factory, no_sleep, caplog):
        """Test that unexport failures are logged and the rest continue."""
        sysfs = faulty_sysfs_factory()
        registry = PinRegistry(sysfs)
        registry.register(Direction.OUT, {"a": 4, "b": 5})
        sysfs.fail_unexport = {4}
        sysfs.operations.clear()

        with caplog.at_level(logging.WARNING):
            registry.unregister_all()

        assert sysfs.operations == [("unexport", 4), ("unexport", 5)]
        assert "Could not unexport GPIO 4" in caplog.text
        assert registry.exported_pins == set()
