"""
Ready-made tick callbacks.

Each sample takes the engine in its constructor and exposes tick(); its
module holds a DEFAULT_CONFIG for the pins it expects.
"""

from loopi.samples import button_toggle, diode_blinker
from loopi.samples.button_toggle import ButtonToggle
from loopi.samples.diode_blinker import DiodeBlinker

SAMPLES = {
    "blinker": (DiodeBlinker, diode_blinker.DEFAULT_CONFIG),
    "button-toggle": (ButtonToggle, button_toggle.DEFAULT_CONFIG),
}

__all__ = ["ButtonToggle", "DiodeBlinker", "SAMPLES"]
