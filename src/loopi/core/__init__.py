"""
loopi core: configuration, buffered pin I/O and the loop engine.
"""

from loopi.core.config import LoopiConfig, load_config
from loopi.core.console_logger import create_console_logger
from loopi.core.io_buffer import IOBuffer
from loopi.core.loop_engine import EngineState, LoopEngine

__all__ = [
    "EngineState",
    "IOBuffer",
    "LoopEngine",
    "LoopiConfig",
    "create_console_logger",
    "load_config",
]
