"""
Default console logger.

One line per log call on standard output. Context passed through
``extra`` (pin, pin_name, direction) is appended to the line when present.
"""

import logging
import sys
from typing import Optional, TextIO

CONSOLE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

CONTEXT_KEYS = ("pin", "pin_name", "direction")


class ConsoleHandler(logging.StreamHandler):
    """Stream handler installed by create_console_logger."""


class ContextFormatter(logging.Formatter):
    """Formatter that renders structured context after the message."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [f"{key}={getattr(record, key)}" for key in CONTEXT_KEYS if hasattr(record, key)]
        if context:
            line = f"{line} [{' '.join(context)}]"
        return line


def create_console_logger(
    name: str = "loopi",
    level: int = logging.INFO,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Get a logger that writes to standard output.

    Calling it again for the same name adjusts the level instead of adding
    a second handler.

    Args:
        name: Logger name
        level: Minimum level to emit
        stream: Output stream, sys.stdout if None
    """
    console = logging.getLogger(name)
    console.setLevel(level)

    handler = next((h for h in console.handlers if isinstance(h, ConsoleHandler)), None)
    if handler is None:
        handler = ConsoleHandler(stream if stream is not None else sys.stdout)
        handler.setFormatter(ContextFormatter(CONSOLE_LOG_FORMAT))
        console.addHandler(handler)
    elif stream is not None:
        handler.setStream(stream)

    handler.setLevel(level)
    return console
