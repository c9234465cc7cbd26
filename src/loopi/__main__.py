"""
loopi Main Entry Point

Runs one of the bundled samples against the sysfs GPIO class.

Usage:
    python -m loopi blinker                    # Blink on the default pins
    python -m loopi button-toggle --mock       # Run against a simulated tree
    python -m loopi blinker --config pins.json # Use pins from a JSON file
"""

import argparse
import logging
import sys
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from loopi.core.config import LoopiConfig, load_config
from loopi.core.console_logger import create_console_logger
from loopi.core.loop_engine import LoopEngine
from loopi.exceptions import ConfigError
from loopi.hal.mock_sysfs import MockSysfsGPIO
from loopi.samples import SAMPLES


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="loopi",
        description="loopi - polling control loops over Linux sysfs GPIO pins",
    )
    parser.add_argument(
        "sample",
        choices=sorted(SAMPLES),
        help="Sample loop to run",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="JSON configuration file (defaults to the sample's pins)",
    )
    parser.add_argument(
        "--gpio-root",
        type=Path,
        help="Override the sysfs GPIO root directory",
    )
    parser.add_argument(
        "--settle-delay",
        type=float,
        help="Seconds to wait after exporting pins",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use a simulated GPIO tree in a temporary directory",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> LoopiConfig:
    """Resolve the configuration for a sample from the arguments."""
    _, default_config = SAMPLES[args.sample]
    config = load_config(args.config if args.config is not None else default_config)

    if args.gpio_root is not None:
        config.gpio.root = args.gpio_root
    if args.settle_delay is not None:
        config.timing.settle_delay = args.settle_delay

    # Ctrl-C is the usual way out of a sample, release the pins when it happens
    config.shutdown.teardown_on_error = True
    return config


def run_sample(args: argparse.Namespace, logger: logging.Logger, root: Optional[Path] = None) -> None:
    config = build_config(args)
    sysfs = MockSysfsGPIO(root) if root is not None else None

    engine = LoopEngine(logger=logger, sysfs=sysfs)
    sample_class, _ = SAMPLES[args.sample]
    sample = sample_class(engine)
    engine.on_tick(sample.tick)

    logger.info(f"Starting sample `{args.sample}`")
    engine.run(config)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logger = create_console_logger("loopi", logging.DEBUG if args.debug else logging.INFO)

    try:
        if args.mock:
            with tempfile.TemporaryDirectory(prefix="loopi-gpio-") as tmpdir:
                logger.info(f"Using simulated GPIO tree in {tmpdir}")
                run_sample(args, logger, Path(tmpdir))
        else:
            run_sample(args, logger)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
