"""Loguru setup for the engine's pure-logic services and the operator CLI.

Console output is used when attached to a terminal with ``LOG_FORMAT=console``;
everything else is serialized to JSON on stdout so batch sweeps can be
shipped to a log collector unchanged.
"""

import sys
from typing import Optional

from loguru import logger

from realtea_engine.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | <level>{message}</level>"
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install the engine's loguru sinks.

    Args:
        level: Overrides ``settings.log_level`` (the CLI uses this for --verbose)
    """
    logger.remove()
    # unbound loggers still render the component column
    logger.configure(extra={"component": "realtea"})
    sink_level = (level or settings.log_level).upper()

    if sys.stderr.isatty() and settings.log_format.lower() == "console":
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=sink_level, colorize=True)
        return

    logger.add(sys.stdout, format="{message}", level=sink_level, serialize=True, diagnose=False)


def get_logger(component: str):
    """Return the shared loguru logger bound to ``component`` (e.g. ``"ranking.scorer"``)."""
    return logger.bind(component=component)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging"]
