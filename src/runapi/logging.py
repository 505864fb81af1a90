"""Logging setup for runapi using Loguru.

Examples
--------
>>> from runapi.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.warning("cannot resolve {}", "user.Profile")

Configure once from the command line entry point::

    from runapi.logging import configure_logging
    configure_logging(level="DEBUG")
"""

import sys
from contextlib import suppress
from functools import lru_cache
from typing import Literal

from loguru import logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["console", "json"]

_CURRENT_CONFIG: dict | None = None
_HANDLER_IDS: list[int] = []


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "console",
    force_reconfigure: bool = False,
) -> None:
    """Configure the stderr sink used by runapi.

    Idempotent: calling it again with the same settings keeps the existing
    handler. Only handlers added here are removed on reconfiguration, so
    sinks installed by tests or host applications stay untouched.
    """
    global _CURRENT_CONFIG

    current_config = {"level": level, "format": format}
    if not force_reconfigure and current_config == _CURRENT_CONFIG:
        return

    if _CURRENT_CONFIG is None:
        # Loguru's default stderr handler
        with suppress(ValueError):
            logger.remove(0)
    for handler_id in _HANDLER_IDS:
        with suppress(ValueError):
            logger.remove(handler_id)
    _HANDLER_IDS.clear()

    if format == "json":
        handler_id = logger.add(sink=sys.stderr, level=level, serialize=True)
    else:
        handler_id = logger.add(
            sink=sys.stderr,
            level=level,
            format="<level>{level: <8}</level> | {message}",
            colorize=sys.stderr.isatty(),
        )
    _HANDLER_IDS.append(handler_id)

    _CURRENT_CONFIG = current_config


@lru_cache(maxsize=64)
def get_logger(name: str):
    """Return the shared Loguru logger bound with the calling module name."""
    return logger.bind(module=name)
