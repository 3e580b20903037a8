"""Logging configuration.

Every module logs through ``logging.getLogger(__name__)``, so all records
land under the ``entity_variants`` logger. Nothing is configured on import;
applications call :func:`configure_logging` once, or attach their own
handlers.
"""

import logging
import sys
from typing import IO, TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from entity_variants.config import VariantConfig

LIBRARY_LOGGER = "entity_variants"
LOGGER_FORMAT = "[%(asctime)s] [%(levelname)s]: %(message)s"
DATE_FORMAT = "%H:%M:%S"

RESET = "\x1b[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\x1b[34m",  # blue
    logging.INFO: "\x1b[34m",
    logging.WARNING: "\x1b[38;5;214m",  # orange
    logging.ERROR: "\x1b[31m",  # red
    logging.CRITICAL: "\x1b[31m",
}

_handler: Optional[logging.Handler] = None


class ColorFormatter(logging.Formatter):
    """Wrap each formatted record in the ANSI color of its level."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{message}{RESET}" if color else message


def configure_logging(
    level: Union[int, str] = logging.INFO,
    colored: bool = True,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Install a console handler on the library logger.

    Calling again replaces the previous handler instead of stacking another.

    Args:
        level: Level for the library logger and the handler.
        colored: Color lines by level.
        stream: Output stream; ``sys.stderr`` by default.

    Returns:
        The installed handler.
    """
    global _handler
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(LIBRARY_LOGGER)
    if _handler is not None:
        logger.removeHandler(_handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    formatter_cls = ColorFormatter if colored else logging.Formatter
    handler.setFormatter(formatter_cls(LOGGER_FORMAT, DATE_FORMAT))
    handler.setLevel(level)

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    _handler = handler
    return handler


def set_library_logging(enabled: bool) -> None:
    """Silence (or restore) info and debug output; warnings always pass."""
    logger = logging.getLogger(LIBRARY_LOGGER)
    if enabled:
        logger.setLevel(_handler.level if _handler is not None else logging.NOTSET)
    else:
        logger.setLevel(logging.WARNING)


def is_library_logging_enabled() -> bool:
    return logging.getLogger(LIBRARY_LOGGER).isEnabledFor(logging.INFO)


def configure_from(config: "VariantConfig", colored: bool = True) -> logging.Handler:
    """Apply ``config.log_level`` and ``config.library_logging``."""
    handler = configure_logging(config.log_level, colored=colored)
    set_library_logging(config.library_logging)
    return handler
