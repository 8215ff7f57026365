import logging
import sys
from typing import Optional

PACKAGE_LOGGER_NAME = "yy_store"


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self._max_level


def _level_from_name(name: str, default: int) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def configure_split_stream_logging(
    *,
    level: int = logging.INFO,
    stderr_level: int = logging.WARNING,
    formatter: Optional[logging.Formatter] = None,
    logger_name: Optional[str] = None,
) -> logging.Logger:
    """Configure logging so that lint output and diagnostics stay apart:

    - DEBUG/INFO go to stdout
    - WARNING/ERROR/CRITICAL go to stderr

    By default the root logger is configured. Passing ``logger_name`` limits the
    handlers to that logger (and stops propagation), which is what the CLI does
    when a host application already owns the root logger.
    """

    target = logging.getLogger(logger_name) if logger_name else logging.getLogger()
    target.handlers.clear()
    target.setLevel(level)
    if logger_name:
        target.propagate = False

    if formatter is None:
        formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")

    if stderr_level < logging.DEBUG:
        stderr_level = logging.DEBUG

    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(stderr_level - 1))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(stderr_level)
    stderr_handler.setFormatter(formatter)

    target.addHandler(stdout_handler)
    target.addHandler(stderr_handler)
    return target


def configure_from_names(level_name: str, stderr_level_name: str) -> logging.Logger:
    """Configure the package logger from level names such as ``"INFO"``."""
    return configure_split_stream_logging(
        level=_level_from_name(level_name, logging.INFO),
        stderr_level=_level_from_name(stderr_level_name, logging.WARNING),
        logger_name=PACKAGE_LOGGER_NAME,
    )
