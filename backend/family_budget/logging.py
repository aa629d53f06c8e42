"""Logging for the family budget server. Modules call ``get_logger(__name__)``."""

import logging
import os
import sys

ROOT_LOGGER_NAME = "family_budget"
LOG_LEVEL_ENV = "BUDGET_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# Debug output also points at the logging line
LOG_FORMAT_DEBUG = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"

_handler: logging.Handler | None = None


def _level_from_env() -> int:
    level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | None = None) -> None:
    """Send ``family_budget.*`` records to stderr. Only the first call has an effect."""
    global _handler
    if _handler is not None:
        return

    if level is None:
        level = _level_from_env()

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT_DEBUG if level <= logging.DEBUG else LOG_FORMAT))

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level)
    package_logger.addHandler(_handler)


def get_logger(name: str) -> logging.Logger:
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
