"""Logging configuration for the application."""

import logging
import sys

from vdrive.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# DEBUG output of these includes signed request headers.
_QUIET_LOGGERS = ("botocore", "boto3", "urllib3")


def setup_logging(level: int | None = None) -> None:
    """Configure application-wide logging on stdout.

    Level is DEBUG when settings.debug is True, otherwise INFO, unless
    ``level`` is given. Safe to call more than once (create_app does so
    per app instance); later calls only adjust the level.
    """
    if level is None:
        level = logging.DEBUG if get_settings().debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger().setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
