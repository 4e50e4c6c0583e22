"""Logging configuration.

Installs a single stdout handler on the root logger using a pipe-separated
format (timestamp, level, logger name, message).  The level comes from
``settings.LOG_LEVEL``.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

_NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "uvicorn.access", "apscheduler")


def setup_logging() -> None:
    """Configure the root logger for the application.

    Calling it more than once replaces the previous handler.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
