"""Structured logging configuration.

Installs a single stdout handler on the root logger with a
``timestamp | level | module | message`` format.  The level comes from
``settings.LOG_LEVEL``; chatty HTTP and scheduler loggers are capped at
WARNING.
"""

import logging
import sys

from app.core.config import settings

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "apscheduler")


def setup_logging() -> None:
    """Configure the root logger for the API process.

    Safe to call more than once: existing root handlers are replaced
    rather than stacked.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
